"""Explicit change-notification channel for the engine aggregate."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

LOGGER = logging.getLogger(__name__)


class EventKind(str, Enum):
    CATALOG_CHANGED = "catalog_changed"
    JOBS_CHANGED = "jobs_changed"
    FEEDBACK_CHANGED = "feedback_changed"
    HISTORY_CHANGED = "history_changed"


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[EngineEvent], None]


class EventChannel:
    """Synchronous fan-out of engine events to subscribers.

    Subscribers run on the publishing thread, after the mutation that produced
    the event has been persisted. A failing subscriber is logged and does not
    stop delivery to the others.
    """

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register ``subscriber``; the returned callable unsubscribes it."""

        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, kind: EventKind, **payload: Any) -> EngineEvent:
        event = EngineEvent(kind=kind, payload=payload)
        with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Event subscriber failed for %s", kind.value)
        return event


__all__ = ["EventKind", "EngineEvent", "EventChannel", "Subscriber"]
