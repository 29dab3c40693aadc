"""The wardrobe engine aggregate: sole owner of catalog, jobs, feedback and history."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, List, Optional, Sequence

from engine_app.config import DEFAULT_HISTORY_LIMIT
from engine_app.events import EngineEvent, EventChannel, EventKind
from engine_app.logging_config import get_logger, log_event, operation_context
from logic.candidate_generator import RankedOutfit, recommend, recommend_candidates
from memory.feedback_store import FeedbackStore
from memory.suggestion_history import SuggestionHistory
from models.catalog_item import CatalogItem, new_catalog_item
from models.color_theory import Color
from models.jobs import JobStatus, ProcessingJob
from models.outfit import Outfit, SuggestionHistoryEntry
from tools.image_utils import make_thumbnail
from tools.kv_store import KeyValueStore
from tools.state_codec import (
    CATALOG_KEY,
    FEEDBACK_KEY,
    HISTORY_KEY,
    JOBS_KEY,
    decode_catalog,
    decode_feedback,
    decode_history,
    decode_jobs,
    encode_catalog,
    encode_feedback,
    encode_history,
    encode_jobs,
)
from tools.stylist_provider import StylistProvider, TemplateStylist

LOGGER = get_logger(__name__)


class WardrobeEngine:
    """Serialises every state mutation behind one re-entrant lock.

    Each mutation persists its collection and publishes an event before the lock
    is released. Slow collaborators (stylist, classifier, embedder) are always
    called outside the lock.
    """

    def __init__(
        self,
        store: KeyValueStore,
        stylist: StylistProvider | None = None,
        events: EventChannel | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        default_top_k: int = 3,
        thumbnail_size: int = 96,
        jpeg_quality: int = 70,
    ) -> None:
        self.store = store
        self.stylist = stylist or TemplateStylist()
        self.events = events or EventChannel()
        self.default_top_k = default_top_k
        self.thumbnail_size = thumbnail_size
        self.jpeg_quality = jpeg_quality
        self._lock = threading.RLock()

        self._catalog: List[CatalogItem] = decode_catalog(self._read(CATALOG_KEY))
        self._jobs: List[ProcessingJob] = decode_jobs(self._read(JOBS_KEY))
        self._feedback: FeedbackStore = decode_feedback(self._read(FEEDBACK_KEY))
        self._history = SuggestionHistory(decode_history(self._read(HISTORY_KEY)), limit=history_limit)
        self._recover_interrupted_jobs()
        log_event(
            LOGGER,
            logging.INFO,
            "engine_loaded",
            items=len(self._catalog),
            jobs=len(self._jobs),
            feedback_pairs=len(self._feedback),
            history=len(self._history),
        )

    # Persistence

    def _read(self, key: str) -> Optional[bytes]:
        """Raw bytes for one key; an unreadable substrate loads as empty."""

        try:
            return self.store.get(key)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Failed to read %s state", key)
            return None

    def _persist(self, key: str) -> None:
        encoders = {
            CATALOG_KEY: lambda: encode_catalog(self._catalog),
            JOBS_KEY: lambda: encode_jobs(self._jobs),
            FEEDBACK_KEY: lambda: encode_feedback(self._feedback),
            HISTORY_KEY: lambda: encode_history(self._history.entries()),
        }
        try:
            self.store.set(key, encoders[key]())
        except Exception:  # noqa: BLE001
            LOGGER.exception("Failed to persist %s state", key)

    def _recover_interrupted_jobs(self) -> None:
        recovered = 0
        for job in self._jobs:
            if job.status is JobStatus.PROCESSING:
                job.status = JobStatus.QUEUED
                recovered += 1
        if recovered:
            self._persist(JOBS_KEY)
            log_event(LOGGER, logging.WARNING, "jobs_requeued_after_restart", count=recovered)

    def subscribe(self, subscriber: Callable[[EngineEvent], None]) -> Callable[[], None]:
        return self.events.subscribe(subscriber)

    # Catalog

    def items(self) -> List[CatalogItem]:
        with self._lock:
            return [dataclasses.replace(item) for item in self._catalog]

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        with self._lock:
            item = self._find_item(item_id)
            return dataclasses.replace(item) if item is not None else None

    def _find_item(self, item_id: str) -> Optional[CatalogItem]:
        return next((item for item in self._catalog if item.item_id == item_id), None)

    def _require_item(self, item_id: str) -> CatalogItem:
        item = self._find_item(item_id)
        if item is None:
            raise KeyError(f"Unknown catalog item '{item_id}'")
        return item

    def _catalog_changed(self, action: str, item_id: str) -> None:
        self._persist(CATALOG_KEY)
        self.events.publish(EventKind.CATALOG_CHANGED, action=action, item_id=item_id)

    def add_item(self, item: CatalogItem) -> CatalogItem:
        with operation_context("engine.add_item", item_id=item.item_id), self._lock:
            if self._find_item(item.item_id) is not None:
                raise ValueError(f"Catalog item '{item.item_id}' already exists")
            self._catalog.append(dataclasses.replace(item))
            self._catalog_changed("added", item.item_id)
            return dataclasses.replace(item)

    def create_item(
        self,
        image_data: bytes,
        category: str,
        color_name: str,
        color: Color | None = None,
        text: str | None = None,
        confidence: int = 0,
    ) -> CatalogItem:
        """Build a fresh item and append it to the catalog."""

        item = new_catalog_item(
            image_data=image_data,
            category=category,
            color_name=color_name,
            color=color,
            text=text,
            confidence=confidence,
        )
        return self.add_item(item)

    def delete_item(self, item_id: str) -> CatalogItem:
        with operation_context("engine.delete_item", item_id=item_id), self._lock:
            item = self._require_item(item_id)
            self._catalog.remove(item)
            self._catalog_changed("deleted", item_id)
            return dataclasses.replace(item)

    def update_description(self, item_id: str, category: str, text: str | None = None) -> CatalogItem:
        """Edit the category and recognised text; blank text clears it."""

        if not str(category).strip():
            raise ValueError("Category must not be empty")
        with operation_context("engine.update_description", item_id=item_id), self._lock:
            item = self._require_item(item_id)
            item.category = str(category).strip()
            item.text = (text or "").strip() or None
            self._catalog_changed("updated", item_id)
            return dataclasses.replace(item)

    def update_color(self, item_id: str, color_name: str, color: Color | None = None) -> CatalogItem:
        with operation_context("engine.update_color", item_id=item_id), self._lock:
            item = self._require_item(item_id)
            item.color_name = color_name
            if color is not None:
                item.color_hex = color.to_hex()
            self._catalog_changed("updated", item_id)
            return dataclasses.replace(item)

    def set_item_embedding(self, item_id: str, embedding: Optional[Sequence[float]]) -> bool:
        """Attach an embedding; returns ``False`` if the item was deleted meanwhile."""

        with self._lock:
            item = self._find_item(item_id)
            if item is None:
                LOGGER.info("Skipping embedding for removed item %s", item_id)
                return False
            item.set_embedding(list(embedding) if embedding is not None else None)
            self._catalog_changed("embedded", item_id)
            return True

    # Jobs

    def jobs(self) -> List[ProcessingJob]:
        with self._lock:
            return [dataclasses.replace(job) for job in self._jobs]

    def _find_job(self, job_id: str) -> Optional[ProcessingJob]:
        return next((job for job in self._jobs if job.job_id == job_id), None)

    def _jobs_changed(self, action: str, job_id: str | None = None) -> None:
        self._persist(JOBS_KEY)
        self.events.publish(EventKind.JOBS_CHANGED, action=action, job_id=job_id)

    def enqueue_image(self, image_data: bytes) -> ProcessingJob:
        """Queue a captured image for ingestion and wake the worker."""

        if not image_data:
            raise ValueError("Cannot enqueue an empty image")
        thumbnail = make_thumbnail(image_data, size=self.thumbnail_size, quality=self.jpeg_quality)
        job = ProcessingJob.create(image_data, thumbnail)
        with operation_context("engine.enqueue_image", job_id=job.job_id), self._lock:
            self._jobs.append(job)
            self._jobs_changed("enqueued", job.job_id)
            return dataclasses.replace(job)

    def cancel_job(self, job_id: str) -> bool:
        """Remove a job that has not started yet; no-op otherwise."""

        with self._lock:
            job = self._find_job(job_id)
            if job is None or job.status is not JobStatus.QUEUED:
                return False
            self._jobs.remove(job)
            self._jobs_changed("cancelled", job_id)
            return True

    def clear_finished_jobs(self) -> int:
        with self._lock:
            remaining = [job for job in self._jobs if not job.status.is_finished]
            removed = len(self._jobs) - len(remaining)
            if removed:
                self._jobs = remaining
                self._jobs_changed("cleared")
            return removed

    def has_queued_jobs(self) -> bool:
        with self._lock:
            return any(job.status is JobStatus.QUEUED for job in self._jobs)

    def claim_next_job(self) -> Optional[ProcessingJob]:
        """Move the oldest queued job to processing and return a snapshot of it."""

        with self._lock:
            job = next((job for job in self._jobs if job.status is JobStatus.QUEUED), None)
            if job is None:
                return None
            job.status = JobStatus.PROCESSING
            self._jobs_changed("processing", job.job_id)
            return dataclasses.replace(job)

    def complete_job(self, job_id: str, item_id: str | None = None) -> None:
        with self._lock:
            job = self._find_job(job_id)
            if job is None:
                return
            job.status = JobStatus.DONE
            job.item_id = item_id
            job.error = None
            self._jobs_changed("done", job_id)

    def fail_job(self, job_id: str, message: str) -> None:
        with self._lock:
            job = self._find_job(job_id)
            if job is None:
                return
            job.status = JobStatus.FAILED
            job.error = message
            self._jobs_changed("failed", job_id)

    # Feedback

    def feedback_snapshot(self) -> FeedbackStore:
        with self._lock:
            return FeedbackStore(dict(self._feedback.items()))

    def feedback_score(self, a: str, b: str) -> float:
        with self._lock:
            return self._feedback.score(a, b)

    def _feedback_changed(self, pairs: int) -> None:
        self._persist(FEEDBACK_KEY)
        self.events.publish(EventKind.FEEDBACK_CHANGED, pairs=pairs)

    def record_like(self, a: str, b: str) -> None:
        with self._lock:
            self._feedback.record_like(a, b)
            self._feedback_changed(1)

    def record_dislike(self, a: str, b: str) -> None:
        with self._lock:
            self._feedback.record_dislike(a, b)
            self._feedback_changed(1)

    def like_outfit(self, outfit: Outfit) -> int:
        """Record a like for every pair of filled slots."""

        with self._lock:
            pairs = self._feedback.record_outfit(outfit.slot_ids, liked=True)
            if pairs:
                self._feedback_changed(pairs)
            return pairs

    def dislike_outfit(self, outfit: Outfit) -> int:
        with self._lock:
            pairs = self._feedback.record_outfit(outfit.slot_ids, liked=False)
            if pairs:
                self._feedback_changed(pairs)
            return pairs

    # Recommendations and history

    def history(self) -> List[SuggestionHistoryEntry]:
        with self._lock:
            return self._history.entries()

    def add_to_history(self, outfit: Outfit) -> SuggestionHistoryEntry:
        with self._lock:
            entry = self._history.add(outfit)
            self._persist(HISTORY_KEY)
            self.events.publish(EventKind.HISTORY_CHANGED, size=len(self._history))
            return entry

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._persist(HISTORY_KEY)
            self.events.publish(EventKind.HISTORY_CHANGED, size=0)

    def recommend_candidates(
        self, occasion_text: str, top_k: int | None = None, seed: int | None = None
    ) -> List[RankedOutfit]:
        with operation_context("engine.recommend_candidates"):
            items, feedback = self.items(), self.feedback_snapshot()
            limit = self.default_top_k if top_k is None else top_k
            return recommend_candidates(items, occasion_text, feedback, top_k=limit, seed=seed)

    def recommend(self, occasion_text: str, seed: int | None = None) -> Optional[Outfit]:
        """Pick one outfit and record it in the suggestion history."""

        with operation_context("engine.recommend") as correlation_id:
            items, feedback = self.items(), self.feedback_snapshot()
            outfit = recommend(items, occasion_text, feedback, stylist=self.stylist, seed=seed)
            if outfit is None:
                log_event(LOGGER, logging.INFO, "no_recommendation", correlation_id=correlation_id, items=len(items))
                return None
            self.add_to_history(outfit)
            log_event(
                LOGGER,
                logging.INFO,
                "recommendation_ready",
                correlation_id=correlation_id,
                slots=list(outfit.slot_ids),
            )
            return outfit


__all__ = ["WardrobeEngine"]
