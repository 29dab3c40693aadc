"""Bounded most-recent-first log of surfaced outfits."""

from __future__ import annotations

from typing import Iterable, List, Optional

from engine_app.config import DEFAULT_HISTORY_LIMIT
from models.outfit import Outfit, SuggestionHistoryEntry


class SuggestionHistory:
    """Keeps the latest suggestions at index 0 and evicts the oldest beyond ``limit``."""

    def __init__(self, entries: Optional[Iterable[SuggestionHistoryEntry]] = None, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("History limit must be positive")
        self.limit = limit
        self._entries: List[SuggestionHistoryEntry] = list(entries or [])[:limit]

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> SuggestionHistoryEntry:
        return self._entries[index]

    def entries(self) -> List[SuggestionHistoryEntry]:
        return list(self._entries)

    def add(self, outfit: Outfit) -> SuggestionHistoryEntry:
        entry = SuggestionHistoryEntry.from_outfit(outfit)
        self._entries.insert(0, entry)
        del self._entries[self.limit :]
        return entry

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["SuggestionHistory"]
