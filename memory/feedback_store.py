"""Pairwise like/dislike memory used to bias outfit rankings."""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

PairKey = Tuple[str, str]


def canonical_pair(a: str, b: str) -> PairKey:
    """Order a pair of item ids so (A, B) and (B, A) share one entry."""

    return (a, b) if a <= b else (b, a)


@dataclass
class PairFeedback:
    """Independent like and dislike counters for one item pair."""

    likes: int = 0
    dislikes: int = 0


class FeedbackStore:
    """Symmetric pairwise feedback counters with Laplace-smoothed scoring."""

    def __init__(self, entries: Optional[Dict[PairKey, PairFeedback]] = None) -> None:
        self._entries: Dict[PairKey, PairFeedback] = {}
        for (a, b), counts in (entries or {}).items():
            self._entries[canonical_pair(a, b)] = PairFeedback(likes=counts.likes, dislikes=counts.dislikes)

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> Iterator[Tuple[PairKey, PairFeedback]]:
        return iter(sorted(self._entries.items()))

    def counts(self, a: str, b: str) -> PairFeedback:
        entry = self._entries.get(canonical_pair(a, b))
        return PairFeedback(entry.likes, entry.dislikes) if entry else PairFeedback()

    def record_like(self, a: str, b: str) -> None:
        self._entries.setdefault(canonical_pair(a, b), PairFeedback()).likes += 1

    def record_dislike(self, a: str, b: str) -> None:
        self._entries.setdefault(canonical_pair(a, b), PairFeedback()).dislikes += 1

    def record_outfit(self, item_ids: Iterable[Optional[str]], liked: bool) -> int:
        """Record feedback for every pair among the given slot ids; returns the pair count."""

        present = [item_id for item_id in item_ids if item_id]
        pairs = 0
        for a, b in itertools.combinations(present, 2):
            if a == b:
                continue
            if liked:
                self.record_like(a, b)
            else:
                self.record_dislike(a, b)
            pairs += 1
        return pairs

    def score(self, a: str, b: str) -> float:
        """Smoothed like ratio shifted to (-0.5, 0.5); an unseen pair scores 0."""

        entry = self._entries.get(canonical_pair(a, b))
        if entry is None:
            return 0.0
        mean = (entry.likes + 1) / (entry.likes + entry.dislikes + 2)
        return mean - 0.5


__all__ = ["FeedbackStore", "PairFeedback", "canonical_pair"]
