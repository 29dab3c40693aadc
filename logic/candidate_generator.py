"""Combinatorial outfit search with seeded tie-breaking."""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from logic.intent_parser import parse_intent
from logic.outfit_scoring import combo_score
from memory.feedback_store import FeedbackStore
from models.catalog_item import CatalogItem
from models.intent import OutfitIntent
from models.outfit import Outfit
from models.taxonomy import Role
from tools.stylist_provider import StylistProvider, template_explanation

logger = logging.getLogger(__name__)

JITTER_AMPLITUDE = 0.01
_MASK_64 = 0xFFFFFFFFFFFFFFFF
_ZERO_SEED_REPLACEMENT = 0x9E3779B97F4A7C15

RankedOutfit = Tuple[Outfit, float]


class XorShift64:
    """Small deterministic generator; a zero state is replaced because it is a fixed point."""

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = time.time_ns()
        self._state = (seed & _MASK_64) or _ZERO_SEED_REPLACEMENT

    def next_u64(self) -> int:
        x = self._state
        x ^= (x << 13) & _MASK_64
        x ^= x >> 7
        x ^= (x << 17) & _MASK_64
        self._state = x
        return x

    def next_float(self) -> float:
        """Uniform float in [0, 1) built from the top 53 bits."""

        return (self.next_u64() >> 11) / float(1 << 53)

    def jitter(self, amplitude: float = JITTER_AMPLITUDE) -> float:
        return (2.0 * self.next_float() - 1.0) * amplitude


def partition_by_role(items: Sequence[CatalogItem]) -> Dict[Role, List[CatalogItem]]:
    """Group items into the four outfit roles; unknown-role items are dropped."""

    grouped: Dict[Role, List[CatalogItem]] = {
        Role.TOP: [],
        Role.BOTTOM: [],
        Role.OUTERWEAR: [],
        Role.SHOES: [],
    }
    for item in items:
        role = item.role
        if role in grouped:
            grouped[role].append(item)
    return grouped


def _best_outerwear(
    top: CatalogItem,
    bottom: CatalogItem,
    outerwear: Sequence[CatalogItem],
    intent: OutfitIntent,
    feedback: FeedbackStore,
) -> Optional[CatalogItem]:
    best: Optional[CatalogItem] = None
    best_score = float("-inf")
    for candidate in outerwear:
        score = combo_score(top, bottom, candidate, None, intent, feedback)
        if score > best_score:
            best, best_score = candidate, score
    return best


def _best_shoes(
    top: CatalogItem,
    bottom: CatalogItem,
    outer: Optional[CatalogItem],
    shoes: Sequence[CatalogItem],
    intent: OutfitIntent,
    feedback: FeedbackStore,
) -> Optional[CatalogItem]:
    best: Optional[CatalogItem] = None
    best_score = float("-inf")
    for candidate in shoes:
        score = combo_score(top, bottom, outer, candidate, intent, feedback)
        if score > best_score:
            best, best_score = candidate, score
    return best


def recommend_candidates(
    items: Sequence[CatalogItem],
    occasion_text: str,
    feedback: FeedbackStore,
    top_k: int = 3,
    seed: Optional[int] = None,
) -> List[RankedOutfit]:
    """Rank (top, bottom) pairs completed with greedily chosen outerwear and shoes.

    Outerwear is chosen first with shoes absent, then shoes with that outerwear
    fixed. This is a two-stage approximation of the full four-way search and
    keeps the cost at tops x bottoms x (outerwear + shoes).
    """

    grouped = partition_by_role(items)
    tops, bottoms = grouped[Role.TOP], grouped[Role.BOTTOM]
    if not tops or not bottoms:
        logger.info("No candidates: tops=%s bottoms=%s", len(tops), len(bottoms))
        return []

    intent = parse_intent(occasion_text)
    rng = XorShift64(seed)
    ranked: List[RankedOutfit] = []
    for top in tops:
        for bottom in bottoms:
            outer = _best_outerwear(top, bottom, grouped[Role.OUTERWEAR], intent, feedback)
            shoes = _best_shoes(top, bottom, outer, grouped[Role.SHOES], intent, feedback)
            score = combo_score(top, bottom, outer, shoes, intent, feedback) + rng.jitter()
            ranked.append((Outfit(top=top, bottom=bottom, outerwear=outer, shoes=shoes), score))

    ranked.sort(key=lambda entry: entry[1], reverse=True)
    limit = max(1, top_k)
    logger.info(
        "Scored %s combinations for intent '%s'; returning %s",
        len(ranked),
        intent.describe(),
        min(limit, len(ranked)),
    )
    return ranked[:limit]


def recommend(
    items: Sequence[CatalogItem],
    occasion_text: str,
    feedback: FeedbackStore,
    stylist: StylistProvider | None = None,
    seed: Optional[int] = None,
) -> Optional[Outfit]:
    """Ask the stylist first, then fall back to the best local candidate."""

    if stylist is not None:
        result = stylist.pick_outfit(items, occasion_text)
        if result.is_picked:
            return result.outfit
        logger.info("Stylist unavailable (%s); using local ranking", result.unavailable_reason)

    candidates = recommend_candidates(items, occasion_text, feedback, top_k=1, seed=seed)
    if not candidates:
        return None
    outfit, _ = candidates[0]
    if stylist is not None:
        outfit.reason = stylist.explain(outfit.top.label, outfit.bottom.label, occasion_text)
    else:
        outfit.reason = template_explanation(outfit.top.label, outfit.bottom.label, occasion_text)
    return outfit


__all__ = ["XorShift64", "partition_by_role", "recommend_candidates", "recommend", "RankedOutfit"]
