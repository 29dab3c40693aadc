"""Deterministic scoring for candidate outfits."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Tuple

from memory.feedback_store import FeedbackStore
from models.catalog_item import CatalogItem
from models.color_theory import color_harmony
from models.intent import Condition, Occasion, OutfitIntent, Temperature
from models.taxonomy import tokenize
from tools.embeddings import item_similarity

HARMONY_WEIGHTS = {
    "top_bottom": 1.0,
    "outerwear": 0.4,
    "shoes": 0.3,
}
COHESION_WEIGHT = 1.0
OCCASION_WEIGHTS = {"top": 1.0, "bottom": 1.0, "outerwear": 0.6, "shoes": 0.5}
WEATHER_WEIGHTS = {"top": 1.0, "bottom": 1.0, "outerwear": 0.5, "shoes": 0.4}
FEEDBACK_WEIGHTS = {
    "top_bottom": 0.8,
    "top_outerwear": 0.4,
    "bottom_outerwear": 0.4,
    "top_shoes": 0.3,
    "bottom_shoes": 0.3,
    "outerwear_shoes": 0.2,
}

POOR_FIT = 0.2
NEUTRAL_FIT = 0.6
GOOD_FIT = 0.9
STRONG_FIT = 1.0

# Ordered (keywords, score) rules per occasion; the first matching rule wins,
# which lets "t-shirt" be judged before the broader "shirt".
OCCASION_RULES: Dict[Occasion, Tuple[Tuple[Tuple[str, ...], float], ...]] = {
    Occasion.FORMAL: (
        (("t-shirt", "tshirt", "tee", "hoodie", "sweatshirt", "tank", "jersey", "tracksuit"), POOR_FIT),
        (("shorts", "joggers", "sweatpants", "leggings", "jeans", "denim"), POOR_FIT),
        (("sneaker", "trainer", "sandal", "flip", "slides"), POOR_FIT),
        (("suit", "tuxedo", "blazer", "gown", "dress shirt", "dress pant", "dress trouser", "tie"), STRONG_FIT),
        (("oxford", "loafer", "heels", "dress shoe", "overcoat", "trench"), STRONG_FIT),
        (("shirt", "blouse", "trousers", "slacks", "skirt", "coat"), GOOD_FIT),
    ),
    Occasion.WORK: (
        (("t-shirt", "tshirt", "tank", "hoodie", "sweatshirt", "jersey"), POOR_FIT),
        (("shorts", "sweatpants", "joggers", "leggings", "flip", "slides"), POOR_FIT),
        (("blazer", "dress shirt", "shirt", "blouse", "chinos", "trousers", "slacks"), GOOD_FIT),
        (("loafer", "oxford", "dress shoe", "dress pant", "dress trouser", "cardigan", "polo", "trench", "skirt"), GOOD_FIT),
    ),
    Occasion.SPORT: (
        (("blazer", "suit", "heels", "loafer", "oxford", "dress shirt", "dress shoe"), POOR_FIT),
        (("trousers", "slacks", "blouse", "chinos", "overcoat"), POOR_FIT),
        (("jersey", "leggings", "joggers", "sweatpants", "tank", "sneaker"), STRONG_FIT),
        (("trainer", "running", "shorts", "hoodie", "windbreaker", "track", "tracksuit"), STRONG_FIT),
    ),
    Occasion.CASUAL: (
        (("tuxedo", "gown", "suit"), POOR_FIT),
        (("t-shirt", "tshirt", "tee", "jeans", "denim", "sneaker"), GOOD_FIT),
        (("hoodie", "sweater", "shorts", "polo", "chinos", "cardigan"), GOOD_FIT),
    ),
}

# (keywords, adjustment) pairs; every matching pair contributes once.
TEMPERATURE_ADJUSTMENTS: Dict[Temperature, Tuple[Tuple[Tuple[str, ...], float], ...]] = {
    Temperature.COLD: (
        (
            (
                "coat", "overcoat", "jacket", "parka", "puffer", "sweater", "hoodie",
                "wool", "knit", "knitted", "fleece", "turtleneck", "boot",
            ),
            0.5,
        ),
        (("shorts", "tank", "sandal", "flip", "linen", "slides"), -0.5),
    ),
    Temperature.COOL: (
        (("jacket", "sweater", "cardigan", "hoodie", "jeans", "trousers", "boot", "long sleeve"), 0.3),
        (("shorts", "tank", "sandal", "flip", "slides"), -0.3),
    ),
    Temperature.MILD: (
        (("parka", "puffer", "wool coat", "fleece"), -0.2),
    ),
    Temperature.WARM: (
        (("t-shirt", "tshirt", "tee", "shorts", "linen", "polo", "sandal", "skirt"), 0.3),
        (("parka", "puffer", "wool", "sweater", "fleece", "turtleneck", "boot"), -0.3),
    ),
    Temperature.HOT: (
        (("t-shirt", "tshirt", "tee", "shorts", "linen", "tank", "sandal", "skirt"), 0.5),
        (("parka", "puffer", "wool", "sweater", "fleece", "turtleneck", "boot", "coat", "overcoat", "hoodie"), -0.5),
    ),
}

CONDITION_ADJUSTMENTS: Dict[Condition, Tuple[Tuple[Tuple[str, ...], float], ...]] = {
    Condition.RAINY: (
        (("raincoat", "rain jacket", "trench", "waterproof", "boot", "windbreaker", "parka"), 0.3),
        (("suede", "canvas", "sandal", "flip", "slides"), -0.3),
    ),
    Condition.WINDY: (
        (("windbreaker", "jacket", "trench", "coat", "overcoat", "anorak"), 0.2),
        (("skirt", "dress", "gown"), -0.2),
    ),
    Condition.SNOWY: (
        (("boot", "parka", "puffer", "coat", "overcoat", "wool"), 0.4),
        (("sandal", "sneaker", "canvas", "shorts", "flip"), -0.4),
    ),
    Condition.HUMID: (
        (("linen", "cotton", "tank", "shorts"), 0.2),
        (("wool", "fleece", "leather", "puffer", "sweater"), -0.2),
    ),
    Condition.SUNNY: (
        (("linen", "shorts", "t-shirt", "tee", "sandal", "hat"), 0.1),
        (("parka", "puffer"), -0.1),
    ),
}


@dataclass(frozen=True)
class ScoreBreakdown:
    """Individual additive terms of an outfit's score."""

    harmony: float
    cohesion: float
    occasion: float
    weather: float
    feedback: float

    @property
    def total(self) -> float:
        return self.harmony + self.cohesion + self.occasion + self.weather + self.feedback

    def as_dict(self) -> Dict[str, float]:
        return {
            "harmony": self.harmony,
            "cohesion": self.cohesion,
            "occasion": self.occasion,
            "weather": self.weather,
            "feedback": self.feedback,
            "total": self.total,
        }


# Two-word garment names scored as one term, so "Dress Shirt" is not read as a
# dress and "T-Shirt" is not read as a shirt.
COMPOUND_TERMS = ("t shirt", "dress shirt", "dress shoe", "dress pant", "dress trouser")


def _same_word(token: str, keyword: str) -> bool:
    return token in (keyword, keyword + "s", keyword + "es")


def _terms(value: str) -> Tuple[str, ...]:
    tokens = tokenize(value)
    terms = []
    index = 0
    while index < len(tokens):
        pair = " ".join(tokens[index : index + 2])
        if index + 1 < len(tokens) and any(_same_word(pair, compound) for compound in COMPOUND_TERMS):
            terms.append(pair)
            index += 2
        else:
            terms.append(tokens[index])
            index += 1
    return tuple(terms)


@lru_cache(maxsize=None)
def _keyword_terms(keyword: str) -> Tuple[str, ...]:
    return _terms(keyword)


def _item_terms(item: CatalogItem) -> Tuple[str, ...]:
    return _terms(item.category)


def _matches(terms: Tuple[str, ...], keywords: Tuple[str, ...]) -> bool:
    """True when any keyword appears as a run of whole terms (plurals allowed)."""

    for keyword in keywords:
        wanted = _keyword_terms(keyword)
        width = len(wanted)
        for start in range(len(terms) - width + 1):
            if all(_same_word(term, word) for term, word in zip(terms[start : start + width], wanted)):
                return True
    return False


def occasion_fit(item: CatalogItem, occasion: Occasion) -> float:
    """Score one garment against the requested occasion."""

    terms = _item_terms(item)
    for keywords, score in OCCASION_RULES.get(occasion, ()):
        if _matches(terms, keywords):
            return score
    return NEUTRAL_FIT


def weather_fit(item: CatalogItem, intent: OutfitIntent) -> float:
    """Sum the temperature and condition adjustments that apply to a garment."""

    terms = _item_terms(item)
    adjustment = 0.0
    for keywords, delta in TEMPERATURE_ADJUSTMENTS.get(intent.temperature, ()):
        if _matches(terms, keywords):
            adjustment += delta
    for condition in sorted(intent.conditions, key=lambda value: value.value):
        for keywords, delta in CONDITION_ADJUSTMENTS.get(condition, ()):
            if _matches(terms, keywords):
                adjustment += delta
    return adjustment


def _harmony(a: CatalogItem, b: CatalogItem) -> float:
    return color_harmony(
        a.color_name,
        a.color if a.has_color else None,
        b.color_name,
        b.color if b.has_color else None,
    )


def harmony_term(
    top: CatalogItem, bottom: CatalogItem, outer: Optional[CatalogItem], shoes: Optional[CatalogItem]
) -> float:
    total = HARMONY_WEIGHTS["top_bottom"] * _harmony(top, bottom)
    if outer is not None:
        total += HARMONY_WEIGHTS["outerwear"] * (_harmony(outer, top) + _harmony(outer, bottom))
    if shoes is not None:
        total += HARMONY_WEIGHTS["shoes"] * (_harmony(shoes, top) + _harmony(shoes, bottom))
    return total


def cohesion_term(
    top: CatalogItem, bottom: CatalogItem, outer: Optional[CatalogItem], shoes: Optional[CatalogItem]
) -> float:
    """Average embedding similarity over the slot pairs where both sides are embedded."""

    pairs = [(top, bottom), (outer, top), (outer, bottom), (shoes, top), (shoes, bottom)]
    similarities = [
        item_similarity(a, b)
        for a, b in pairs
        if a is not None and b is not None and a.normalized_embedding is not None and b.normalized_embedding is not None
    ]
    if not similarities:
        return 0.0
    return COHESION_WEIGHT * sum(similarities) / len(similarities)


def _slots(
    top: CatalogItem, bottom: CatalogItem, outer: Optional[CatalogItem], shoes: Optional[CatalogItem]
) -> Dict[str, CatalogItem]:
    slots = {"top": top, "bottom": bottom, "outerwear": outer, "shoes": shoes}
    return {name: item for name, item in slots.items() if item is not None}


def occasion_term(slots: Dict[str, CatalogItem], intent: OutfitIntent) -> float:
    return sum(OCCASION_WEIGHTS[name] * occasion_fit(item, intent.occasion) for name, item in slots.items())


def weather_term(slots: Dict[str, CatalogItem], intent: OutfitIntent) -> float:
    return sum(WEATHER_WEIGHTS[name] * weather_fit(item, intent) for name, item in slots.items())


def feedback_term(slots: Dict[str, CatalogItem], feedback: FeedbackStore) -> float:
    total = 0.0
    for pair_name, weight in FEEDBACK_WEIGHTS.items():
        first, second = pair_name.split("_")
        if first in slots and second in slots:
            total += weight * feedback.score(slots[first].item_id, slots[second].item_id)
    return total


def score_breakdown(
    top: CatalogItem,
    bottom: CatalogItem,
    outer: Optional[CatalogItem],
    shoes: Optional[CatalogItem],
    intent: OutfitIntent,
    feedback: FeedbackStore,
) -> ScoreBreakdown:
    """Calculate every additive term of the outfit score."""

    slots = _slots(top, bottom, outer, shoes)
    return ScoreBreakdown(
        harmony=harmony_term(top, bottom, outer, shoes),
        cohesion=cohesion_term(top, bottom, outer, shoes),
        occasion=occasion_term(slots, intent),
        weather=weather_term(slots, intent),
        feedback=feedback_term(slots, feedback),
    )


def combo_score(
    top: CatalogItem,
    bottom: CatalogItem,
    outer: Optional[CatalogItem],
    shoes: Optional[CatalogItem],
    intent: OutfitIntent,
    feedback: FeedbackStore,
) -> float:
    """Composite score of a top/bottom pair with optional outerwear and shoes."""

    return score_breakdown(top, bottom, outer, shoes, intent, feedback).total


__all__ = [
    "combo_score",
    "score_breakdown",
    "ScoreBreakdown",
    "occasion_fit",
    "weather_fit",
    "harmony_term",
    "cohesion_term",
    "OCCASION_RULES",
    "TEMPERATURE_ADJUSTMENTS",
    "CONDITION_ADJUSTMENTS",
    "POOR_FIT",
    "NEUTRAL_FIT",
    "GOOD_FIT",
    "STRONG_FIT",
]
