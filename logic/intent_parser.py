"""Keyword-driven parsing of free-form occasion text into an outfit intent."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import FrozenSet, Iterable, Tuple

from models.intent import Condition, Occasion, OutfitIntent, Temperature

FORMAL_KEYWORDS = (
    "formal",
    "wedding",
    "gala",
    "black tie",
    "black-tie",
    "cocktail",
    "funeral",
    "ceremony",
    "opera",
    "banquet",
    "prom",
)
WORK_KEYWORDS = (
    "work",
    "office",
    "meeting",
    "interview",
    "business",
    "conference",
    "presentation",
    "client",
    "job",
)
SPORT_KEYWORDS = (
    "gym",
    "workout",
    "running",
    "jogging",
    "hike",
    "hiking",
    "sport",
    "training",
    "yoga",
    "tennis",
    "football",
    "soccer",
    "cycling",
    "exercise",
)

# Temperature tiers are evaluated in this order; the first hit wins.
TEMPERATURE_RULES: Tuple[Tuple[Temperature, Tuple[str, ...]], ...] = (
    (Temperature.COLD, ("freezing", "snow", "snowstorm", "snowfall", "blizzard", "icy", "frost", "sub-zero")),
    (Temperature.COLD, ("cold", "winter")),
    (Temperature.COOL, ("chilly", "cool", "autumn", "fall", "brisk")),
    (Temperature.WARM, ("warm", "spring")),
    (Temperature.HOT, ("hot", "heatwave", "heat", "scorching", "summer", "beach")),
    (Temperature.MILD, ("mild", "pleasant", "temperate")),
)

CONDITION_KEYWORDS: Tuple[Tuple[Condition, Tuple[str, ...]], ...] = (
    (
        Condition.RAINY,
        (
            "rain",
            "rainstorm",
            "rainfall",
            "thunderstorm",
            "thunder",
            "downpour",
            "drizzle",
            "shower",
            "storm",
            "wet",
            "umbrella",
        ),
    ),
    (Condition.WINDY, ("wind", "windstorm", "gust", "breeze", "breezy")),
    (Condition.SNOWY, ("snow", "snowstorm", "snowfall", "blizzard", "sleet")),
    (Condition.HUMID, ("humid", "humidity", "muggy", "sticky", "tropical")),
    (Condition.SUNNY, ("sunny", "sunshine", "clear sky", "bright")),
)


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(keyword) + r"(?:s|y|ing|ed|er|ers)?\b")


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive whole-word match allowing common inflections (snow, snowy, snowing).

    Compounds are not split, so weather compounds such as "snowstorm" and
    "rainstorm" are listed as keywords of their own.
    """

    lowered = text.lower()
    return any(_keyword_pattern(keyword).search(lowered) for keyword in keywords)


def _parse_occasion(text: str) -> Occasion:
    if contains_keyword(text, FORMAL_KEYWORDS):
        return Occasion.FORMAL
    if contains_keyword(text, WORK_KEYWORDS):
        return Occasion.WORK
    if contains_keyword(text, SPORT_KEYWORDS):
        return Occasion.SPORT
    return Occasion.CASUAL if text.strip() else Occasion.UNKNOWN


def _parse_temperature(text: str) -> Temperature:
    for tier, keywords in TEMPERATURE_RULES:
        if contains_keyword(text, keywords):
            return tier
    return Temperature.UNKNOWN


def _parse_conditions(text: str) -> FrozenSet[Condition]:
    return frozenset(condition for condition, keywords in CONDITION_KEYWORDS if contains_keyword(text, keywords))


def parse_intent(text: str | None) -> OutfitIntent:
    """Parse occasion, temperature tier and weather conditions from text."""

    raw = text or ""
    return OutfitIntent(
        occasion=_parse_occasion(raw),
        temperature=_parse_temperature(raw),
        conditions=_parse_conditions(raw),
    )


__all__ = [
    "parse_intent",
    "contains_keyword",
    "FORMAL_KEYWORDS",
    "WORK_KEYWORDS",
    "SPORT_KEYWORDS",
    "TEMPERATURE_RULES",
    "CONDITION_KEYWORDS",
]
