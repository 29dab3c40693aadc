"""Free-text occasion parsing."""

from __future__ import annotations

import pytest

from logic.intent_parser import contains_keyword, parse_intent
from models.intent import Condition, Occasion, OutfitIntent, Temperature


def test_casual_text_has_no_weather_signals() -> None:
    intent = parse_intent("casual lunch")

    assert intent == OutfitIntent(Occasion.CASUAL, Temperature.UNKNOWN, frozenset())


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_text_is_unknown(text) -> None:
    assert parse_intent(text) == OutfitIntent()


@pytest.mark.parametrize(
    ("text", "occasion"),
    [
        ("Wedding reception after the office", Occasion.FORMAL),
        ("client meeting downtown", Occasion.WORK),
        ("morning workout", Occasion.SPORT),
        ("HIKING with friends", Occasion.SPORT),
        ("brunch with family", Occasion.CASUAL),
    ],
)
def test_occasion_priority(text, occasion) -> None:
    assert parse_intent(text).occasion is occasion


def test_extreme_cold_wins_and_conditions_accumulate() -> None:
    intent = parse_intent("Freezing, snowy and windy walk in the rain")

    assert intent.temperature is Temperature.COLD
    assert intent.conditions == frozenset({Condition.SNOWY, Condition.WINDY, Condition.RAINY})


@pytest.mark.parametrize(
    ("text", "temperature"),
    [
        ("chilly autumn evening", Temperature.COOL),
        ("warm spring picnic", Temperature.WARM),
        ("hot beach day", Temperature.HOT),
        ("mild afternoon", Temperature.MILD),
        ("cold office", Temperature.COLD),
    ],
)
def test_temperature_tiers(text, temperature) -> None:
    assert parse_intent(text).temperature is temperature


def test_humid_and_sunny_are_independent() -> None:
    intent = parse_intent("sunny but humid market stroll")

    assert intent.conditions == frozenset({Condition.SUNNY, Condition.HUMID})


def test_parsing_is_deterministic() -> None:
    text = "Rainy work day, chilly"

    assert parse_intent(text) == parse_intent(text)
    assert parse_intent(text).occasion is Occasion.WORK


def test_keywords_match_whole_words_with_inflections() -> None:
    assert contains_keyword("it keeps raining", ["rain"])
    assert not contains_keyword("workout", ["work"])
    assert not contains_keyword("hotel lobby", ["hot"])


@pytest.mark.parametrize(
    ("text", "temperature", "conditions"),
    [
        ("snowstorm tonight", Temperature.COLD, {Condition.SNOWY}),
        ("rainstorm on the way home", Temperature.UNKNOWN, {Condition.RAINY}),
        ("thunderstorms and heavy downpours", Temperature.UNKNOWN, {Condition.RAINY}),
        ("windstorm warning", Temperature.UNKNOWN, {Condition.WINDY}),
    ],
)
def test_weather_compounds_are_recognised(text, temperature, conditions) -> None:
    intent = parse_intent(text)

    assert intent.temperature is temperature
    assert intent.conditions == frozenset(conditions)


def test_keywords_do_not_match_inside_longer_words() -> None:
    assert not contains_keyword("window shopping", ["wind"])
    assert not contains_keyword("promotion party", ["prom"])
    assert contains_keyword("snowing again", ["snow"])
