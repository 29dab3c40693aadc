"""Structured outfit intent derived from free-form occasion text."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet


class Occasion(str, Enum):
    CASUAL = "casual"
    WORK = "work"
    FORMAL = "formal"
    SPORT = "sport"
    UNKNOWN = "unknown"


class Temperature(str, Enum):
    COLD = "cold"
    COOL = "cool"
    MILD = "mild"
    WARM = "warm"
    HOT = "hot"
    UNKNOWN = "unknown"


class Condition(str, Enum):
    RAINY = "rainy"
    WINDY = "windy"
    SNOWY = "snowy"
    HUMID = "humid"
    SUNNY = "sunny"


@dataclass(frozen=True)
class OutfitIntent:
    """Occasion, temperature tier and weather conditions for one request."""

    occasion: Occasion = Occasion.UNKNOWN
    temperature: Temperature = Temperature.UNKNOWN
    conditions: FrozenSet[Condition] = field(default_factory=frozenset)

    def describe(self) -> str:
        parts = []
        if self.occasion is not Occasion.UNKNOWN:
            parts.append(self.occasion.value)
        if self.temperature is not Temperature.UNKNOWN:
            parts.append(f"{self.temperature.value} weather")
        parts.extend(sorted(condition.value for condition in self.conditions))
        return ", ".join(parts) if parts else "any occasion"


__all__ = ["Occasion", "Temperature", "Condition", "OutfitIntent"]
