"""Color value type and hue-based harmony rules for outfit scoring."""
from __future__ import annotations

import colorsys
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from models.taxonomy import DEFAULT_COLOR_HEX, is_neutral_color

logger = logging.getLogger(__name__)

MATCHING_SCORE = 0.9
TRIADIC_SCORE = 0.7
COMPLEMENTARY_SCORE = 0.6
CLASHING_SCORE = 0.4
BOTH_NEUTRAL_SCORE = 0.5
NEUTRAL_ANCHOR_SCORE = 1.0

# Half-width of each harmony bucket on the normalized [0, 1] hue distance
# scale, i.e. 15 degrees of the 180 degree maximum circular distance.
_BUCKET_TOLERANCE = 1.0 / 12.0
_TRIADIC_DISTANCE = 120.0 / 180.0


@dataclass(frozen=True)
class Color:
    """An sRGB color with 8-bit channels."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for channel in (self.red, self.green, self.blue):
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channel out of range: {channel}")

    def to_hex(self) -> str:
        return f"#{self.red:02X}{self.green:02X}{self.blue:02X}"

    @classmethod
    def from_hex(cls, value: str) -> Optional["Color"]:
        """Parse ``#RRGGBB`` (leading ``#`` optional); ``None`` when malformed."""

        raw = value[1:] if value.startswith("#") else value
        if len(raw) != 6:
            return None
        try:
            number = int(raw, 16)
        except ValueError:
            return None
        return cls((number >> 16) & 0xFF, (number >> 8) & 0xFF, number & 0xFF)

    def hsb(self) -> Tuple[float, float, float]:
        """Return hue in degrees [0, 360) and saturation/brightness in [0, 1]."""

        hue, saturation, brightness = colorsys.rgb_to_hsv(self.red / 255, self.green / 255, self.blue / 255)
        return hue * 360.0, saturation, brightness


DEFAULT_COLOR = Color.from_hex(DEFAULT_COLOR_HEX)


def circular_hue_distance(hue_a: float, hue_b: float) -> float:
    """Return the hue distance between two angles normalised to [0, 1]."""

    raw = abs(hue_a - hue_b) % 360.0
    return min(raw, 360.0 - raw) / 180.0


def hue_harmony(hue_a: float, hue_b: float) -> float:
    """Bucket the circular distance of two chromatic hues into a harmony score."""

    distance = circular_hue_distance(hue_a, hue_b)
    if distance < _BUCKET_TOLERANCE:
        return MATCHING_SCORE
    if abs(distance - _TRIADIC_DISTANCE) < _BUCKET_TOLERANCE:
        return TRIADIC_SCORE
    if distance > 1.0 - _BUCKET_TOLERANCE:
        return COMPLEMENTARY_SCORE
    return CLASHING_SCORE


def color_harmony(name_a: str | None, color_a: Color | None, name_b: str | None, color_b: Color | None) -> float:
    """Score how well two item colors work together.

    Two neutrals are safe but dull, a single neutral anchors anything, and two
    chromatic colors are judged on their hue relationship.
    """

    neutral_a = is_neutral_color(name_a) or color_a is None
    neutral_b = is_neutral_color(name_b) or color_b is None
    if neutral_a and neutral_b:
        return BOTH_NEUTRAL_SCORE
    if neutral_a or neutral_b:
        return NEUTRAL_ANCHOR_SCORE
    score = hue_harmony(color_a.hsb()[0], color_b.hsb()[0])
    logger.debug("hue harmony (%s, %s) -> %s", name_a, name_b, score)
    return score


__all__ = [
    "Color",
    "DEFAULT_COLOR",
    "circular_hue_distance",
    "hue_harmony",
    "color_harmony",
    "MATCHING_SCORE",
    "TRIADIC_SCORE",
    "COMPLEMENTARY_SCORE",
    "CLASHING_SCORE",
    "BOTH_NEUTRAL_SCORE",
    "NEUTRAL_ANCHOR_SCORE",
]
