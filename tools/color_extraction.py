"""Dominant color extraction and HSB color naming."""

from __future__ import annotations

import colorsys
import logging
from typing import Dict, Optional, Tuple

from PIL import Image

from models.color_theory import Color

logger = logging.getLogger(__name__)

SAMPLE_GRID = (10, 10)
QUANT_STEP = 16
MIN_ALPHA = 0.1
MIN_LUMINANCE = 0.04
SATURATION_EXPONENT = 0.7

LOW_SATURATION_THRESHOLD = 0.15

# (start, end, name) in degrees; Red wraps around 0 and is handled separately.
HUE_RANGES: Tuple[Tuple[float, float, str], ...] = (
    (15.0, 45.0, "Orange"),
    (45.0, 75.0, "Yellow"),
    (75.0, 165.0, "Green"),
    (165.0, 195.0, "Teal"),
    (195.0, 255.0, "Blue"),
    (255.0, 290.0, "Purple"),
    (290.0, 345.0, "Magenta"),
)


def _relative_luminance(red: int, green: int, blue: int) -> float:
    return (0.2126 * red + 0.7152 * green + 0.0722 * blue) / 255.0


def extract_dominant_color(image: Image.Image) -> Optional[Color]:
    """Return the most visually dominant color of an image.

    Pixels are weighted by ``luminance * saturation ** 0.7`` so a saturated
    garment wins over a large pale background; when every weight is zero the
    most populated bucket wins.
    """

    rgba = image.convert("RGBA").resize(SAMPLE_GRID, Image.Resampling.BILINEAR)
    pixels = rgba.load()
    width, height = rgba.size
    weights: Dict[Tuple[int, int, int], float] = {}
    counts: Dict[Tuple[int, int, int], int] = {}
    for x, y in ((x, y) for y in range(height) for x in range(width)):
        red, green, blue, alpha = pixels[x, y]
        if alpha / 255.0 < MIN_ALPHA:
            continue
        luminance = _relative_luminance(red, green, blue)
        if luminance < MIN_LUMINANCE:
            continue
        _, saturation, _ = colorsys.rgb_to_hsv(red / 255, green / 255, blue / 255)
        bucket = (red // QUANT_STEP, green // QUANT_STEP, blue // QUANT_STEP)
        weights[bucket] = weights.get(bucket, 0.0) + luminance * saturation**SATURATION_EXPONENT
        counts[bucket] = counts.get(bucket, 0) + 1

    if not counts:
        logger.debug("No usable pixels for dominant color extraction")
        return None
    best = max(counts, key=lambda bucket: (weights[bucket], counts[bucket], bucket))
    half_step = QUANT_STEP // 2
    return Color(*(channel * QUANT_STEP + half_step for channel in best))


def classify_color_name(color: Color) -> str:
    """Map a color onto the fixed color-name taxonomy using HSB thresholds."""

    hue, saturation, brightness = color.hsb()

    if brightness < 0.15 and saturation < 0.3:
        return "Black"
    if brightness > 0.85 and saturation < 0.2:
        return "White"
    if saturation < LOW_SATURATION_THRESHOLD:
        if brightness < 0.15:
            return "Black"
        if brightness > 0.85:
            return "White"
        if brightness > 0.7:
            return "Light Gray"
        if brightness < 0.35:
            return "Dark Gray"
        return "Gray"

    if hue < 15.0 or hue >= 345.0:
        return "Red"
    for start, end, name in HUE_RANGES:
        if start <= hue < end:
            if name == "Orange" and brightness < 0.6 and saturation > 0.5:
                return "Brown"
            if name == "Yellow" and brightness < 0.55:
                return "Olive"
            return name
    return "Colored"


__all__ = [
    "extract_dominant_color",
    "classify_color_name",
    "LOW_SATURATION_THRESHOLD",
    "HUE_RANGES",
]
