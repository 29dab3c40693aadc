"""Vector helpers and image embedding providers for catalog items."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

from PIL import Image

if TYPE_CHECKING:
    from models.catalog_item import CatalogItem


def normalize(vector: Sequence[float] | None) -> Optional[List[float]]:
    """Scale a vector to unit length; ``None`` for empty or all-zero vectors."""

    if not vector:
        return None
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0.0:
        return None
    return [value / norm for value in vector]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 when shapes do not line up."""

    if not a or not b or len(a) != len(b):
        return 0.0
    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if not norm_a or not norm_b:
        return 0.0
    return max(-1.0, min(1.0, dot_product / (norm_a * norm_b)))


def item_similarity(first: "CatalogItem", second: "CatalogItem") -> float:
    """Map the cosine of two item embeddings onto [0, 1]."""

    a = first.normalized_embedding
    b = second.normalized_embedding
    if a is None or b is None:
        return 0.0
    return (cosine_similarity(a, b) + 1.0) / 2.0


class EmbeddingProvider(ABC):
    """Turns an image into a fixed-length feature vector."""

    @abstractmethod
    def embed(self, image: Image.Image) -> Optional[List[float]]:
        """Return a feature vector or ``None`` when the image cannot be embedded."""


class ColorHistogramEmbedder(EmbeddingProvider):
    """Creates repeatable embeddings from coarse HSV histograms.

    Every catalog item gets a vector of the same length (``4 * bins``), which
    keeps cosine similarity meaningful across the whole catalog.
    """

    def __init__(self, bins: int = 8) -> None:
        if bins <= 0:
            raise ValueError("Histogram bins must be positive")
        self.bins = bins

    @property
    def dimension(self) -> int:
        return 4 * self.bins

    @staticmethod
    def _reduce(channel: Sequence[int], buckets: int) -> List[float]:
        reduced = [0.0] * buckets
        for level, count in enumerate(channel):
            reduced[level * buckets // 256] += count
        return reduced

    def embed(self, image: Image.Image) -> Optional[List[float]]:
        rgb_image = image.convert("RGB") if image.mode != "RGB" else image
        width, height = rgb_image.size
        if width == 0 or height == 0:
            return None
        histogram = rgb_image.convert("HSV").histogram()
        hue, saturation, value = histogram[:256], histogram[256:512], histogram[512:768]
        total = float(width * height)
        vector = (
            self._reduce(hue, 2 * self.bins)
            + self._reduce(saturation, self.bins)
            + self._reduce(value, self.bins)
        )
        return [count / total for count in vector]


__all__ = [
    "normalize",
    "cosine_similarity",
    "item_similarity",
    "EmbeddingProvider",
    "ColorHistogramEmbedder",
]
