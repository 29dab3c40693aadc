"""Catalog item data model and helpers."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.color_theory import DEFAULT_COLOR, Color
from models.taxonomy import DEFAULT_COLOR_HEX, UNKNOWN_COLOR_NAME, Role, role_for_category
from tools.embeddings import normalize


def _clean_text(value: Optional[str]) -> Optional[str]:
    """Collapse blank recognised text to ``None``."""

    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


@dataclass
class CatalogItem:
    """Represents one garment in the user's catalog."""

    item_id: str
    created_at: float
    image_data: bytes
    category: str
    color_name: str = UNKNOWN_COLOR_NAME
    color_hex: str = DEFAULT_COLOR_HEX
    confidence: int = 0
    text: Optional[str] = None
    embedding: Optional[List[float]] = None
    normalized_embedding: Optional[List[float]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.category = str(self.category).strip()
        self.text = _clean_text(self.text)
        self.confidence = max(0, min(100, int(self.confidence)))
        if Color.from_hex(self.color_hex) is None:
            self.color_hex = DEFAULT_COLOR_HEX
        self.set_embedding(self.embedding)

    @property
    def role(self) -> Role:
        return role_for_category(self.category)

    @property
    def color(self) -> Color:
        return Color.from_hex(self.color_hex) or DEFAULT_COLOR

    @property
    def has_color(self) -> bool:
        return self.color_name != UNKNOWN_COLOR_NAME

    @property
    def label(self) -> str:
        """Human readable label such as ``"Blue Jeans"``."""

        if not self.has_color or self.color_name.lower() in self.category.lower():
            return self.category
        return f"{self.color_name} {self.category}"

    def set_embedding(self, vector: Optional[List[float]]) -> None:
        """Store a raw feature vector together with its unit-normalised form."""

        if vector is None:
            self.embedding = None
            self.normalized_embedding = None
            return
        self.embedding = [float(value) for value in vector]
        self.normalized_embedding = normalize(self.embedding)


def new_catalog_item(
    image_data: bytes,
    category: str,
    color_name: str = UNKNOWN_COLOR_NAME,
    color: Color | None = None,
    text: Optional[str] = None,
    confidence: int = 0,
    embedding: Optional[List[float]] = None,
) -> CatalogItem:
    """Factory assigning a fresh identifier and creation timestamp."""

    if not str(category).strip():
        raise ValueError("Catalog items require a non-empty category")
    return CatalogItem(
        item_id=str(uuid.uuid4()),
        created_at=time.time(),
        image_data=bytes(image_data),
        category=category,
        color_name=color_name,
        color_hex=color.to_hex() if color is not None else DEFAULT_COLOR_HEX,
        confidence=confidence,
        text=text,
        embedding=embedding,
    )


def describe_item(item: CatalogItem) -> Dict[str, Any]:
    """Summarise an item without its binary payload, for prompts and logs."""

    return {
        "item_id": item.item_id,
        "category": item.category,
        "role": item.role.value,
        "color_name": item.color_name,
        "text": item.text,
    }


__all__ = ["CatalogItem", "new_catalog_item", "describe_item"]
