"""Outfit and suggestion history schemas."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

from models.catalog_item import CatalogItem

SLOT_NAMES = ("top", "bottom", "outerwear", "shoes")


@dataclass(eq=False)
class Outfit:
    """Four optional slots plus a generated explanation.

    Two outfits are equal when they reference the same item ids per slot; the
    reason text is presentation only.
    """

    top: Optional[CatalogItem] = None
    bottom: Optional[CatalogItem] = None
    outerwear: Optional[CatalogItem] = None
    shoes: Optional[CatalogItem] = None
    reason: str = ""

    @property
    def slot_ids(self) -> Tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
        return tuple(item.item_id if item is not None else None for item in self.slots())  # type: ignore[return-value]

    def slots(self) -> Tuple[Optional[CatalogItem], ...]:
        return (self.top, self.bottom, self.outerwear, self.shoes)

    def present_items(self) -> Iterator[CatalogItem]:
        return (item for item in self.slots() if item is not None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Outfit):
            return NotImplemented
        return self.slot_ids == other.slot_ids

    def __hash__(self) -> int:
        return hash(self.slot_ids)


@dataclass(frozen=True)
class SuggestionHistoryEntry:
    """Immutable snapshot of a surfaced outfit."""

    top_id: Optional[str]
    bottom_id: Optional[str]
    outerwear_id: Optional[str]
    shoes_id: Optional[str]
    created_at: float = field(default_factory=time.time)

    @classmethod
    def from_outfit(cls, outfit: Outfit) -> "SuggestionHistoryEntry":
        top_id, bottom_id, outerwear_id, shoes_id = outfit.slot_ids
        return cls(top_id=top_id, bottom_id=bottom_id, outerwear_id=outerwear_id, shoes_id=shoes_id)


__all__ = ["Outfit", "SuggestionHistoryEntry", "SLOT_NAMES"]
