"""Generative stylist collaborator with an explicit picked/unavailable result."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from google.api_core.exceptions import GoogleAPIError
from pydantic import BaseModel, Field, ValidationError

from models.catalog_item import CatalogItem, describe_item
from models.outfit import Outfit
from models.taxonomy import Role
from tools.gemini import build_model, response_text, strip_json_fences
from tools.observability import instrument_collaborator

LOGGER = logging.getLogger(__name__)


class StylistPick(BaseModel):
    """JSON contract the generative stylist must answer with."""

    top_id: str = Field(min_length=1)
    bottom_id: str = Field(min_length=1)
    outerwear_id: Optional[str] = None
    shoes_id: Optional[str] = None
    reason: str = ""


@dataclass(frozen=True)
class StylistResult:
    """Either a picked outfit or the reason the stylist could not pick one."""

    outfit: Optional[Outfit] = None
    unavailable_reason: Optional[str] = None

    @property
    def is_picked(self) -> bool:
        return self.outfit is not None

    @classmethod
    def picked(cls, outfit: Outfit) -> "StylistResult":
        return cls(outfit=outfit)

    @classmethod
    def unavailable(cls, reason: str) -> "StylistResult":
        return cls(unavailable_reason=reason)


def template_explanation(top_label: str, bottom_label: str, occasion_text: str | None) -> str:
    """Deterministic reason text used whenever no model is available."""

    occasion = (occasion_text or "").strip() or "any occasion"
    return f"{top_label} paired with {bottom_label} works well for {occasion}."


class StylistProvider(ABC):
    """Capability interface for an optional generative stylist."""

    @abstractmethod
    def pick_outfit(self, items: Sequence[CatalogItem], occasion_text: str) -> StylistResult:
        """Pick an outfit from the catalog or report why it cannot."""

    def explain(self, top_label: str, bottom_label: str, occasion_text: str) -> str:
        return template_explanation(top_label, bottom_label, occasion_text)


class TemplateStylist(StylistProvider):
    """Offline stylist: never picks, always explains with the template."""

    def pick_outfit(self, items: Sequence[CatalogItem], occasion_text: str) -> StylistResult:
        return StylistResult.unavailable("no_model")


class GeminiStylist(StylistProvider):
    """Gemini-backed stylist with schema validation and graceful fallbacks."""

    def __init__(self, api_key: str | None = None, model_name: str = "models/gemini-1.5-flash-002", model: Any | None = None) -> None:
        self.model_name = model_name
        self._model = model if model is not None else build_model(api_key, model_name)

    @property
    def available(self) -> bool:
        return self._model is not None

    @staticmethod
    def _pick_prompt(items: Sequence[CatalogItem], occasion_text: str) -> str:
        catalog = [describe_item(item) for item in items if item.role is not Role.UNKNOWN]
        return (
            "You are a personal stylist choosing an outfit from the user's own catalog.\n"
            f"Occasion: {occasion_text or 'unspecified'}\n"
            f"Catalog (JSON): {json.dumps(catalog)}\n"
            "Answer with JSON only, using the keys top_id, bottom_id, outerwear_id, shoes_id and reason. "
            "Use null for slots you leave empty and only ids from the catalog."
        )

    @staticmethod
    def _resolve(pick: StylistPick, items: Sequence[CatalogItem]) -> Optional[Outfit]:
        by_id: Dict[str, CatalogItem] = {item.item_id: item for item in items}
        expected = {
            "top": (pick.top_id, Role.TOP),
            "bottom": (pick.bottom_id, Role.BOTTOM),
            "outerwear": (pick.outerwear_id, Role.OUTERWEAR),
            "shoes": (pick.shoes_id, Role.SHOES),
        }
        slots: Dict[str, Optional[CatalogItem]] = {}
        for slot, (item_id, role) in expected.items():
            if item_id is None:
                slots[slot] = None
                continue
            item = by_id.get(item_id)
            if item is None or item.role is not role:
                return None
            slots[slot] = item
        return Outfit(reason=pick.reason.strip(), **slots)

    @instrument_collaborator("stylist.pick_outfit")
    def pick_outfit(self, items: Sequence[CatalogItem], occasion_text: str) -> StylistResult:
        if self._model is None:
            return StylistResult.unavailable("no_model")
        try:
            response = self._model.generate_content(self._pick_prompt(items, occasion_text))
            pick = StylistPick.model_validate_json(strip_json_fences(response_text(response)))
        except ValidationError as exc:
            LOGGER.warning("Stylist answer failed schema validation", extra={"errors": exc.error_count()})
            return StylistResult.unavailable("invalid_response")
        except (GoogleAPIError, ValueError) as exc:
            LOGGER.error("Stylist model call failed", exc_info=exc)
            return StylistResult.unavailable("model_error")

        outfit = self._resolve(pick, items)
        if outfit is None:
            LOGGER.warning("Stylist picked items outside the catalog")
            return StylistResult.unavailable("unknown_item")
        if not outfit.reason:
            outfit.reason = self.explain(outfit.top.label, outfit.bottom.label, occasion_text)
        return StylistResult.picked(outfit)

    @instrument_collaborator("stylist.explain")
    def explain(self, top_label: str, bottom_label: str, occasion_text: str) -> str:
        if self._model is None:
            return template_explanation(top_label, bottom_label, occasion_text)
        prompt = (
            f"In one friendly sentence, explain why a {top_label} with {bottom_label} "
            f"suits this occasion: {occasion_text or 'an everyday outing'}."
        )
        try:
            text = response_text(self._model.generate_content(prompt))
        except (GoogleAPIError, ValueError) as exc:
            LOGGER.error("Stylist explanation failed", exc_info=exc)
            text = ""
        return text or template_explanation(top_label, bottom_label, occasion_text)


__all__ = [
    "StylistPick",
    "StylistResult",
    "StylistProvider",
    "TemplateStylist",
    "GeminiStylist",
    "template_explanation",
]
