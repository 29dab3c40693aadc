"""Image classification and text recognition collaborators."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from google.api_core.exceptions import GoogleAPIError
from PIL import Image
from pydantic import BaseModel, Field, ValidationError

from tools.gemini import build_model, response_text, strip_json_fences
from tools.observability import instrument_collaborator

LOGGER = logging.getLogger(__name__)

FALLBACK_LABEL = "Clothing Item"
FALLBACK_CONFIDENCE = 0


@dataclass(frozen=True)
class Classification:
    label: str
    confidence: int


FALLBACK_CLASSIFICATION = Classification(FALLBACK_LABEL, FALLBACK_CONFIDENCE)


class ClothingClassifier(ABC):
    @abstractmethod
    def classify(self, image: Image.Image) -> Classification:
        """Return a garment label with a 0-100 confidence."""


class TextRecognizer(ABC):
    @abstractmethod
    def recognize_text(self, image: Image.Image) -> Optional[str]:
        """Return printed text found on the garment, if any."""


class FallbackClassifier(ClothingClassifier):
    """Used when no model is available: every image is a generic clothing item."""

    def classify(self, image: Image.Image) -> Classification:
        return FALLBACK_CLASSIFICATION


class NullTextRecognizer(TextRecognizer):
    def recognize_text(self, image: Image.Image) -> Optional[str]:
        return None


class _ClassificationPayload(BaseModel):
    label: str = Field(min_length=1)
    confidence: float = Field(ge=0, le=100)


class GeminiVision(ClothingClassifier, TextRecognizer):
    """Gemini multimodal classifier and text reader with fixed fallbacks."""

    CLASSIFY_PROMPT = (
        "Identify the single clothing item in this photo. Answer with JSON only: "
        '{"label": "<short garment name such as Blue Jeans or Leather Jacket>", '
        '"confidence": <0-100>}.'
    )
    TEXT_PROMPT = (
        "Transcribe any brand name, logo or printed text visible on the garment. "
        "Answer NONE if there is no text."
    )

    def __init__(self, api_key: str | None = None, model_name: str = "models/gemini-1.5-flash-002", model: Any | None = None) -> None:
        self.model_name = model_name
        self._model = model if model is not None else build_model(api_key, model_name)

    @instrument_collaborator("vision.classify")
    def classify(self, image: Image.Image) -> Classification:
        if self._model is None:
            return FALLBACK_CLASSIFICATION
        try:
            response = self._model.generate_content([self.CLASSIFY_PROMPT, image])
            payload = _ClassificationPayload.model_validate_json(strip_json_fences(response_text(response)))
        except ValidationError as exc:
            LOGGER.warning("Classifier answer failed schema validation", extra={"errors": exc.error_count()})
            return FALLBACK_CLASSIFICATION
        except (GoogleAPIError, ValueError) as exc:
            LOGGER.warning("Classifier unavailable; using fallback label", exc_info=exc)
            return FALLBACK_CLASSIFICATION
        label = payload.label.strip()
        if not label:
            return FALLBACK_CLASSIFICATION
        return Classification(label=label, confidence=int(round(payload.confidence)))

    @instrument_collaborator("vision.recognize_text")
    def recognize_text(self, image: Image.Image) -> Optional[str]:
        if self._model is None:
            return None
        try:
            text = response_text(self._model.generate_content([self.TEXT_PROMPT, image]))
        except (GoogleAPIError, ValueError) as exc:
            LOGGER.warning("Text recognition unavailable", exc_info=exc)
            return None
        if not text or text.upper() == "NONE":
            return None
        return text


__all__ = [
    "Classification",
    "ClothingClassifier",
    "TextRecognizer",
    "FallbackClassifier",
    "NullTextRecognizer",
    "GeminiVision",
    "FALLBACK_CLASSIFICATION",
    "FALLBACK_LABEL",
]
