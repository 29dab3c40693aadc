"""Shared Gemini client helpers for the generative collaborators."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

import google.generativeai as genai

LOGGER = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def build_model(api_key: Optional[str], model_name: str) -> Optional[Any]:
    """Return a configured ``GenerativeModel`` or ``None`` when no API key is set."""

    if not api_key:
        LOGGER.info("Gemini disabled", extra={"reason": "missing_api_key"})
        return None
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


def response_text(response: Any) -> str:
    """Read the text of a generation response; blocked responses raise ``ValueError``."""

    text = getattr(response, "text", None)
    if not isinstance(text, str):
        raise ValueError("Generation response carried no text")
    return text.strip()


def strip_json_fences(text: str) -> str:
    """Remove markdown code fences models like to wrap JSON in."""

    return _FENCE_PATTERN.sub("", text.strip()).strip()


__all__ = ["build_model", "response_text", "strip_json_fences"]
