"""Shared fixtures: catalog item factories, synthetic images and collaborator fakes."""

from __future__ import annotations

import io
import time
import uuid
from types import SimpleNamespace
from typing import Callable, Iterable, List, Optional

import pytest
from PIL import Image

from models.catalog_item import CatalogItem
from models.taxonomy import DEFAULT_COLOR_HEX, UNKNOWN_COLOR_NAME
from tools.kv_store import InMemoryKeyValueStore
from tools.vision_provider import Classification, ClothingClassifier


def _make_item(
    category: str,
    color_name: str = UNKNOWN_COLOR_NAME,
    color_hex: str = DEFAULT_COLOR_HEX,
    embedding: Optional[List[float]] = None,
    item_id: Optional[str] = None,
) -> CatalogItem:
    return CatalogItem(
        item_id=item_id or str(uuid.uuid4()),
        created_at=time.time(),
        image_data=b"jpeg-bytes",
        category=category,
        color_name=color_name,
        color_hex=color_hex,
        confidence=80,
        embedding=embedding,
    )


@pytest.fixture()
def make_item() -> Callable[..., CatalogItem]:
    return _make_item


def _image_bytes(color=(200, 30, 30), size=(32, 32), fmt: str = "PNG", mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def image_bytes() -> Callable[..., bytes]:
    return _image_bytes


@pytest.fixture()
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


class SequenceClassifier(ClothingClassifier):
    """Returns queued labels in order, then repeats the last one."""

    def __init__(self, labels: Iterable[str], confidence: int = 90) -> None:
        self.labels = list(labels)
        self.confidence = confidence
        self.calls = 0

    def classify(self, image: Image.Image) -> Classification:
        index = min(self.calls, len(self.labels) - 1)
        self.calls += 1
        return Classification(self.labels[index], self.confidence)


@pytest.fixture()
def sequence_classifier() -> Callable[..., SequenceClassifier]:
    return SequenceClassifier


class FakeModel:
    """Stands in for a ``GenerativeModel``; replays texts or raises."""

    def __init__(self, *responses: object) -> None:
        self.responses = list(responses)
        self.prompts: list = []

    def generate_content(self, prompt: object) -> SimpleNamespace:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


@pytest.fixture()
def fake_model() -> Callable[..., FakeModel]:
    return FakeModel
