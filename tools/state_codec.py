"""Deterministic JSON encoding of the four persisted engine collections.

Each collection is encoded independently so that a corrupt value under one key
never prevents the others from loading. Binary payloads travel as base64
strings.
"""
from __future__ import annotations

import base64
import logging
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from engine_app.logging_config import get_logger, log_event
from memory.feedback_store import FeedbackStore, PairFeedback
from models.catalog_item import CatalogItem
from models.jobs import JobStatus, ProcessingJob
from models.outfit import SuggestionHistoryEntry

LOGGER = get_logger(__name__)

CATALOG_KEY = "catalog"
JOBS_KEY = "jobs"
FEEDBACK_KEY = "feedback"
HISTORY_KEY = "history"
STATE_KEYS = (CATALOG_KEY, JOBS_KEY, FEEDBACK_KEY, HISTORY_KEY)


class CatalogItemRecord(BaseModel):
    item_id: str = Field(min_length=1)
    created_at: float
    image_data: str = ""
    category: str = Field(min_length=1)
    color_name: str
    color_hex: str
    confidence: int = Field(ge=0, le=100)
    text: Optional[str] = None
    embedding: Optional[List[float]] = None


class JobRecord(BaseModel):
    job_id: str = Field(min_length=1)
    created_at: float
    status: JobStatus
    image_data: str = ""
    thumbnail: str = ""
    error: Optional[str] = None
    item_id: Optional[str] = None


class FeedbackRecord(BaseModel):
    first_id: str
    second_id: str
    likes: int = Field(ge=0)
    dislikes: int = Field(ge=0)


class HistoryRecord(BaseModel):
    top_id: Optional[str] = None
    bottom_id: Optional[str] = None
    outerwear_id: Optional[str] = None
    shoes_id: Optional[str] = None
    created_at: float


_CATALOG_ADAPTER = TypeAdapter(List[CatalogItemRecord])
_JOBS_ADAPTER = TypeAdapter(List[JobRecord])
_FEEDBACK_ADAPTER = TypeAdapter(List[FeedbackRecord])
_HISTORY_ADAPTER = TypeAdapter(List[HistoryRecord])


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


def _decode_failed(key: str, exc: Exception) -> None:
    log_event(LOGGER, logging.ERROR, "state_decode_failed", key=key, error=str(exc))


# Catalog


def encode_catalog(items: Sequence[CatalogItem]) -> bytes:
    records = [
        CatalogItemRecord(
            item_id=item.item_id,
            created_at=item.created_at,
            image_data=_b64encode(item.image_data),
            category=item.category,
            color_name=item.color_name,
            color_hex=item.color_hex,
            confidence=item.confidence,
            text=item.text,
            embedding=item.embedding,
        )
        for item in items
    ]
    return _CATALOG_ADAPTER.dump_json(records)


def decode_catalog(raw: Optional[bytes]) -> List[CatalogItem]:
    """Decode the catalog; missing or corrupt data yields an empty catalog."""

    if not raw:
        return []
    try:
        records = _CATALOG_ADAPTER.validate_json(raw)
        return [
            CatalogItem(
                item_id=record.item_id,
                created_at=record.created_at,
                image_data=_b64decode(record.image_data),
                category=record.category,
                color_name=record.color_name,
                color_hex=record.color_hex,
                confidence=record.confidence,
                text=record.text,
                embedding=record.embedding,
            )
            for record in records
        ]
    except (ValidationError, ValueError) as exc:
        _decode_failed(CATALOG_KEY, exc)
        return []


# Jobs


def encode_jobs(jobs: Sequence[ProcessingJob]) -> bytes:
    records = [
        JobRecord(
            job_id=job.job_id,
            created_at=job.created_at,
            status=job.status,
            image_data=_b64encode(job.image_data),
            thumbnail=_b64encode(job.thumbnail),
            error=job.error,
            item_id=job.item_id,
        )
        for job in jobs
    ]
    return _JOBS_ADAPTER.dump_json(records)


def decode_jobs(raw: Optional[bytes]) -> List[ProcessingJob]:
    if not raw:
        return []
    try:
        return [
            ProcessingJob(
                job_id=record.job_id,
                created_at=record.created_at,
                status=record.status,
                image_data=_b64decode(record.image_data),
                thumbnail=_b64decode(record.thumbnail),
                error=record.error,
                item_id=record.item_id,
            )
            for record in _JOBS_ADAPTER.validate_json(raw)
        ]
    except (ValidationError, ValueError) as exc:
        _decode_failed(JOBS_KEY, exc)
        return []


# Feedback


def encode_feedback(store: FeedbackStore) -> bytes:
    records = [
        FeedbackRecord(first_id=first, second_id=second, likes=counts.likes, dislikes=counts.dislikes)
        for (first, second), counts in store.items()
    ]
    return _FEEDBACK_ADAPTER.dump_json(records)


def decode_feedback(raw: Optional[bytes]) -> FeedbackStore:
    if not raw:
        return FeedbackStore()
    try:
        records = _FEEDBACK_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        _decode_failed(FEEDBACK_KEY, exc)
        return FeedbackStore()
    entries: dict[Tuple[str, str], PairFeedback] = {}
    for record in records:
        entries[(record.first_id, record.second_id)] = PairFeedback(record.likes, record.dislikes)
    return FeedbackStore(entries)


# History


def encode_history(entries: Sequence[SuggestionHistoryEntry]) -> bytes:
    records = [
        HistoryRecord(
            top_id=entry.top_id,
            bottom_id=entry.bottom_id,
            outerwear_id=entry.outerwear_id,
            shoes_id=entry.shoes_id,
            created_at=entry.created_at,
        )
        for entry in entries
    ]
    return _HISTORY_ADAPTER.dump_json(records)


def decode_history(raw: Optional[bytes]) -> List[SuggestionHistoryEntry]:
    if not raw:
        return []
    try:
        records = _HISTORY_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        _decode_failed(HISTORY_KEY, exc)
        return []
    return [SuggestionHistoryEntry(**record.model_dump()) for record in records]


__all__ = [
    "STATE_KEYS",
    "CATALOG_KEY",
    "JOBS_KEY",
    "FEEDBACK_KEY",
    "HISTORY_KEY",
    "encode_catalog",
    "decode_catalog",
    "encode_jobs",
    "decode_jobs",
    "encode_feedback",
    "decode_feedback",
    "encode_history",
    "decode_history",
]
