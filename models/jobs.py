"""Ingestion job schema and lifecycle states."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


@dataclass
class ProcessingJob:
    """A captured image waiting to become a catalog item."""

    job_id: str
    image_data: bytes
    thumbnail: bytes = b""
    status: JobStatus = JobStatus.QUEUED
    created_at: float = field(default_factory=time.time)
    error: Optional[str] = None
    item_id: Optional[str] = None

    @classmethod
    def create(cls, image_data: bytes, thumbnail: bytes = b"") -> "ProcessingJob":
        return cls(job_id=str(uuid.uuid4()), image_data=bytes(image_data), thumbnail=bytes(thumbnail))


__all__ = ["JobStatus", "ProcessingJob"]
