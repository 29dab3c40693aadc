"""Background ingestion: turns queued captures into catalog items one at a time."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import suppress
from typing import List, Optional

from PIL import Image

from engine_app.engine import WardrobeEngine
from engine_app.events import EngineEvent, EventKind
from engine_app.logging_config import get_logger, log_event, operation_context
from models.jobs import ProcessingJob
from models.taxonomy import UNKNOWN_COLOR_NAME
from tools.color_extraction import classify_color_name, extract_dominant_color
from tools.embeddings import ColorHistogramEmbedder, EmbeddingProvider
from tools.image_utils import downscale, encode_jpeg, load_image
from tools.observability import instrument_collaborator
from tools.vision_provider import ClothingClassifier, FallbackClassifier, NullTextRecognizer, TextRecognizer

logger = get_logger(__name__)


class IngestionPipeline:
    """downscale -> classify -> read text -> dominant color -> add item -> embed."""

    def __init__(
        self,
        engine: WardrobeEngine,
        classifier: ClothingClassifier | None = None,
        text_recognizer: TextRecognizer | None = None,
        embedder: EmbeddingProvider | None = None,
        max_image_dimension: int = 512,
        jpeg_quality: int = 70,
    ) -> None:
        self.engine = engine
        self.classifier = classifier or FallbackClassifier()
        self.text_recognizer = text_recognizer or NullTextRecognizer()
        self.embedder = embedder or ColorHistogramEmbedder()
        self.max_image_dimension = max_image_dimension
        self.jpeg_quality = jpeg_quality

    @instrument_collaborator("embedder.embed")
    def _embed(self, image: Image.Image) -> Optional[List[float]]:
        return self.embedder.embed(image)

    def run(self, job: ProcessingJob) -> str:
        """Process one job and return the id of the catalog item it produced."""

        image = downscale(load_image(job.image_data), self.max_image_dimension)
        classification = self.classifier.classify(image)
        text = self.text_recognizer.recognize_text(image)
        color = extract_dominant_color(image)
        color_name = classify_color_name(color) if color is not None else UNKNOWN_COLOR_NAME

        item = self.engine.create_item(
            image_data=encode_jpeg(image, quality=self.jpeg_quality),
            category=classification.label,
            color_name=color_name,
            color=color,
            text=text,
            confidence=classification.confidence,
        )
        try:
            embedding = self._embed(image)
        except Exception:
            # Failed jobs leave no catalog item behind.
            with suppress(KeyError):
                self.engine.delete_item(item.item_id)
            log_event(logger, logging.WARNING, "ingestion_rolled_back", job_id=job.job_id, item_id=item.item_id)
            raise
        self.engine.set_item_embedding(item.item_id, embedding)
        return item.item_id


class IngestionWorker:
    """Single sequential worker woken by enqueue events.

    The worker thread blocks on a wake signal, drains every queued job in FIFO
    order and goes back to waiting. ``run_until_idle`` performs the same drain
    on the caller's thread.
    """

    def __init__(self, engine: WardrobeEngine, pipeline: IngestionPipeline) -> None:
        self.engine = engine
        self.pipeline = pipeline
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._active = threading.Event()
        self._thread: threading.Thread | None = None
        self._unsubscribe = engine.subscribe(self._on_event)

    def _on_event(self, event: EngineEvent) -> None:
        if event.kind is EventKind.JOBS_CHANGED and event.payload.get("action") == "enqueued":
            self._wake.set()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_idle(self) -> bool:
        return not self._active.is_set() and not self.engine.has_queued_jobs()

    def process_next(self) -> bool:
        """Claim and process the oldest queued job; ``False`` when nothing is queued."""

        job = self.engine.claim_next_job()
        if job is None:
            return False
        with operation_context("worker.process_job", job_id=job.job_id) as correlation_id:
            try:
                item_id = self.pipeline.run(job)
            except Exception as exc:  # noqa: BLE001 - any pipeline failure fails only this job
                message = str(exc) or exc.__class__.__name__
                log_event(
                    logger,
                    logging.ERROR,
                    "ingestion_job_failed",
                    job_id=job.job_id,
                    correlation_id=correlation_id,
                    error=message,
                    exc_info=True,
                )
                self.engine.fail_job(job.job_id, message)
            else:
                log_event(
                    logger,
                    logging.INFO,
                    "ingestion_job_done",
                    job_id=job.job_id,
                    item_id=item_id,
                    correlation_id=correlation_id,
                )
                self.engine.complete_job(job.job_id, item_id)
        return True

    def run_until_idle(self) -> int:
        processed = 0
        while self.process_next():
            processed += 1
        return processed

    def _run(self) -> None:
        while True:
            self._wake.wait()
            if self._stop.is_set():
                break
            self._wake.clear()
            self._active.set()
            try:
                while not self._stop.is_set() and self.process_next():
                    pass
            finally:
                self._active.clear()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        # Drain whatever is already queued, e.g. jobs recovered after a restart.
        self._wake.set()
        self._thread = threading.Thread(target=self._run, name="ingestion-worker", daemon=True)
        self._thread.start()
        logger.info("Ingestion worker started")

    def stop(self, timeout: float | None = None) -> None:
        """Stop after the in-flight job, if any; queued jobs stay queued."""

        self._stop.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Ingestion worker stopped")

    def wait_until_idle(self, timeout: float = 5.0, poll_interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.is_idle:
                return True
            time.sleep(poll_interval)
        return self.is_idle

    def close(self) -> None:
        self.stop()
        self._unsubscribe()


__all__ = ["IngestionPipeline", "IngestionWorker"]
