"""Wardrobe app bootstrap: wires storage, collaborators, engine and worker."""

from __future__ import annotations

import logging
from typing import List, Optional

from agents.ingestion_worker import IngestionPipeline, IngestionWorker
from engine_app.config import EngineConfig
from engine_app.engine import WardrobeEngine
from engine_app.logging_config import configure_logging, get_logger, log_event
from models.outfit import Outfit
from tools.embeddings import ColorHistogramEmbedder, EmbeddingProvider
from tools.kv_store import KeyValueStore, SQLiteKeyValueStore
from tools.stylist_provider import GeminiStylist, StylistProvider
from tools.vision_provider import ClothingClassifier, GeminiVision, TextRecognizer

LOGGER = get_logger(__name__)


class WardrobeApp:
    """Builds the engine with Gemini collaborators when an API key is configured.

    Without a key every generative collaborator reports itself unavailable and
    the deterministic fallbacks take over.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        store: KeyValueStore | None = None,
        stylist: StylistProvider | None = None,
        classifier: ClothingClassifier | None = None,
        text_recognizer: TextRecognizer | None = None,
        embedder: EmbeddingProvider | None = None,
    ) -> None:
        self.config = config or EngineConfig.from_env()
        configure_logging()

        self.store = store or SQLiteKeyValueStore(self.config.state_db_path)
        vision: GeminiVision | None = None
        if classifier is None or text_recognizer is None:
            vision = GeminiVision(api_key=self.config.api_key, model_name=self.config.model)
        self.stylist = stylist or GeminiStylist(api_key=self.config.api_key, model_name=self.config.model)

        self.engine = WardrobeEngine(
            store=self.store,
            stylist=self.stylist,
            history_limit=self.config.history_limit,
            default_top_k=self.config.default_top_k,
            thumbnail_size=self.config.thumbnail_size,
            jpeg_quality=self.config.jpeg_quality,
        )
        self.pipeline = IngestionPipeline(
            engine=self.engine,
            classifier=classifier or vision,
            text_recognizer=text_recognizer or vision,
            embedder=embedder or ColorHistogramEmbedder(bins=self.config.embedding_bins),
            max_image_dimension=self.config.max_image_dimension,
            jpeg_quality=self.config.jpeg_quality,
        )
        self.worker = IngestionWorker(self.engine, self.pipeline)
        log_event(
            LOGGER,
            logging.INFO,
            "app_ready",
            environment=self.config.environment,
            state_db_path=self.config.state_db_path,
        )

    def start(self) -> None:
        self.worker.start()

    def shutdown(self) -> None:
        self.worker.close()

    def capture(self, image_data: bytes) -> str:
        """Queue a captured image; returns the job id."""

        return self.engine.enqueue_image(image_data).job_id

    def suggest(self, occasion_text: str, seed: Optional[int] = None) -> Optional[Outfit]:
        return self.engine.recommend(occasion_text, seed=seed)

    def suggest_many(self, occasion_text: str, top_k: Optional[int] = None, seed: Optional[int] = None) -> List[Outfit]:
        return [outfit for outfit, _ in self.engine.recommend_candidates(occasion_text, top_k=top_k, seed=seed)]


__all__ = ["WardrobeApp"]
