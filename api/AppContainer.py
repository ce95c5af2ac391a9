# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-03
# Description: AppContainer.py
# -----------------------------------------------------------------------------
from config.Config import Config
from embedding.QAEmbedder import QAEmbedder
from health.EmbeddingHealth import EmbeddingHealth
from services.QASearchService import QASearchService
from store.QACorpusStore import QACorpusStore
from utility.logging_utils import get_class_logger


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.
    """

    def __init__(self, cfg: Config | None = None) -> None:
        # Configuration
        self.cfg = cfg or Config.from_env()
        self.logger = get_class_logger(self.__class__)
        self.logger.info("AppContainer config: %s", self.cfg.summary())

        # Core infrastructure (one embedder per process)
        self.store = QACorpusStore()
        self.embedder = QAEmbedder.from_config(self.cfg)

        # Return a singleton QASearchService instance
        self.search_service = QASearchService(
            store=self.store,
            embedder=self.embedder,
            url_prefix=self.cfg.question_url_prefix,
            default_top_k=self.cfg.search_top_k,
        )

        # Smoke tests / health
        self.embedding_health = EmbeddingHealth(
            self.embedder,
            expected_dim=self.cfg.embed_dimensions or None,
        )

    @property
    def corpus_path(self) -> str:
        return self.cfg.corpus_path

    async def aclose(self) -> None:
        await self.embedder.aclose()
