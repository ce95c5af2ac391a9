# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-06
# Updated: 2026-02-03
# Description: EmbeddingHealth
# -----------------------------------------------------------------------------
import asyncio
import logging
import time
from typing import Any, Dict, Optional

from embedding.QAEmbedder import QAEmbedder
from utility.logging_utils import get_logger


class EmbeddingHealth:
    """
    Smoke test for the embedding provider.

    Verifies:
      - The embedding call completes successfully (through the token guard)
      - The response contains a valid vector
      - The vector dimension matches the expected dimension (if provided)
    """

    TEST_TEXT = "Embedding healthcheck: what is the entropy of an ideal gas?"

    def __init__(
        self,
        embedder: QAEmbedder,
        expected_dim: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.embedder = embedder
        self.expected_dim = expected_dim
        self.logger = logger or get_logger(__name__)

        self.logger.info("Initialising EmbeddingHealth with model: %s", embedder.model)

    async def check(self) -> Dict[str, Any]:
        """
        Run the embedding smoke test.

        Returns:
            {"ok": bool, "dimension": int | None, "elapsed_ms": float, "detail": str}
        """
        self.logger.info("Running embedding healthcheck using model: %s", self.embedder.model)

        start = time.time()
        outcome = await self.embedder.embed_outcome(self.TEST_TEXT)
        elapsed_ms = (time.time() - start) * 1000.0

        if not outcome.ok:
            self.logger.error("Embedding healthcheck FAILED: %s", outcome.skip_reason)
            return {"ok": False, "dimension": None, "elapsed_ms": elapsed_ms, "detail": outcome.skip_reason}

        dim = int(outcome.vector.size)
        self.logger.info(
            "Embedding call succeeded in %.1f ms. Returned dimension: %d", elapsed_ms, dim
        )

        # Optional dimension validation
        if self.expected_dim is not None and dim != self.expected_dim:
            self.logger.warning("Dimension mismatch: expected %d, got %d.", self.expected_dim, dim)
            return {
                "ok": False,
                "dimension": dim,
                "elapsed_ms": elapsed_ms,
                "detail": f"dimension mismatch (expected {self.expected_dim})",
            }

        self.logger.info("Embedding healthcheck PASSED.")
        return {"ok": True, "dimension": dim, "elapsed_ms": elapsed_ms, "detail": "ok"}

    def run(self) -> bool:
        """Synchronous variant for the CLI."""
        return bool(asyncio.run(self._check_and_close())["ok"])

    async def _check_and_close(self) -> Dict[str, Any]:
        async with self.embedder:
            return await self.check()
