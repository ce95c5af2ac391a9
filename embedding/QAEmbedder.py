# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-02-03
# Description: QAEmbedder
# -----------------------------------------------------------------------------
import asyncio
import inspect
from typing import Any, Optional

import numpy as np
import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from config.Config import Config
from embedding.EmbeddingOutcome import (
    MALFORMED_RESPONSE,
    PROVIDER_ERROR,
    TIMEOUT,
    TOKEN_LIMIT,
    EmbeddingOutcome,
)
from embedding.TokenGuard import TokenGuard
from utility.errors import QueryEmbeddingError
from utility.logging_utils import get_class_logger

# Retried with backoff; any other provider error is a skip on the first attempt
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
    asyncio.TimeoutError,
    TimeoutError,
)

BACKOFF_FACTOR = 1.7


def _describe(e: BaseException) -> str:
    return f"{type(e).__name__}: {e}" if str(e) else type(e).__name__


def _preview(text: str, n: int = 80) -> str:
    clean = " ".join(text.split())
    return (clean[:n] + "...") if len(clean) > n else clean


class QAEmbedder:
    """
    Process-wide "text -> vector" client.

    One async OpenAI (or Azure OpenAI) client and one tokenizer are created at
    construction and shared read-only by every concurrent call. Close with
    aclose() (or use as an async context manager) when the run is over.

    embed()/embed_outcome() never raise: token-limit, provider failures,
    timeouts and malformed responses all come back as a skip.
    embed_query() is the strict variant for search.
    """

    def __init__(
            self,
            cfg: Config,
            *,
            client: Any = None,
            token_guard: Optional[TokenGuard] = None,
            logger=None,
    ):
        self.cfg = cfg
        self.logger = logger or get_class_logger(self.__class__)

        self.model = cfg.model_name
        self.expected_dim = cfg.embed_dimensions or None
        self.timeout_s = cfg.embed_timeout_s
        self.max_retries = cfg.embed_max_retries
        self.retry_base_delay_s = cfg.embed_retry_base_delay_s

        self.token_guard = token_guard or TokenGuard.for_model(
            cfg.embed_model,
            fallback_encoding=cfg.tokenizer_encoding,
            max_tokens=cfg.max_tokens,
        )
        self.client = client if client is not None else self._init_client()

        self.logger.info(
            "QAEmbedder initialized (backend=%s, model=%s, max_tokens=%d, timeout=%.1fs, retries=%d)",
            "azure" if cfg.uses_azure else "openai",
            self.model,
            self.token_guard.max_tokens,
            self.timeout_s,
            self.max_retries,
        )

    @classmethod
    def from_config(cls, cfg: Config, **kwargs: Any) -> "QAEmbedder":
        return cls(cfg, **kwargs)

    def _init_client(self) -> Any:
        """
        Azure OpenAI when an Azure endpoint is configured, OpenAI direct otherwise.
        SDK retries are disabled; retry policy lives in embed_outcome().
        """
        if self.cfg.uses_azure:
            return AsyncAzureOpenAI(
                api_key=self.cfg.azure_openai_api_key,
                azure_endpoint=self.cfg.azure_openai_endpoint.rstrip("/"),
                api_version=self.cfg.azure_openai_api_version,
                max_retries=0,
                timeout=self.timeout_s,
            )

        kwargs: dict[str, Any] = {
            "api_key": self.cfg.openai_api_key,
            "max_retries": 0,
            "timeout": self.timeout_s,
        }
        if self.cfg.openai_base_url:
            kwargs["base_url"] = self.cfg.openai_base_url
        return AsyncOpenAI(**kwargs)

    # -------------------------------------------------------------------------
    async def embed(self, text: str) -> Optional[np.ndarray]:
        return (await self.embed_outcome(text)).vector

    async def embed_outcome(self, text: str) -> EmbeddingOutcome:
        token_count = self.token_guard.count(text)
        if token_count > self.token_guard.max_tokens:
            self.logger.warning(
                "Token too long, len: %d (max %d), prompt: %r",
                token_count,
                self.token_guard.max_tokens,
                _preview(text),
            )
            return EmbeddingOutcome.skipped(TOKEN_LIMIT, token_count=token_count)

        total_attempts = self.max_retries + 1
        delay = self.retry_base_delay_s
        for attempt in range(1, total_attempts + 1):
            try:
                resp = await asyncio.wait_for(self._create(text), timeout=self.timeout_s)
            except TRANSIENT_ERRORS as e:
                timed_out = isinstance(e, (asyncio.TimeoutError, TimeoutError, openai.APITimeoutError))
                self.logger.warning(
                    "Embedding call failed (attempt %d/%d): %s", attempt, total_attempts, _describe(e)
                )
                if attempt == total_attempts:
                    return EmbeddingOutcome.skipped(
                        TIMEOUT if timed_out else PROVIDER_ERROR,
                        token_count=token_count,
                        attempts=attempt,
                    )
                await asyncio.sleep(delay)
                delay *= BACKOFF_FACTOR
                continue
            except Exception as e:
                self.logger.warning("Embedding call failed, not retrying: %s", _describe(e))
                return EmbeddingOutcome.skipped(PROVIDER_ERROR, token_count=token_count, attempts=attempt)

            vector = self._parse_response(resp)
            if vector is None:
                return EmbeddingOutcome.skipped(MALFORMED_RESPONSE, token_count=token_count, attempts=attempt)
            return EmbeddingOutcome.embedded(vector, token_count=token_count, attempts=attempt)

        # unreachable
        return EmbeddingOutcome.skipped(PROVIDER_ERROR, token_count=token_count, attempts=total_attempts)

    async def embed_query(self, text: str) -> np.ndarray:
        """Embed a search query; any skip is an error because there is nothing to fall back to."""
        outcome = await self.embed_outcome(text)
        if not outcome.ok:
            raise QueryEmbeddingError(
                outcome.skip_reason or PROVIDER_ERROR,
                f"Could not embed query ({outcome.skip_reason}, tokens={outcome.token_count})",
            )
        return outcome.vector

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result
        self.logger.debug("Embedding client closed")

    async def __aenter__(self) -> "QAEmbedder":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    async def _create(self, text: str) -> Any:
        return await self.client.embeddings.create(model=self.model, input=text)

    def _parse_response(self, resp: Any) -> Optional[np.ndarray]:
        try:
            raw = resp.data[0].embedding
            vec = np.asarray(raw, dtype=np.float32)
        except (AttributeError, LookupError, TypeError, ValueError) as e:
            self.logger.warning("Malformed embedding response: %s", _describe(e))
            return None

        if vec.ndim != 1 or vec.size == 0 or not np.isfinite(vec).all():
            self.logger.warning("Malformed embedding vector (shape=%s)", vec.shape)
            return None

        if self.expected_dim is not None and vec.size != self.expected_dim:
            self.logger.warning(
                "Embedding dimension mismatch: expected %d, got %d", self.expected_dim, vec.size
            )
            return None

        return vec
