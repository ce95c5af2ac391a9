# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Updated: 2026-02-03
# Description: conftest.py
# -----------------------------------------------------------------------------

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, List, Optional

import numpy as np
import pandas as pd
import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from config.Config import Config  # noqa: E402
from embedding.QAEmbedder import QAEmbedder  # noqa: E402
from embedding.TokenGuard import TokenGuard  # noqa: E402
from store.QACorpusStore import object_column  # noqa: E402


class WhitespaceEncoder:
    """One token per whitespace-separated word; stands in for tiktoken offline."""

    def encode_ordinary(self, text: str) -> List[int]:
        return list(range(len(text.split())))


class FakeEmbeddings:
    """
    Mimics client.embeddings.create(model=..., input=...) of the async OpenAI SDK.
    Records every input and the peak number of concurrent calls.
    """

    def __init__(
        self,
        vector_fn: Callable[[str], List[float]],
        *,
        delay_fn: Optional[Callable[[str], float]] = None,
        error_fn: Optional[Callable[[str, int], Optional[BaseException]]] = None,
        response_fn: Optional[Callable[[str], object]] = None,
    ):
        self.vector_fn = vector_fn
        self.delay_fn = delay_fn
        self.error_fn = error_fn
        self.response_fn = response_fn
        self.calls: List[str] = []
        self.models: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def create(self, *, model: str, input: str):
        self.calls.append(input)
        self.models.append(model)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_fn(input) if self.delay_fn else 0)
            if self.error_fn is not None:
                error = self.error_fn(input, self.calls.count(input))
                if error is not None:
                    raise error
            if self.response_fn is not None:
                return self.response_fn(input)
            return SimpleNamespace(data=[SimpleNamespace(embedding=list(self.vector_fn(input)))])
        finally:
            self.in_flight -= 1


class FakeOpenAIClient:
    def __init__(self, vector_fn: Callable[[str], List[float]] = lambda text: [1.0, 0.0], **kwargs):
        self.embeddings = FakeEmbeddings(vector_fn, **kwargs)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def cfg() -> Config:
    return Config(
        openai_api_key="test-key",
        embed_timeout_s=5.0,
        embed_max_retries=2,
        embed_retry_base_delay_s=0.0,
    )


@pytest.fixture
def make_embedder(cfg: Config):
    """Factory: QAEmbedder wired to a fake client and the whitespace token guard."""

    def _make(client: FakeOpenAIClient, *, max_tokens: int = 8100, config: Optional[Config] = None) -> QAEmbedder:
        return QAEmbedder(
            config or cfg,
            client=client,
            token_guard=TokenGuard(encoder=WhitespaceEncoder(), max_tokens=max_tokens),
        )

    return _make


def make_frame(rows) -> pd.DataFrame:
    """rows: iterable of (id, title, body, tags, embedding-or-None)."""
    rows = list(rows)
    return pd.DataFrame({
        "id": pd.Series([r[0] for r in rows], dtype="int64"),
        "title": pd.Series([r[1] for r in rows], dtype=object),
        "body": pd.Series([r[2] for r in rows], dtype=object),
        "tags": pd.Series([r[3] for r in rows], dtype=object),
        "embeddings": pd.Series(
            object_column([None if r[4] is None else np.asarray(r[4], dtype=np.float32) for r in rows]),
            dtype=object,
        ),
    })


@pytest.fixture
def frame_factory():
    return make_frame
