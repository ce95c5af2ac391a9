# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-03
# Description: QASearchService
# -----------------------------------------------------------------------------
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from embedding.QAEmbedder import QAEmbedder
from store.QACorpusStore import QACorpusStore, is_absent
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class SearchHit:
    id: int
    url: str
    title: str
    score: float


def rank(
        frame: pd.DataFrame,
        query_vector: Any,
        *,
        top_k: int,
        url_prefix: str,
) -> List[SearchHit]:
    """
    Exact linear scan: score = dot(record, query) for every record with an
    embedding, ordered by score descending then id ascending.
    """
    if top_k <= 0:
        raise ValueError(f"top_k must be positive, got {top_k}")

    positions = [i for i, v in enumerate(frame["embeddings"]) if not is_absent(v)]
    if not positions:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    matrix = np.vstack([frame["embeddings"].iat[i] for i in positions]).astype(np.float64)
    if query.ndim != 1 or matrix.shape[1] != query.shape[0]:
        raise ValueError(
            f"Query dimension {query.shape} does not match corpus dimension {matrix.shape[1]}; "
            "corpus and query must use the same embedding model"
        )

    scores = matrix @ query
    ids = frame["id"].to_numpy(dtype=np.int64)[positions]
    titles = frame["title"].to_numpy()[positions]

    # lexsort: last key is primary
    order = np.lexsort((ids, -scores))[:top_k]
    return [
        SearchHit(
            id=int(ids[j]),
            url=f"{url_prefix}{int(ids[j])}",
            title=str(titles[j]),
            score=float(scores[j]),
        )
        for j in order
    ]


@dataclass
class QASearchService:
    """
    Read-only semantic search over a brewed corpus.
    The query goes through the same embedder/token guard as the brew stage;
    if it cannot be embedded the search fails with QueryEmbeddingError.
    """
    store: QACorpusStore
    embedder: QAEmbedder
    url_prefix: str = "https://physics.stackexchange.com/questions/"
    default_top_k: int = 20
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

    async def search(
            self,
            corpus_path: str | Path,
            query_text: str,
            *,
            top_k: Optional[int] = None,
    ) -> List[SearchHit]:
        query_text = (query_text or "").strip()
        if not query_text:
            raise ValueError("query must not be empty")

        k = self.default_top_k if top_k is None else top_k
        self.logger.info("Searching '%s' for %r (top_k=%d)", corpus_path, query_text, k)

        frame = await asyncio.to_thread(self.store.read, corpus_path)
        query_vector = await self.embedder.embed_query(query_text)
        hits = rank(frame, query_vector, top_k=k, url_prefix=self.url_prefix)

        self.logger.info(
            "Search complete: %d results (best score=%s)",
            len(hits),
            f"{hits[0].score:.4f}" if hits else None,
        )
        return hits
