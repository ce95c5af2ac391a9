# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QABatchScheduler
# -----------------------------------------------------------------------------
import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from embedding.EmbeddingOutcome import PROVIDER_ERROR, EmbeddingOutcome
from embedding.QAEmbedder import QAEmbedder
from utility.errors import CorpusSchemaError
from utility.logging_utils import get_class_logger


@dataclass
class ScheduleReport:
    total: int = 0
    requested: int = 0
    embedded: int = 0
    skipped: int = 0
    skip_reasons: Counter = field(default_factory=Counter)
    peak_in_flight: int = 0


class QABatchScheduler:
    """
    Turns an ordered list of (text, needs_work) pairs into an equally long,
    equally ordered list of optional vectors.

    Only needs_work elements reach the provider. A fixed pool of worker
    coroutines pulls indices from a queue, so at most max_concurrency calls
    are in flight and every result lands at its input index.
    """

    def __init__(
            self,
            embedder: QAEmbedder,
            *,
            max_concurrency: int = 256,
            progress_every: int = 1000,
            logger=None,
    ):
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self.embedder = embedder
        self.max_concurrency = max_concurrency
        self.progress_every = progress_every
        self.logger = logger or get_class_logger(self.__class__)

    async def schedule(
            self,
            items: Sequence[Tuple[str, bool]],
            keys: Optional[Sequence[Any]] = None,
    ) -> List[Optional[np.ndarray]]:
        results, _ = await self.schedule_with_report(items, keys)
        return results

    async def schedule_with_report(
            self,
            items: Sequence[Tuple[str, bool]],
            keys: Optional[Sequence[Any]] = None,
    ) -> Tuple[List[Optional[np.ndarray]], ScheduleReport]:
        if keys is not None and len(keys) != len(items):
            raise ValueError(f"keys ({len(keys)}) and items ({len(items)}) length mismatch")

        work: List[int] = []
        for i, (text, needs_work) in enumerate(items):
            if not isinstance(needs_work, (bool, np.bool_)):
                raise CorpusSchemaError(
                    f"Mask for element {self._key(keys, i)} must be a boolean, got {needs_work!r}"
                )
            if needs_work:
                if not isinstance(text, str):
                    raise CorpusSchemaError(
                        f"Text for element {self._key(keys, i)} must be a string, got {type(text).__name__}"
                    )
                work.append(i)

        results: List[Optional[np.ndarray]] = [None] * len(items)
        report = ScheduleReport(total=len(items), requested=len(work))
        if not work:
            return results, report

        queue: asyncio.Queue = asyncio.Queue()
        for i in work:
            queue.put_nowait(i)

        in_flight = 0
        done = 0

        async def worker() -> None:
            nonlocal in_flight, done
            while True:
                try:
                    i = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                in_flight += 1
                report.peak_in_flight = max(report.peak_in_flight, in_flight)
                try:
                    outcome = await self.embedder.embed_outcome(items[i][0])
                except Exception as e:
                    self.logger.error("Unexpected embedding failure for %s: %s", self._key(keys, i), e)
                    outcome = EmbeddingOutcome.skipped(PROVIDER_ERROR)
                finally:
                    in_flight -= 1

                results[i] = outcome.vector
                if outcome.ok:
                    report.embedded += 1
                else:
                    report.skipped += 1
                    report.skip_reasons[outcome.skip_reason] += 1
                    self.logger.warning(
                        "Skipped %s: %s (tokens=%s, attempts=%d)",
                        self._key(keys, i),
                        outcome.skip_reason,
                        outcome.token_count,
                        outcome.attempts,
                    )

                done += 1
                if self.progress_every and done % self.progress_every == 0:
                    self.logger.info("Embedding progress: %d/%d", done, len(work))

        pool_size = min(self.max_concurrency, len(work))
        self.logger.info(
            "Embedding %d of %d elements with %d workers", len(work), len(items), pool_size
        )
        await asyncio.gather(*(worker() for _ in range(pool_size)))

        self.logger.info(
            "Embedding finished: %d embedded, %d skipped %s (peak in-flight %d)",
            report.embedded,
            report.skipped,
            dict(report.skip_reasons),
            report.peak_in_flight,
        )
        return results, report

    @staticmethod
    def _key(keys: Optional[Sequence[Any]], i: int) -> str:
        return f"record {keys[i]}" if keys is not None else f"element {i}"
