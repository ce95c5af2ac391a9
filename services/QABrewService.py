# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QABrewService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import numpy as np
import pandas as pd

from document.QARecord import combined_text
from eligibility.QATagFilter import QATagFilter
from embedding.QABatchScheduler import QABatchScheduler
from store.QACorpusStore import COLUMNS, QACorpusStore, embedding_dimension, is_absent, object_column
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class BrewSummary:
    input_path: str
    output_path: str
    total_records: int
    eligible: int
    embedded: int
    skipped: int
    dropped_dimension: int = 0
    no_op: bool = False


def coalesce(existing: Sequence[Any], fresh: Sequence[Any]) -> List[Optional[np.ndarray]]:
    """First non-null wins, per record: the existing vector, else the fresh one, else None."""
    if len(existing) != len(fresh):
        raise ValueError(f"existing ({len(existing)}) and fresh ({len(fresh)}) length mismatch")
    merged: List[Optional[np.ndarray]] = []
    for old, new in zip(existing, fresh):
        if not is_absent(old):
            merged.append(old)
        elif not is_absent(new):
            merged.append(new)
        else:
            merged.append(None)
    return merged


class QABrewService:
    """
    Owns the incremental enrichment pipeline (the only writer of embeddings):
      - read the corpus
      - mask = eligible tag AND embedding absent
      - short-circuit when the mask is empty
      - embed masked records with bounded concurrency
      - coalesce existing + fresh vectors and write id/title/body/tags/embeddings

    With scheduler_factory the scheduler (and its provider client) is only
    built after the short-circuit, so a no-op brew needs no credentials.
    """

    def __init__(
        self,
        *,
        store: QACorpusStore,
        tag_filter: QATagFilter,
        scheduler: QABatchScheduler | None = None,
        scheduler_factory: Callable[[], QABatchScheduler] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if (scheduler is None) == (scheduler_factory is None):
            raise ValueError("Pass exactly one of scheduler or scheduler_factory")
        self.store = store
        self.scheduler = scheduler
        self.scheduler_factory = scheduler_factory
        self.tag_filter = tag_filter
        self.logger = logger or get_class_logger(self.__class__)

    def needs_work_mask(self, frame: pd.DataFrame) -> List[bool]:
        return [
            bool(self.tag_filter.is_eligible(tags)) and is_absent(vec)
            for tags, vec in zip(frame["tags"], frame["embeddings"])
        ]

    def brew(self, input_path: str | Path, output_path: str | Path) -> BrewSummary:
        return asyncio.run(self.brew_async(input_path, output_path))

    async def brew_async(self, input_path: str | Path, output_path: str | Path) -> BrewSummary:
        frame = await asyncio.to_thread(self.store.read, input_path)
        mask = self.needs_work_mask(frame)
        eligible = sum(mask)

        self.logger.info(
            "Brew '%s' -> '%s': %d records, %d need embeddings (tags=%s)",
            input_path,
            output_path,
            len(frame),
            eligible,
            sorted(self.tag_filter.allowed),
        )

        # Checked up front so an empty workset never reaches the scheduler
        if eligible == 0:
            self.logger.info("No update needed")
            await asyncio.to_thread(self.store.copy, input_path, output_path)
            return BrewSummary(
                input_path=str(input_path),
                output_path=str(output_path),
                total_records=len(frame),
                eligible=0,
                embedded=0,
                skipped=0,
                no_op=True,
            )

        items = [
            (combined_text(title, body) if needed else "", needed)
            for title, body, needed in zip(frame["title"], frame["body"], mask)
        ]
        ids = frame["id"].tolist()
        fresh, report = await self._schedule(items, ids)

        existing = frame["embeddings"].tolist()
        fresh, dropped = self._drop_dimension_mismatches(existing, fresh, ids)
        merged = coalesce(existing, fresh)

        out = frame[COLUMNS].copy()
        out["embeddings"] = pd.Series(object_column(merged), index=out.index, dtype=object)
        await asyncio.to_thread(self.store.write, out, output_path)

        summary = BrewSummary(
            input_path=str(input_path),
            output_path=str(output_path),
            total_records=len(frame),
            eligible=eligible,
            embedded=report.embedded - dropped,
            skipped=report.skipped + dropped,
            dropped_dimension=dropped,
        )
        self.logger.info(
            "Brew complete: %d/%d embedded, %d skipped (rerun to retry skipped records)",
            summary.embedded,
            summary.eligible,
            summary.skipped,
        )
        return summary

    async def _schedule(self, items, ids):
        if self.scheduler is not None:
            return await self.scheduler.schedule_with_report(items, keys=ids)

        # built only once there is work; the service owns its embedder
        scheduler = self.scheduler_factory()
        async with scheduler.embedder:
            return await scheduler.schedule_with_report(items, keys=ids)

    def _drop_dimension_mismatches(
        self,
        existing: Sequence[Any],
        fresh: Sequence[Optional[np.ndarray]],
        ids: Sequence[Any],
    ) -> tuple[List[Optional[np.ndarray]], int]:
        """A corpus holds one vector dimension; fresh vectors of another length stay absent."""
        dim = embedding_dimension(existing) or embedding_dimension(fresh)
        kept: List[Optional[np.ndarray]] = []
        dropped = 0
        for record_id, vec in zip(ids, fresh):
            if vec is not None and len(vec) != dim:
                self.logger.warning(
                    "Dropping embedding for record %s: dimension %d != corpus dimension %s",
                    record_id,
                    len(vec),
                    dim,
                )
                kept.append(None)
                dropped += 1
            else:
                kept.append(vec)
        return kept, dropped
