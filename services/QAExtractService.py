# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QAExtractService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from extractor.QAPostsExtractor import QAPostsExtractor
from store.QACorpusStore import QACorpusStore, is_absent
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class ExtractSummary:
    output_path: str
    total_records: int
    carried_embeddings: int = 0


class QAExtractService:
    """
    parse-xml stage: Posts.xml -> corpus Parquet file.

    With keep_embeddings, vectors already present in an existing output file
    are carried over by id so re-extracting a newer dump does not discard
    brewed work.
    """

    def __init__(
        self,
        *,
        extractor: QAPostsExtractor,
        store: QACorpusStore,
        logger: logging.Logger | None = None,
    ) -> None:
        self.extractor = extractor
        self.store = store
        self.logger = logger or get_class_logger(self.__class__)

    def extract_to_corpus(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        keep_embeddings: bool = False,
    ) -> ExtractSummary:
        records = self.extractor.extract(input_path)

        carried = 0
        if keep_embeddings and Path(output_path).is_file():
            previous = self.store.read(output_path)
            existing = {
                int(record_id): vec
                for record_id, vec in zip(previous["id"], previous["embeddings"])
                if not is_absent(vec)
            }
            for record in records:
                vec = existing.get(record.id)
                if vec is not None:
                    record.embedding = vec
                    carried += 1
            self.logger.info("Carried over %d embeddings from '%s'", carried, output_path)

        self.store.write(self.store.from_records(records), output_path)
        return ExtractSummary(
            output_path=str(output_path),
            total_records=len(records),
            carried_embeddings=carried,
        )
