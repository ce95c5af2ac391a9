# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Updated: 2026-02-03
# Description: QAPostsExtractor
# -----------------------------------------------------------------------------
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterator, List

from bs4 import BeautifulSoup

from document.QARecord import QARecord
from utility.errors import CorpusSchemaError
from utility.logging_utils import get_class_logger

QUESTION_POST_TYPE = "1"
U32_MAX = 2 ** 32 - 1


def strip_html(html: str) -> str:
    """Drop markup, keep the text (entities decoded)."""
    return BeautifulSoup(html, "html.parser").get_text()


class QAPostsExtractor:
    """
    Reads a Stack Exchange Posts.xml dump and yields question records.

    A row is kept when PostTypeId == 1 (question) and Score >= 0.
    Kept rows must carry Id, Title, Body and Tags; anything else is a
    CorpusSchemaError.
    """

    def __init__(self, logger=None):
        self.logger = logger or get_class_logger(self.__class__)

    def iter_records(self, source: str | Path) -> Iterator[QARecord]:
        root = None
        try:
            for event, elem in ET.iterparse(str(source), events=("start", "end")):
                if event == "start":
                    if root is None:
                        root = elem
                    continue
                if elem.tag != "row":
                    continue
                attrs = dict(elem.attrib)
                # detach finished rows; Posts.xml dumps run to several GB
                root.clear()
                if self._is_kept_question(attrs):
                    yield self._to_record(attrs)
        except ET.ParseError as e:
            raise CorpusSchemaError(f"Malformed posts XML '{source}': {e}") from e

    def extract(self, source: str | Path) -> List[QARecord]:
        start = time.time()
        records = list(self.iter_records(source))
        elapsed = (time.time() - start) * 1000.0
        self.logger.info("Extracted %d questions from '%s' (%.1f ms)", len(records), source, elapsed)
        if records:
            self.logger.debug("First record: %s", records[0].short_preview())
        return records

    # -------------------------------------------------------------------------
    @staticmethod
    def _is_kept_question(attrs: Dict[str, str]) -> bool:
        if attrs.get("PostTypeId") != QUESTION_POST_TYPE:
            return False
        score = attrs.get("Score")
        if score is None:
            return False
        try:
            return int(score) >= 0
        except ValueError as e:
            raise CorpusSchemaError(f"Post {attrs.get('Id')!r}: Score {score!r} is not an integer") from e

    @staticmethod
    def _to_record(attrs: Dict[str, str]) -> QARecord:
        missing = [k for k in ("Id", "Title", "Body", "Tags") if k not in attrs]
        if missing:
            raise CorpusSchemaError(f"Question post {attrs.get('Id')!r} is missing attributes: {missing}")

        try:
            post_id = int(attrs["Id"])
        except ValueError as e:
            raise CorpusSchemaError(f"Question Id {attrs['Id']!r} is not an integer") from e
        if not 0 <= post_id <= U32_MAX:
            raise CorpusSchemaError(f"Question Id {post_id} does not fit in u32")

        return QARecord(
            id=post_id,
            title=attrs["Title"],
            body=strip_html(attrs["Body"].strip()),
            tags=attrs["Tags"],
        )
