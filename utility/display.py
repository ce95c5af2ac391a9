# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: display.py
# -----------------------------------------------------------------------------
from dataclasses import asdict
from typing import Sequence

import pandas as pd

from services.QASearchService import SearchHit


def hits_to_frame(hits: Sequence[SearchHit]) -> pd.DataFrame:
    """Rows of (id url, title, score) in rank order."""
    rows = [asdict(h) for h in hits]
    frame = pd.DataFrame(rows, columns=["id", "url", "title", "score"])
    return frame[["url", "title", "score"]].rename(columns={"url": "id"})


def format_hits(hits: Sequence[SearchHit], *, max_rows: int = 20, str_len: int = 50) -> str:
    """
    Render search hits as a text table. Display limits are parameters,
    applied through a local pandas option_context.
    """
    if not hits:
        return "No results (corpus has no embedded records)"

    frame = hits_to_frame(hits).head(max_rows).copy()
    # ids stay whole so they can be clicked
    frame["title"] = frame["title"].map(lambda s: s if len(s) <= str_len else s[: max(str_len - 3, 0)] + "...")

    with pd.option_context(
        "display.max_rows", max_rows,
        "display.max_colwidth", None,
        "display.width", None,
        "display.float_format", "{:.6f}".format,
    ):
        return frame.to_string(index=False)
