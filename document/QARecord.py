# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QARecord
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class QARecord:
    """
    One question post in the corpus.
    embedding is None until the brew stage computes it, and never changes afterwards.
    """
    id: int
    title: str
    body: str
    tags: str
    embedding: Optional[np.ndarray] = None

    def short_preview(self, n: int = 80) -> str:
        """Return a compact preview for logging/debugging."""
        clean = " ".join(self.title.split())
        preview = (clean[:n] + "...") if len(clean) > n else clean
        state = "embedded" if self.embedding is not None else "absent"
        return f"[{self.id} | {state}] {preview}"


def combined_text(title: str, body: str) -> str:
    return f"Title: {title} Body: {body}"
