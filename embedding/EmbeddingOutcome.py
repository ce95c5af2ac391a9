# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-02-03
# Description: EmbeddingOutcome
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Optional

import numpy as np

TOKEN_LIMIT = "token_limit"
PROVIDER_ERROR = "provider_error"
TIMEOUT = "timeout"
MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class EmbeddingOutcome:
    """Result of one embedding call: a vector, or the reason it was skipped."""
    vector: Optional[np.ndarray] = None
    skip_reason: Optional[str] = None
    token_count: Optional[int] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.vector is not None

    @classmethod
    def embedded(cls, vector: np.ndarray, *, token_count: int, attempts: int) -> "EmbeddingOutcome":
        return cls(vector=vector, token_count=token_count, attempts=attempts)

    @classmethod
    def skipped(cls, reason: str, *, token_count: Optional[int] = None, attempts: int = 0) -> "EmbeddingOutcome":
        return cls(skip_reason=reason, token_count=token_count, attempts=attempts)
