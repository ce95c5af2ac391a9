# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: errors.py
# -----------------------------------------------------------------------------
from typing import Optional


class CorpusSchemaError(ValueError):
    """Corpus file, XML post or mask is malformed. Always fatal for the invocation."""


class QueryEmbeddingError(RuntimeError):
    """
    The search query could not be embedded.

    reason is one of the EmbeddingOutcome skip reasons
    ("token_limit", "provider_error", "timeout", "malformed_response").
    """

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or f"Query embedding failed: {reason}")
