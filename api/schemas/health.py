# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-03
# Description: health.py
# -----------------------------------------------------------------------------
from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    message: str


class EmbeddingHealthResponse(BaseModel):
    status: str
    dimension: Optional[int] = None
    elapsed_ms: float
    detail: str
