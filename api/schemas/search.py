# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-03
# Description: search.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import Field, BaseModel


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    # None: the service default (QABREW_SEARCH_TOP_K)
    top_k: Optional[int] = Field(None, ge=1, le=100)


class SearchHitModel(BaseModel):
    id: int
    url: str
    title: str
    score: float


class SearchResponse(BaseModel):
    query: str
    top_k: int
    results: List[SearchHitModel]
