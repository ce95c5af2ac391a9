# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-03
# Description: health.py
# -----------------------------------------------------------------------------
import logging
from fastapi import APIRouter, Depends

from api.schemas.health import HealthResponse, EmbeddingHealthResponse
from api.dependencies import get_embedding_health
from health.EmbeddingHealth import EmbeddingHealth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok", message="qabrew API running")


@router.get("/embedding", response_model=EmbeddingHealthResponse)
async def embedding_health_check(
    health: EmbeddingHealth = Depends(get_embedding_health),
) -> EmbeddingHealthResponse:
    logger.info("GET /health/embedding called")
    result = await health.check()
    logger.info("GET /health/embedding completed (ok=%s)", result["ok"])

    return EmbeddingHealthResponse(
        status="ok" if result["ok"] else "error",
        dimension=result["dimension"],
        elapsed_ms=result["elapsed_ms"],
        detail=result["detail"],
    )
