# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-03
# Description: search router
# -----------------------------------------------------------------------------
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_corpus_path, get_search_service
from api.schemas.search import SearchHitModel, SearchRequest, SearchResponse
from embedding.EmbeddingOutcome import TOKEN_LIMIT
from services.QASearchService import QASearchService
from utility.errors import CorpusSchemaError, QueryEmbeddingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def post_search(
    req: SearchRequest,
    svc: QASearchService = Depends(get_search_service),
    corpus_path: str = Depends(get_corpus_path),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        hits = await svc.search(corpus_path, query_text, top_k=req.top_k)
    except QueryEmbeddingError as e:
        logger.warning("Query embedding failed (%s): %s", e.reason, e)
        status = 400 if e.reason == TOKEN_LIMIT else 502
        raise HTTPException(status_code=status, detail=str(e))
    except FileNotFoundError as e:
        logger.error("Corpus not found: %s", e)
        raise HTTPException(status_code=404, detail=str(e))
    except (CorpusSchemaError, ValueError) as e:
        logger.exception("Search failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Search failed: {e}")

    return SearchResponse(
        query=query_text,
        top_k=svc.default_top_k if req.top_k is None else req.top_k,
        results=[SearchHitModel(**asdict(h)) for h in hits],
    )
