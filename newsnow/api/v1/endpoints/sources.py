from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from ...dependencies import get_cache_table, get_freshness_evaluator, get_source_service
from ....exceptions import FetchError, SourceNotFoundError
from ....repositories import CacheStore
from ....schemas.requests import EntireRequest
from ....schemas.responses import CachedSourceResponse, SourceResponse
from ....services import FreshnessEvaluator, SourceService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/entire", response_model=List[CachedSourceResponse])
async def get_entire_sources(
    request: EntireRequest,
    store: Optional[CacheStore] = Depends(get_cache_table),
    evaluator: FreshnessEvaluator = Depends(get_freshness_evaluator),
):
    """
    Batch read of cached sources.

    Sources without cached data are omitted; the client fetches them
    individually. Cache trouble never turns into an error response.
    """
    try:
        return await evaluator.evaluate(store, request.sources)
    except Exception as e:
        logger.error("entire_lookup_failed", error=str(e), exc_info=e)
        return []


@router.get("", response_model=SourceResponse)
async def get_source(
    id: str = Query(..., description="Source id"),
    latest: bool = Query(False, description="Bypass the cache TTL and refresh now"),
    source_service: SourceService = Depends(get_source_service),
):
    """Get one source, from cache when possible"""
    try:
        return await source_service.get_source(id, latest=latest)
    except SourceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=500, detail=str(e))
