from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends

from ...dependencies import get_cache_handle
from ....config import get_settings
from ....services import Available, CacheHandle

logger = structlog.get_logger(__name__)
settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check(handle: CacheHandle = Depends(get_cache_handle)) -> Dict[str, Any]:
    if isinstance(handle, Available):
        cache_status = {"available": True, "backend": handle.connector.kind.value}
    else:
        cache_status = {"available": False, "reason": handle.reason}

    # Cache outages degrade to live fetches, so they do not fail the check.
    return {
        "status": "healthy",
        "service": "NewsNow API",
        "version": "0.1.0",
        "environment": "development" if settings.debug else "production",
        "cache": cache_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
