"""
Cache-or-fetch path for a single source.

Serves the cached batch while it is fresh (or young enough and no refresh
was forced), otherwise calls the source's fetcher and writes the result
back to the cache. A failed fetch falls back to whatever is cached.
"""

from typing import Any, Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel

from ..exceptions import FetchError, FetcherNotFoundError, SourceNotFoundError, WriteError
from ..repositories import CacheRecord, CacheStore
from ..schemas.responses import SourceResponse
from ..sources import SourceRegistry, get_fetcher
from ..utils.time_utils import current_millis
from .freshness import is_fresh

logger = structlog.get_logger(__name__)


def _to_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True, exclude_none=True)
    return dict(item)


class SourceService:

    def __init__(
        self,
        registry: SourceRegistry,
        store: Optional[CacheStore],
        cache_ttl_ms: int,
        max_items: int = 30,
        clock: Callable[[], int] = current_millis,
    ):
        self.registry = registry
        self.store = store
        self.cache_ttl_ms = cache_ttl_ms
        self.max_items = max_items
        self.clock = clock

    async def get_source(self, source_id: str, latest: bool = False) -> SourceResponse:
        config = self.registry.get(source_id)
        if config is None:
            raise SourceNotFoundError(f"Invalid source id: {source_id}")

        now = self.clock()
        cache = await self.store.get(source_id) if self.store else None

        if cache:
            if is_fresh(cache, config, now):
                return SourceResponse(status="success", id=source_id, updated_time=now, items=cache.items)
            if not latest and now - cache.updated < self.cache_ttl_ms:
                return self._from_cache(cache)

        try:
            items = await self._fetch(source_id)
        except FetcherNotFoundError:
            if cache:
                return self._from_cache(cache)
            raise
        except Exception as e:
            logger.error("source_fetch_failed", source_id=source_id, error=str(e), exc_info=e)
            if cache:
                return self._from_cache(cache)
            raise FetchError(f"Failed to fetch {source_id}: {e}") from e

        if self.store and items:
            try:
                await self.store.set(source_id, items)
            except WriteError as e:
                logger.warning("cache_write_failed", source_id=source_id, error=str(e))

        return SourceResponse(status="success", id=source_id, updated_time=now, items=items)

    async def _fetch(self, source_id: str) -> List[Dict[str, Any]]:
        fetcher = get_fetcher(source_id)
        if fetcher is None:
            raise FetcherNotFoundError(f"No fetcher registered for {source_id}")
        items = await fetcher()
        logger.info("source_fetched", source_id=source_id, item_count=len(items))
        return [_to_dict(item) for item in items[: self.max_items]]

    @staticmethod
    def _from_cache(cache: CacheRecord) -> SourceResponse:
        return SourceResponse(status="cache", id=cache.id, updated_time=cache.updated, items=cache.items)
