from typing import Iterable, List, Optional

import structlog

from ..repositories import CacheRecord, CacheStore
from ..schemas.responses import CachedSourceResponse
from ..sources import SourceConfig, SourceRegistry
from ..utils.time_utils import current_millis

logger = structlog.get_logger(__name__)


def is_fresh(record: CacheRecord, config: SourceConfig, now: int) -> bool:
    return now - record.updated < config.interval


class FreshnessEvaluator:
    """
    Annotates cached batches with read-time freshness.

    A fresh record reports ``updatedTime = now``; a stale one reports its
    original write time so the caller can schedule a refresh. Sources
    without a cached record are left out of the result.
    """

    def __init__(self, registry: SourceRegistry):
        self.registry = registry

    def stamp(self, record: CacheRecord, now: int) -> Optional[CachedSourceResponse]:
        config = self.registry.get(record.id)
        if config is None:
            return None
        fresh = is_fresh(record, config, now)
        return CachedSourceResponse(
            id=record.id,
            items=record.items,
            updated_time=now if fresh else record.updated,
            fresh=fresh,
        )

    async def evaluate(
        self,
        store: Optional[CacheStore],
        source_ids: Optional[Iterable[str]],
        now: Optional[int] = None,
    ) -> List[CachedSourceResponse]:
        ids = self.registry.known(source_ids or [])
        if store is None or not ids:
            return []

        records = await store.get_entire(ids)
        now = current_millis() if now is None else now
        responses = [r for r in (self.stamp(record, now) for record in records) if r is not None]

        logger.info(
            "cache_freshness_evaluated",
            requested=len(ids),
            cached=len(responses),
            fresh=sum(1 for r in responses if r.fresh),
        )
        return responses
