from typing import Optional

from fastapi import Depends, Request

from ..config import Settings, get_settings
from ..repositories import CacheStore, UserStore
from ..services import Available, CacheHandle, Disabled, FreshnessEvaluator, SourceService
from ..sources import SourceRegistry


def get_cache_handle(request: Request) -> CacheHandle:
    return getattr(request.app.state, "cache", None) or Disabled("cache not initialized")


def get_cache_table(handle: CacheHandle = Depends(get_cache_handle)) -> Optional[CacheStore]:
    """Cache store, or None when the cache layer is unavailable."""
    if isinstance(handle, Available):
        return handle.store
    return None


def get_source_registry(request: Request) -> SourceRegistry:
    registry = getattr(request.app.state, "sources", None)
    if registry is None:
        registry = SourceRegistry()
        request.app.state.sources = registry
    return registry


def get_freshness_evaluator(registry: SourceRegistry = Depends(get_source_registry)) -> FreshnessEvaluator:
    return FreshnessEvaluator(registry)


def get_source_service(
    registry: SourceRegistry = Depends(get_source_registry),
    store: Optional[CacheStore] = Depends(get_cache_table),
    settings: Settings = Depends(get_settings),
) -> SourceService:
    return SourceService(
        registry,
        store,
        cache_ttl_ms=settings.cache_ttl_ms,
        max_items=settings.max_items,
    )


def get_user_store(request: Request) -> Optional[UserStore]:
    """User table, or None when storage is unavailable."""
    return getattr(request.app.state, "users", None)
