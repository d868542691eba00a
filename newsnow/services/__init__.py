from .cache_factory import (
    Available, CacheHandle, Disabled, build_cache_handle, build_user_store, close_cache_handle,
)
from .freshness import FreshnessEvaluator, is_fresh
from .source_service import SourceService

__all__ = [
    "Available", "CacheHandle", "Disabled", "build_cache_handle", "build_user_store",
    "close_cache_handle", "FreshnessEvaluator", "is_fresh", "SourceService",
]
