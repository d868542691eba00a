from .base import CacheRecord, CacheStore, UserRecord, UserStore
from .cache_repository import RestCacheStore, SqlCacheStore
from .user_repository import RestUserStore, SqlUserStore

__all__ = [
    "CacheRecord", "CacheStore", "UserRecord", "UserStore",
    "SqlCacheStore", "RestCacheStore", "SqlUserStore", "RestUserStore",
]
