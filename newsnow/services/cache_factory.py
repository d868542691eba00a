"""
Construction and lifecycle of the cache table.

The handle is built once at startup and injected into request handlers.
A disabled or broken cache is represented explicitly, never as an exception.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

import structlog

from ..config import Settings
from ..core.connectors import BackendKind, StorageConnector, create_connector
from ..exceptions import SchemaInitError
from ..repositories import (
    CacheStore, RestCacheStore, RestUserStore, SqlCacheStore, SqlUserStore, UserStore,
)
from ..utils.time_utils import current_millis

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Available:
    store: CacheStore
    connector: StorageConnector


@dataclass(frozen=True)
class Disabled:
    reason: str


CacheHandle = Union[Available, Disabled]


def create_cache_store(connector: StorageConnector, clock: Callable[[], int] = current_millis) -> CacheStore:
    if connector.kind is BackendKind.SUPABASE:
        return RestCacheStore(connector, clock=clock)
    return SqlCacheStore(connector, clock=clock)


def create_user_store(connector: StorageConnector, clock: Callable[[], int] = current_millis) -> UserStore:
    if connector.kind is BackendKind.SUPABASE:
        return RestUserStore(connector, clock=clock)
    return SqlUserStore(connector, clock=clock)


def should_init_schema(settings: Settings, connector: StorageConnector) -> bool:
    if not settings.init_table:
        return False
    if not connector.kind.manages_schema:
        logger.info("schema_init_skipped", backend=connector.kind.value)
        return False
    return True


async def build_cache_handle(
    settings: Settings,
    connector: Optional[StorageConnector] = None,
    clock: Callable[[], int] = current_millis,
) -> CacheHandle:
    if not settings.enable_cache:
        logger.info("cache_disabled_by_configuration")
        return Disabled("cache disabled by configuration")

    owns_connector = connector is None
    try:
        connector = connector or create_connector(settings)
        store = create_cache_store(connector, clock=clock)
    except Exception as e:
        logger.error("cache_connector_unavailable", error=str(e), exc_info=e)
        return Disabled(f"storage connector unavailable: {e}")

    if should_init_schema(settings, connector):
        try:
            await store.init()
        except SchemaInitError as e:
            # Best effort: the table may already exist or appear later.
            logger.warning("cache_schema_init_failed", error=str(e))
        except Exception as e:
            logger.error("cache_init_failed", error=str(e), exc_info=e)
            if owns_connector:
                await connector.close()
            return Disabled(f"cache initialization failed: {e}")

    logger.info("cache_available", backend=connector.kind.value)
    return Available(store=store, connector=connector)


async def build_user_store(settings: Settings, handle: CacheHandle) -> Optional[UserStore]:
    """User table on the same connector as the cache."""
    if not isinstance(handle, Available):
        return None
    users = create_user_store(handle.connector)
    if should_init_schema(settings, handle.connector):
        try:
            await users.init()
        except SchemaInitError as e:
            logger.warning("user_schema_init_failed", error=str(e))
    return users


async def close_cache_handle(handle: CacheHandle) -> None:
    if isinstance(handle, Available):
        await handle.connector.close()
