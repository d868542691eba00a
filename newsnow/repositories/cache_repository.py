from typing import Any, Callable, List, Optional, Sequence

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..core.connectors import RestConnector, SqlConnector, eq, in_
from ..exceptions import DeleteError, ReadError, SchemaInitError, WriteError
from ..models.cache_entry import CacheEntry
from ..utils.time_utils import current_millis
from .base import CacheRecord, CacheStore, record_from_row, serialize_items

logger = structlog.get_logger(__name__)

CACHE_TABLE = CacheEntry.__tablename__


def _unique(ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class SqlCacheStore(CacheStore):
    """Cache table over a SQLAlchemy connector (SQLite or PostgreSQL)."""

    def __init__(self, connector: SqlConnector, clock: Callable[[], int] = current_millis):
        self.connector = connector
        self.clock = clock
        self.table = CacheEntry.__table__

    async def init(self) -> None:
        try:
            await self.connector.create_tables([self.table])
        except SQLAlchemyError as e:
            raise SchemaInitError(f"Failed to create cache table: {e}") from e
        logger.info("cache_table_initialized", backend=self.connector.kind.value)

    async def set(self, id: str, items: Sequence[Any]) -> None:
        stmt = self.connector.insert(self.table).values(
            id=id,
            data=serialize_items(items),
            updated=self.clock(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={"data": stmt.excluded.data, "updated": stmt.excluded.updated},
        )
        await self.connector.run(stmt)
        logger.info("cache_set", id=id, item_count=len(items))

    async def get(self, id: str) -> Optional[CacheRecord]:
        stmt = select(self.table.c.id, self.table.c.data, self.table.c.updated).where(
            self.table.c.id == id
        )
        try:
            rows = await self.connector.execute(stmt)
        except ReadError as e:
            logger.warning("cache_get_failed", id=id, error=str(e))
            return None
        if not rows:
            return None
        record = record_from_row(rows[0])
        if record:
            logger.debug("cache_hit", id=id)
        return record

    async def get_entire(self, ids: Sequence[str]) -> List[CacheRecord]:
        keys = _unique(ids)
        if not keys:
            return []
        stmt = select(self.table.c.id, self.table.c.data, self.table.c.updated).where(
            self.table.c.id.in_(keys)
        )
        try:
            rows = await self.connector.execute(stmt)
        except ReadError as e:
            logger.warning("cache_get_entire_failed", requested=len(keys), error=str(e))
            return []
        records = [r for r in (record_from_row(row) for row in rows) if r is not None]
        logger.debug("cache_get_entire", requested=len(keys), found=len(records))
        return records

    async def delete(self, id: str) -> None:
        stmt = delete(self.table).where(self.table.c.id == id)
        try:
            await self.connector.run(stmt)
        except WriteError as e:
            raise DeleteError(f"Failed to delete cache {id}: {e}") from e
        logger.info("cache_deleted", id=id)


class RestCacheStore(CacheStore):
    """Cache table over a PostgREST style REST API (Supabase)."""

    def __init__(self, connector: RestConnector, clock: Callable[[], int] = current_millis):
        self.connector = connector
        self.clock = clock

    async def init(self) -> None:
        # The REST API cannot create relations; only confirm the table is reachable.
        try:
            await self.connector.select(CACHE_TABLE, "id", limit=1)
        except ReadError as e:
            raise SchemaInitError(f"Cache table is not available: {e}") from e
        logger.info("cache_table_verified", backend=self.connector.kind.value)

    async def set(self, id: str, items: Sequence[Any]) -> None:
        await self.connector.upsert(
            CACHE_TABLE,
            {"id": id, "data": serialize_items(items), "updated": self.clock()},
        )
        logger.info("cache_set", id=id, item_count=len(items))

    async def get(self, id: str) -> Optional[CacheRecord]:
        try:
            rows = await self.connector.select(CACHE_TABLE, "id,data,updated", {"id": eq(id)})
        except ReadError as e:
            logger.warning("cache_get_failed", id=id, error=str(e))
            return None
        if not rows:
            return None
        return record_from_row(rows[0])

    async def get_entire(self, ids: Sequence[str]) -> List[CacheRecord]:
        keys = _unique(ids)
        if not keys:
            return []
        try:
            rows = await self.connector.select(CACHE_TABLE, "id,data,updated", {"id": in_(keys)})
        except ReadError as e:
            logger.warning("cache_get_entire_failed", requested=len(keys), error=str(e))
            return []
        records = [r for r in (record_from_row(row) for row in rows) if r is not None]
        logger.debug("cache_get_entire", requested=len(keys), found=len(records))
        return records

    async def delete(self, id: str) -> None:
        try:
            await self.connector.delete(CACHE_TABLE, {"id": eq(id)})
        except WriteError as e:
            raise DeleteError(f"Failed to delete cache {id}: {e}") from e
        logger.info("cache_deleted", id=id)
