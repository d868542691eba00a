from typing import Any, Callable, Dict, Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..core.connectors import RestConnector, SqlConnector, eq
from ..exceptions import DeleteError, ReadError, SchemaInitError, UserNotFoundError, WriteError
from ..models.user_account import UserAccount
from ..utils.time_utils import current_millis
from .base import UserRecord, UserStore

logger = structlog.get_logger(__name__)

USER_TABLE = UserAccount.__tablename__
USER_COLUMNS = "id,email,data,type,created,updated"


class SqlUserStore(UserStore):

    def __init__(self, connector: SqlConnector, clock: Callable[[], int] = current_millis):
        self.connector = connector
        self.clock = clock
        self.table = UserAccount.__table__

    async def init(self) -> None:
        try:
            await self.connector.create_tables([self.table])
        except SQLAlchemyError as e:
            raise SchemaInitError(f"Failed to create user table: {e}") from e
        logger.info("user_table_initialized", backend=self.connector.kind.value)

    async def add_user(self, id: str, email: str, type: str) -> None:
        """Insert a user, or refresh email/type of an existing one.

        Stored ``data`` and ``created`` survive a repeated login.
        """
        now = self.clock()
        stmt = self.connector.insert(self.table).values(
            id=id, email=email, data="", type=type, created=now, updated=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={
                "email": stmt.excluded.email,
                "type": stmt.excluded.type,
                "updated": stmt.excluded.updated,
            },
        )
        await self.connector.run(stmt)
        logger.info("user_upserted", id=id)

    async def get_user(self, id: str) -> Optional[UserRecord]:
        rows = await self.connector.execute(select(self.table).where(self.table.c.id == id))
        if not rows:
            return None
        return UserRecord(**rows[0])

    async def set_data(self, id: str, data: str, updated: Optional[int] = None) -> None:
        stmt = (
            update(self.table)
            .where(self.table.c.id == id)
            .values(data=data, updated=updated if updated is not None else self.clock())
        )
        await self.connector.run(stmt)
        logger.info("user_data_set", id=id)

    async def get_data(self, id: str) -> Dict[str, Any]:
        stmt = select(self.table.c.data, self.table.c.updated).where(self.table.c.id == id)
        rows = await self.connector.execute(stmt)
        if not rows:
            raise UserNotFoundError(f"user {id} not found")
        return rows[0]

    async def delete_user(self, id: str) -> None:
        try:
            await self.connector.run(delete(self.table).where(self.table.c.id == id))
        except WriteError as e:
            raise DeleteError(f"Failed to delete user {id}: {e}") from e
        logger.info("user_deleted", id=id)


class RestUserStore(UserStore):

    def __init__(self, connector: RestConnector, clock: Callable[[], int] = current_millis):
        self.connector = connector
        self.clock = clock

    async def init(self) -> None:
        try:
            await self.connector.select(USER_TABLE, "id", limit=1)
        except ReadError as e:
            raise SchemaInitError(f"User table is not available: {e}") from e

    async def add_user(self, id: str, email: str, type: str) -> None:
        now = self.clock()
        existing = await self.get_user(id)
        if existing is None:
            await self.connector.insert(
                USER_TABLE,
                {"id": id, "email": email, "data": "", "type": type, "created": now, "updated": now},
            )
        elif existing.email != email or existing.type != type:
            await self.connector.update(
                USER_TABLE, {"email": email, "type": type, "updated": now}, {"id": eq(id)}
            )
        logger.info("user_upserted", id=id)

    async def get_user(self, id: str) -> Optional[UserRecord]:
        rows = await self.connector.select(USER_TABLE, USER_COLUMNS, {"id": eq(id)})
        if not rows:
            return None
        return UserRecord(**{k: rows[0].get(k) for k in USER_COLUMNS.split(",")})

    async def set_data(self, id: str, data: str, updated: Optional[int] = None) -> None:
        await self.connector.update(
            USER_TABLE,
            {"data": data, "updated": updated if updated is not None else self.clock()},
            {"id": eq(id)},
        )
        logger.info("user_data_set", id=id)

    async def get_data(self, id: str) -> Dict[str, Any]:
        rows = await self.connector.select(USER_TABLE, "data,updated", {"id": eq(id)})
        if not rows:
            raise UserNotFoundError(f"user {id} not found")
        return rows[0]

    async def delete_user(self, id: str) -> None:
        try:
            await self.connector.delete(USER_TABLE, {"id": eq(id)})
        except WriteError as e:
            raise DeleteError(f"Failed to delete user {id}: {e}") from e
        logger.info("user_deleted", id=id)
