"""
Storage connectors for the cache and user tables.

Two structurally different backends are supported:
- SqlConnector wraps a SQLAlchemy engine (embedded SQLite or PostgreSQL)
  and executes bound Core statements on a worker thread.
- RestConnector talks to a PostgREST style table API (Supabase) over httpx.

Each connector carries an explicit BackendKind chosen at configuration time.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import httpx
import structlog
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings
from ..exceptions import ConfigurationError, ReadError, WriteError
from .database import create_database_engine, create_tables

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BackendKind(str, Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    SUPABASE = "supabase"

    @property
    def manages_schema(self) -> bool:
        """Whether the application may create tables on this backend.

        Managed PostgreSQL and Supabase schemas are provisioned out-of-band.
        """
        return self is BackendKind.SQLITE


class StorageConnector:
    """Common surface shared by every connector."""

    kind: BackendKind

    async def close(self) -> None:
        pass


class SqlConnector(StorageConnector):

    def __init__(self, engine: Engine, kind: BackendKind = BackendKind.SQLITE):
        self.engine = engine
        self.kind = kind

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def insert(self, table):
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.dialect_name == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    async def _in_executor(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def execute(self, statement) -> List[Dict[str, Any]]:
        """Run a read statement and return rows as plain dicts."""
        def fetch():
            with self.engine.connect() as conn:
                return [dict(row) for row in conn.execute(statement).mappings()]

        try:
            return await self._in_executor(fetch)
        except SQLAlchemyError as e:
            raise ReadError(str(e)) from e

    async def run(self, statement) -> int:
        """Run a write statement in its own transaction and return the rowcount."""
        def write():
            with self.engine.begin() as conn:
                return conn.execute(statement).rowcount

        try:
            return await self._in_executor(write)
        except SQLAlchemyError as e:
            raise WriteError(str(e)) from e

    async def create_tables(self, tables) -> None:
        await self._in_executor(lambda: create_tables(self.engine, tables=tables))

    async def close(self) -> None:
        await self._in_executor(self.engine.dispose)


def eq(value: Any) -> str:
    return f"eq.{value}"


def quote_filter_value(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def in_(values: Iterable[str]) -> str:
    """PostgREST ``in`` filter with every value quoted, so commas and
    parentheses inside ids cannot break out of the list."""
    return "in.(" + ",".join(quote_filter_value(v) for v in values) + ")"


class RestConnector(StorageConnector):

    def __init__(
        self,
        base_url: str,
        api_key: str,
        kind: BackendKind = BackendKind.SUPABASE,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.kind = kind
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def select(
        self,
        table: str,
        columns: str,
        filters: Optional[Dict[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": columns, **(filters or {})}
        if limit is not None:
            params["limit"] = str(limit)
        try:
            response = await self.client.get(f"/{table}", params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ReadError(_describe(e)) from e

    async def upsert(self, table: str, row: Dict[str, Any], on_conflict: str = "id") -> None:
        await self._write(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def insert(self, table: str, row: Dict[str, Any]) -> None:
        await self._write("POST", table, json=row, prefer="return=minimal")

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, str]) -> None:
        await self._write("PATCH", table, params=filters, json=values, prefer="return=minimal")

    async def delete(self, table: str, filters: Dict[str, str]) -> None:
        await self._write("DELETE", table, params=filters, prefer="return=minimal")

    async def _write(self, method: str, table: str, params=None, json=None, prefer: str = "") -> None:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self.client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise WriteError(_describe(e)) from e

    async def close(self) -> None:
        await self.client.aclose()


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"{error.response.status_code}: {error.response.text}"
    return str(error) or error.__class__.__name__


def create_connector(settings: Settings) -> StorageConnector:
    """Build the connector selected by ``settings.database_backend``."""
    try:
        kind = BackendKind(settings.database_backend)
    except ValueError as e:
        raise ConfigurationError(f"Unknown database backend: {settings.database_backend}") from e

    if kind is BackendKind.SUPABASE:
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
        connector = RestConnector(
            settings.supabase_url,
            settings.supabase_key,
            kind=kind,
            timeout=settings.rest_timeout_seconds,
        )
    else:
        if not settings.database_url:
            raise ConfigurationError(f"DATABASE_URL is required for the {kind.value} backend")
        engine = create_database_engine(settings.database_url, debug=settings.debug)
        connector = SqlConnector(engine, kind=kind)

    logger.info("storage_connector_created", backend=kind.value)
    return connector
