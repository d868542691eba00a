import json

import httpx
import pytest

from newsnow.config import Settings
from newsnow.core.connectors import BackendKind, RestConnector, SqlConnector
from newsnow.core.database import create_database_engine
from newsnow.repositories import RestCacheStore, RestUserStore, SqlCacheStore, SqlUserStore
from newsnow.sources import SourceConfig, SourceRegistry


class FakeClock:
    def __init__(self, now: int = 1000):
        self.now = now

    def __call__(self) -> int:
        return self.now


def _parse_in(arg: str):
    inner = arg[1:-1]
    values, current, in_quotes, escaped = [], "", False, False
    for ch in inner:
        if escaped:
            current += ch
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            values.append(current)
            current = ""
        else:
            current += ch
    values.append(current)
    return values


class FakePostgrest:
    """Minimal in-memory PostgREST table API for httpx.MockTransport."""

    RESERVED = {"select", "limit", "on_conflict"}

    def __init__(self, tables=("cache", "user")):
        self.tables = {name: {} for name in tables}
        self.requests = []
        self.fail = False

    def _matches(self, row, params):
        for key, value in params.multi_items():
            if key in self.RESERVED:
                continue
            op, _, arg = value.partition(".")
            if op == "eq" and str(row.get(key)) != arg:
                return False
            if op == "in" and str(row.get(key)) not in _parse_in(arg):
                return False
        return True

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(503, json={"message": "service unavailable"})

        table = request.url.path.rsplit("/", 1)[-1]
        if table not in self.tables:
            return httpx.Response(
                404, json={"code": "42P01", "message": f'relation "{table}" does not exist'}
            )
        rows = self.tables[table]
        params = request.url.params
        matched = [row for row in rows.values() if self._matches(row, params)]

        if request.method == "GET":
            columns = params.get("select", "*")
            if columns != "*":
                matched = [{c: row.get(c) for c in columns.split(",")} for row in matched]
            if "limit" in params:
                matched = matched[: int(params["limit"])]
            return httpx.Response(200, json=matched)

        if request.method == "POST":
            row = json.loads(request.content)
            prefer = request.headers.get("Prefer", "")
            if row["id"] in rows and "merge-duplicates" not in prefer:
                return httpx.Response(409, json={"code": "23505", "message": "duplicate key"})
            rows[row["id"]] = {**rows.get(row["id"], {}), **row}
            return httpx.Response(201)

        if request.method == "PATCH":
            values = json.loads(request.content)
            for row in matched:
                row.update(values)
            return httpx.Response(204)

        if request.method == "DELETE":
            for row in matched:
                rows.pop(row["id"], None)
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'newsnow.db'}"


@pytest.fixture
def sqlite_connector(sqlite_url):
    connector = SqlConnector(create_database_engine(sqlite_url), kind=BackendKind.SQLITE)
    yield connector
    connector.engine.dispose()


@pytest.fixture
def fake_postgrest():
    return FakePostgrest()


@pytest.fixture
async def rest_connector(fake_postgrest):
    connector = RestConnector(
        "https://example.supabase.co",
        "test-key",
        transport=httpx.MockTransport(fake_postgrest),
    )
    yield connector
    await connector.close()


@pytest.fixture
async def sql_store(sqlite_connector, clock):
    store = SqlCacheStore(sqlite_connector, clock=clock)
    await store.init()
    return store


@pytest.fixture
def rest_store(rest_connector, clock):
    return RestCacheStore(rest_connector, clock=clock)


@pytest.fixture(params=["sql", "rest"])
async def cache_store(request, sqlite_connector, rest_connector, clock):
    """Each cache test runs against both backends."""
    if request.param == "sql":
        store = SqlCacheStore(sqlite_connector, clock=clock)
        await store.init()
        return store
    return RestCacheStore(rest_connector, clock=clock)


@pytest.fixture(params=["sql", "rest"])
async def user_store(request, sqlite_connector, rest_connector, clock):
    if request.param == "sql":
        store = SqlUserStore(sqlite_connector, clock=clock)
        await store.init()
        return store
    return RestUserStore(rest_connector, clock=clock)


@pytest.fixture
def source_registry():
    return SourceRegistry({
        "hn": SourceConfig(name="Hacker News", interval=500),
        "v2ex": SourceConfig(name="V2EX", interval=10_000),
        "weibo": SourceConfig(name="Weibo", interval=2_000),
        "retired": SourceConfig(name="Retired", interval=1_000, disabled=True),
    })


@pytest.fixture
def make_settings(sqlite_url):
    def factory(**overrides):
        values = {
            "enable_cache": True,
            "init_table": True,
            "database_backend": "sqlite",
            "database_url": sqlite_url,
            "log_format": "text",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return factory
