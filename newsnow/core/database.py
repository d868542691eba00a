from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import CreateIndex, CreateTable

Base = declarative_base()


def create_database_engine(database_url: str, debug: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        _ensure_sqlite_directory(database_url)
        return create_engine(
            database_url,
            echo=debug,
            connect_args={"check_same_thread": False, "timeout": 30}
        )
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=debug
    )


def _ensure_sqlite_directory(database_url: str) -> None:
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def create_tables(engine: Engine, tables=None):
    # Import models to register them with Base
    from ..models import cache_entry, user_account  # noqa: F401

    # IF NOT EXISTS keeps concurrent initializers from racing on the check
    with engine.begin() as conn:
        for table in tables or Base.metadata.sorted_tables:
            conn.execute(CreateTable(table, if_not_exists=True))
            for index in table.indexes:
                conn.execute(CreateIndex(index, if_not_exists=True))
