"""Database engine setup for SQLite with WAL mode.

SQLAlchemy Core (not ORM): the store applies small single-row updates
and the CLI process is short-lived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from listsync.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine with WAL mode enabled.

    ``":memory:"`` creates an in-memory database (one shared connection).
    """
    if str(db_path) == ":memory:":
        from sqlalchemy.pool import StaticPool

        return create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(db_path: Path | str) -> Engine:
    """Create the store database and its tables.

    Idempotent — safe to call on an existing store.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
