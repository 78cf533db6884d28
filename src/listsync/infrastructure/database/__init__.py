"""SQLite reference store schema and engine via SQLAlchemy Core."""

from listsync.infrastructure.database.engine import create_db_engine, init_database
from listsync.infrastructure.database.schema import items, metadata

__all__ = [
    "create_db_engine",
    "init_database",
    "items",
    "metadata",
]
