"""Database package: ORM models, sessions, key-value store and write lock."""

from .connection import Database, create_db_engine
from .init_db import create_database, drop_database, reset_database
from .kv_store import KeyValueStore
from .locks import WriteLock

__all__ = [
    "Database",
    "KeyValueStore",
    "WriteLock",
    "create_database",
    "create_db_engine",
    "drop_database",
    "reset_database",
]
