"""Database initialization utilities.

Database Lifecycle Operations:
- create_database(): Initialize schema from SQLAlchemy models
- drop_database(): Remove all tables (destructive operation)
- reset_database(): Complete refresh (drop + create)

All three are idempotent: create_all() skips existing tables and drop_all()
skips missing ones, so the season initializer can re-run them safely.
"""

import logging
from pathlib import Path

from sqlalchemy.engine import Engine

from .models import Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(engine: Engine) -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = engine.url
    if url.get_backend_name() != "sqlite":
        return
    if not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_database(engine: Engine) -> None:
    """Create database schema and all tables from SQLAlchemy models.

    Raises:
        Exception: Any engine error, after logging it with its stack trace
    """
    try:
        _ensure_sqlite_directory(engine)
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception:
        logger.exception("Failed to create database")
        raise


def drop_database(engine: Engine) -> None:
    """Drop all database tables - DESTRUCTIVE OPERATION.

    WARNING: This operation cannot be undone. All league data will be lost.
    """
    try:
        Base.metadata.drop_all(bind=engine)
        logger.info("Database tables dropped successfully")
    except Exception:
        logger.exception("Failed to drop database")
        raise


def reset_database(engine: Engine) -> None:
    """Reset database by dropping and recreating all tables."""
    logger.info("Resetting database...")
    drop_database(engine)
    create_database(engine)
    logger.info("Database reset complete")
