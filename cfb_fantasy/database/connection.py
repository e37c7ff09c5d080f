"""Database connection and session management using SQLAlchemy.

This module builds the engine and session factory for the league database.
It handles:
1. Engine creation from a database URL (SQLite file, in-memory SQLite, PostgreSQL)
2. Session factory configuration for ORM operations
3. Transactional session scopes with commit/rollback and cleanup

Key Concepts for Beginners:

Database Engine: The "connection factory" that manages the actual database
connections.

Session: A workspace for ORM operations. All queries, inserts and updates
happen within a session.

Unit of Work: Each ``session_scope()`` block is one transaction. Either all
of its writes are committed or, if anything raises, none are.

Unlike a module-level engine, ``Database`` is constructed explicitly by the
composition root (CLI or tests) and passed to the services that need it.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the given URL.

    SQLite connections are shared with the draft timer thread, so
    ``check_same_thread`` is disabled. An in-memory SQLite URL gets a
    StaticPool so every session sees the same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,  # Log all SQL queries (useful for debugging)
        pool_pre_ping=True,  # Test connections before use (handles disconnects)
    )


class Database:
    """Engine plus session factory for one league database."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False,  # Require explicit commit (done by session_scope)
            autoflush=False,  # Don't flush changes before every query
            expire_on_commit=False,  # Rows stay readable after the scope closes
            bind=engine,
        )

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "Database":
        return cls(create_db_engine(database_url, echo=echo))

    def get_session(self) -> Generator[Session, None, None]:
        """Get database session with automatic commit/rollback and cleanup.

        Usage:
            for session in db.get_session():
                team = session.query(Team).first()

        If any exception occurs, the transaction is rolled back and the
        exception is re-raised.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Context manager form of ``get_session``.

        Usage:
            with db.session_scope() as session:
                session.add(SchoolRecord(...))
        """
        yield from self.get_session()

    def dispose(self) -> None:
        self.engine.dispose()
