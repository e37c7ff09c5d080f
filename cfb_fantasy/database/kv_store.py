"""Durable key-value store backed by the ``kv_store`` table.

Plain get, set and delete, plus insert-if-absent and compare-and-replace for
values that several processes contend for. There are no
transactions across keys; each call is its own unit of work, so callers that
write several keys must be able to recover from a partial write.

Used for eligibility state, write locks, initialization phase status, the
commissioner's Heisman pick, the CFP Top 12 and standings snapshots.
"""

import json
import logging
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from .connection import Database
from .models import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String values under string keys, with JSON helpers."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> str | None:
        with self.db.session_scope() as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        with self.db.session_scope() as session:
            entry = session.get(KeyValueEntry, key)
            if entry:
                entry.value = value
            else:
                session.add(KeyValueEntry(key=key, value=value))

    def add(self, key: str, value: str) -> bool:
        """Insert a value only if the key is absent.

        The primary key makes this atomic across processes.

        Returns:
            False if the key already exists
        """
        try:
            with self.db.session_scope() as session:
                session.add(KeyValueEntry(key=key, value=value))
                session.flush()
        except IntegrityError:
            return False
        return True

    def replace(self, key: str, expected: str, value: str) -> bool:
        """Overwrite a value only if it still equals ``expected``.

        Returns:
            True if this call replaced it
        """
        with self.db.session_scope() as session:
            result = session.execute(
                update(KeyValueEntry)
                .where(KeyValueEntry.key == key, KeyValueEntry.value == expected)
                .values(value=value)
            )
            return result.rowcount == 1

    def delete(self, key: str, expected: str | None = None) -> bool:
        """Remove a key, or only if its value equals ``expected``.

        Returns:
            True if a row was removed
        """
        stmt = delete(KeyValueEntry).where(KeyValueEntry.key == key)
        if expected is not None:
            stmt = stmt.where(KeyValueEntry.value == expected)
        with self.db.session_scope() as session:
            return session.execute(stmt).rowcount == 1

    def keys(self, prefix: str = "") -> list[str]:
        with self.db.session_scope() as session:
            stmt = select(KeyValueEntry.key).where(KeyValueEntry.key.startswith(prefix))
            return sorted(session.scalars(stmt))

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a JSON value.

        A value that is not valid JSON is logged and treated as absent.
        """
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Stored value for '{key}' is not valid JSON; ignoring it")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, sort_keys=True, default=str))
