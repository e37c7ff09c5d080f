"""Write lock that serializes the league's canonical write paths.

Three operations must never interleave:

1) appending newly completed games to the game table
2) applying a roster add/drop swap
3) recomputing eligibility counts

Two scheduled ingestion ticks can fire close together, so every one of these
paths runs inside ``WriteLock.hold()``.

How it works:
- The token lives in the key-value store as JSON ``{"owner", "acquired_at"}``
  so it is visible to every process sharing the database.
- Acquiring inserts the token row. The primary key makes the insert atomic, so
  when two processes race exactly one insert lands and the other sees the row
  as held. A process-local RLock only keeps threads of one process from
  hammering the database.
- A token older than ``stale_after`` seconds belongs to a crashed writer and is
  stolen, with a warning. The steal is a conditional update against the exact
  stale token, so only one waiter wins it.
- Release deletes the row only while it still holds our token.
- A writer that cannot get the token within ``wait_timeout`` seconds gets
  ConcurrencyError and must retry later. Nothing proceeds without the lock.
- The lock is re-entrant for the thread that holds it, so a transaction apply
  that also recomputes eligibility takes the token once.

Usage:
    lock = WriteLock(kv, "league-write")
    with lock.hold(reason="append games"):
        ...
"""

import json
import logging
import os
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..exceptions import ConcurrencyError
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "lock:"

_PROCESS_LOCKS: dict[str, threading.RLock] = {}
_PROCESS_LOCKS_GUARD = threading.Lock()


def _process_lock(name: str) -> threading.RLock:
    with _PROCESS_LOCKS_GUARD:
        if name not in _PROCESS_LOCKS:
            _PROCESS_LOCKS[name] = threading.RLock()
        return _PROCESS_LOCKS[name]


class WriteLock:
    """Mutual-exclusion token with a stale-lock timeout."""

    def __init__(
        self,
        kv: KeyValueStore,
        name: str = "league-write",
        stale_after: float = 30.0,
        wait_timeout: float = 10.0,
        poll_interval: float = 0.1,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.kv = kv
        self.name = name
        self.key = f"{LOCK_KEY_PREFIX}{name}"
        self.stale_after = stale_after
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self.clock = clock
        self.sleep = sleep
        self._local = threading.local()

    def _owner_token(self) -> str:
        token = getattr(self._local, "token", None)
        if token is None:
            token = f"{os.getpid()}:{threading.get_ident()}:{uuid.uuid4().hex[:8]}"
            self._local.token = token
        return token

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def _token_age(self, raw: str, now: float) -> float:
        try:
            acquired_at = float(json.loads(raw).get("acquired_at", 0))
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError):
            logger.warning(f"Lock '{self.name}' holds an unreadable token; treating it as stale")
            return float("inf")
        return now - acquired_at

    def _try_acquire(self, owner: str) -> bool:
        with _process_lock(self.name):
            now = self.clock()
            token = json.dumps({"acquired_at": now, "owner": owner}, sort_keys=True)
            if self.kv.add(self.key, token):
                self._local.raw = token
                return True

            current = self.kv.get(self.key)
            if current is None:
                # Released between our insert and the read
                acquired = self.kv.add(self.key, token)
            else:
                age = self._token_age(current, now)
                if age < self.stale_after:
                    return False
                logger.warning(f"Stealing stale lock '{self.name}' ({current}) after {age:.1f}s")
                # Only one of several waiters can replace the exact stale token
                acquired = self.kv.replace(self.key, current, token)
            if acquired:
                self._local.raw = token
            return acquired

    def acquire(self, reason: str = "") -> None:
        """Take the token, waiting up to ``wait_timeout`` seconds.

        Raises:
            ConcurrencyError: If another writer still holds a fresh token
        """
        if self._depth() > 0:
            self._local.depth += 1
            return

        owner = self._owner_token()
        deadline = self.clock() + self.wait_timeout
        while not self._try_acquire(owner):
            if self.clock() >= deadline:
                label = f" for {reason}" if reason else ""
                raise ConcurrencyError(
                    f"Could not acquire lock '{self.name}'{label} within {self.wait_timeout}s"
                )
            self.sleep(self.poll_interval)

        self._local.depth = 1
        logger.debug(f"Acquired lock '{self.name}' ({reason or 'no reason given'})")

    def release(self) -> None:
        depth = self._depth()
        if depth == 0:
            return
        self._local.depth = depth - 1
        if self._local.depth > 0:
            return

        with _process_lock(self.name):
            # Delete only our own token; a writer that stole it after we went stale keeps it
            if not self.kv.delete(self.key, expected=self._local.raw):
                logger.warning(f"Lock '{self.name}' was taken over before release")

    def is_held(self) -> bool:
        current = self.kv.get_json(self.key)
        if not current:
            return False
        return self.clock() - float(current.get("acquired_at", 0)) < self.stale_after

    @contextmanager
    def hold(self, reason: str = "") -> Iterator[None]:
        self.acquire(reason)
        try:
            yield
        finally:
            self.release()
