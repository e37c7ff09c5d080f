"""In-memory cache for values the league reads on every request.

Holds memoized lookups such as the current period, the selectable school
list and scoring snapshots. Every writer calls ``invalidate()`` after it
commits, so a reader never sees a value older than the last write made
through this process.

One instance is created by the composition root and injected into the
components that use it.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LeagueCache:
    """Keyed memo with explicit invalidation."""

    def __init__(self):
        self._values: dict[str, Any] = {}
        self._lock = threading.RLock()

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        with self._lock:
            if key not in self._values:
                self._values[key] = loader()
            return self._values[key]

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._values.clear()
            else:
                self._values.pop(key, None)
        logger.debug(f"Cache invalidated: {key or 'all'}")
