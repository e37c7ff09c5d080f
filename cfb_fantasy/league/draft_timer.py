"""Cancellable per-turn countdown for the draft.

A timer is armed for exactly one turn, identified by a turn key. It ticks
once per second on a background thread and can be stopped at any moment;
``stop()`` returns only after the thread has exited, so an old timer can
never fire after the turn it was armed for has moved on.

Usage:
    timer = DraftTimer()
    timer.start("0:2:2", 60, on_expire=handle_expired_turn)
    ...
    timer.stop()   # pick made or draft reset
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[str, int], None]
ExpireCallback = Callable[[str], None]


class DraftTimer:
    """One-turn countdown with an explicit stop signal.

    Args:
        tick_seconds: Length of one tick; tests shorten it
    """

    def __init__(self, tick_seconds: float = 1.0):
        self.tick_seconds = tick_seconds
        self._guard = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._turn_key: str | None = None
        self.remaining: int = 0

    @property
    def active_turn(self) -> str | None:
        with self._guard:
            if self._thread is not None and self._thread.is_alive():
                return self._turn_key
            return None

    def start(
        self,
        turn_key: str,
        seconds: int,
        on_tick: TickCallback | None = None,
        on_expire: ExpireCallback | None = None,
    ) -> None:
        """Arm the countdown for ``turn_key``, replacing any running one."""
        self.stop()
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(turn_key, seconds, stop_event, on_tick, on_expire),
            name=f"draft-timer-{turn_key}",
            daemon=True,
        )
        with self._guard:
            self._stop_event = stop_event
            self._thread = thread
            self._turn_key = turn_key
            self.remaining = seconds
        thread.start()
        logger.debug(f"Draft timer armed for turn {turn_key} ({seconds}s)")

    def stop(self) -> None:
        """Cancel the countdown and wait for its thread to finish."""
        with self._guard:
            stop_event, thread = self._stop_event, self._thread
            self._stop_event = None
            self._thread = None
            self._turn_key = None
        if stop_event is None:
            return
        stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5 * self.tick_seconds + 1)

    def _run(
        self,
        turn_key: str,
        seconds: int,
        stop_event: threading.Event,
        on_tick: TickCallback | None,
        on_expire: ExpireCallback | None,
    ) -> None:
        remaining = seconds
        while remaining > 0:
            if stop_event.wait(self.tick_seconds):
                return
            remaining -= 1
            self.remaining = remaining
            if on_tick is not None and not stop_event.is_set():
                on_tick(turn_key, remaining)

        if stop_event.is_set():
            return
        logger.info(f"Draft turn {turn_key} expired")
        if on_expire is not None:
            try:
                on_expire(turn_key)
            except Exception:
                logger.exception(f"Expiry handler failed for turn {turn_key}")
