"""Cancelable "thinking" delay before a bot acts."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger("rummy.timer")


class BotTurnTimer:
    """Runs a callback after a bot's thinking time, at most one pending at a time.

    Scheduling again supersedes the pending callback. A cancelled or
    superseded callback never runs, even if its thread already woke up.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0

    def schedule(self, thinking_time_ms: int, callback: Callable[[], None]) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(
                max(thinking_time_ms, 0) / 1000.0, self._fire, args=(generation, callback)
            )
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Bot action scheduled in %d ms", thinking_time_ms)

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _fire(self, generation: int, callback: Callable[[], None]) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        callback()
