from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Per-key admission control over a trailing time window.

    Rejection is advisory: callers route rejected work to a fallback instead
    of failing the request.
    """

    def __init__(
        self,
        budget: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if budget < 1:
            raise ValueError("budget must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._budget = budget
        self._window = float(window_seconds)
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @property
    def budget(self) -> int:
        return self._budget

    @property
    def window_seconds(self) -> float:
        return self._window

    def _purge(self, events: deque[float], now: float) -> None:
        cutoff = now - self._window
        while events and events[0] <= cutoff:
            events.popleft()

    def is_allowed(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            events = self._events.setdefault(key, deque())
            self._purge(events, now)
            if len(events) >= self._budget:
                return False
            events.append(now)
            return True

    def retry_after_seconds(self, key: str) -> float:
        """Seconds until the oldest admitted call for ``key`` leaves the window."""
        now = self._clock()
        with self._lock:
            events = self._events.get(key)
            if not events:
                return 0.0
            self._purge(events, now)
            if len(events) < self._budget:
                return 0.0
            return max(0.0, events[0] + self._window - now)

    def usage(self) -> dict[str, int]:
        now = self._clock()
        with self._lock:
            for events in self._events.values():
                self._purge(events, now)
            return {key: len(events) for key, events in self._events.items() if events}

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
