from __future__ import annotations

import hashlib
import threading
import time
from collections import OrderedDict
from typing import Callable


class ResponseCache:
    """Bounded text cache with lazy TTL expiry and oldest-insertion eviction."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = float(ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(prompt: str, operation_name: str) -> str:
        digest = hashlib.sha256()
        digest.update(operation_name.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(prompt.encode("utf-8"))
        return digest.hexdigest()

    def get(self, key: str) -> str | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if now - stored_at > self._ttl:
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: str) -> None:
        now = self._clock()
        with self._lock:
            # Rewriting a key counts as a fresh insertion.
            self._entries.pop(key, None)
            self._entries[key] = (value, now)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
