"""Key-value store contract and an in-process TTL implementation.

The answer cache and the rate counters both live behind ``KeyValueStore``.
Every operation is atomic per key; nothing else is shared between requests.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class KeyValueStore(Protocol):
    """Minimal store contract consumed by the cache and the rate limiter."""

    def get(self, key: str) -> Any | None:
        """Return the live value for *key* or ``None``."""

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Write *value* with a mandatory expiry."""

    def increment(self, key: str) -> int:
        """Atomically add one to an integer counter and return the new count."""

    def expire(self, key: str, ttl_seconds: float) -> bool:
        """Set the expiry of an existing key. Returns ``False`` if it is absent."""

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns ``True`` if it existed."""


class InMemoryKeyValueStore:
    """Thread-safe dict-backed store with lazy expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (value, expires_at or None)
        self._data: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry is not None else None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def increment(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                count, expires_at = 1, None
            else:
                count, expires_at = int(entry[0]) + 1, entry[1]
            self._data[key] = (count, expires_at)
            return count

    def expire(self, key: str, ttl_seconds: float) -> bool:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            self._data[key] = (entry[0], self._clock() + ttl_seconds)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def ttl(self, key: str) -> float | None:
        """Seconds until *key* expires, ``None`` when absent or without expiry."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry[1] is None:
                return None
            return entry[1] - self._clock()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._data) if self._live_entry(key) is not None)

    def _live_entry(self, key: str) -> tuple[Any, float | None] | None:
        # Caller must hold the lock.
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return entry
