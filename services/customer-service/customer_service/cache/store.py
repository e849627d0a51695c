"""In-memory TTL cache shared by all requests handled by the process."""

from __future__ import annotations

import copy
import time
from threading import Lock
from typing import Any, Callable, Protocol


class CacheStore(Protocol):
    """Key/value store with per-key expiry used by the customer workflows."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    def invalidate(self, key: str) -> None: ...


class MemoryCacheStore:
    """Thread-safe cache with time-based expiry.

    Values are copied on the way in and out so that a caller mutating a
    returned payload never alters what other requests observe.
    """

    def __init__(
        self,
        default_ttl_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the default TTL, time source, and per-key storage."""
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` when missing or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[0] <= now:
                return None
            value = entry[1]
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Insert or overwrite ``key`` and restart its expiry clock."""
        ttl = self._default_ttl if ttl is None else ttl
        stored = copy.deepcopy(value)
        now = self._clock()
        with self._lock:
            self._purge_locked(now)
            self._entries[key] = (now + ttl, stored)

    def invalidate(self, key: str) -> None:
        """Drop ``key`` if present."""
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        with self._lock:
            return self._purge_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _purge_locked(self, now: float) -> int:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)
