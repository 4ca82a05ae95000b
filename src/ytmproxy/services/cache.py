"""In-memory TTL cache with thread-safe operations."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

from ytmproxy.models.auth import CacheStats

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class TTLCache(Generic[V]):
    """String-keyed cache whose entries expire after a per-entry TTL.

    Thread-Safety:
        A single lock guards every read and write. Expired entries are only
        removed by sweep_expired(), which callers run on miss paths.

    Eviction:
        on_evict is invoked for every value removed by sweep_expired() or
        clear(). It runs outside the lock.
    """

    def __init__(
        self,
        name: str,
        clock: Clock = utc_now,
        on_evict: Callable[[V], None] | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            name: Label used in log messages.
            clock: Function returning the current time (enables testing).
            on_evict: Optional disposer for removed values.
        """
        self._name = name
        self._clock = clock
        self._on_evict = on_evict
        self._entries: dict[str, tuple[V, datetime]] = {}
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def get(self, key: str) -> V | None:
        """Return the value for key if present and not expired."""
        with self._locked():
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                return None
            return value

    def put(self, key: str, value: V, ttl: timedelta) -> None:
        """Store value under key for ttl, replacing any previous entry."""
        with self._locked():
            self._entries[key] = (value, self._clock() + ttl)

    def sweep_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        with self._locked():
            now = self._clock()
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            removed = [self._entries.pop(k)[0] for k in expired]

        self._dispose(removed)
        if removed:
            logger.debug("Swept %d expired %s entries", len(removed), self._name)
        return len(removed)

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed.
        """
        with self._locked():
            removed = [value for value, _ in self._entries.values()]
            self._entries.clear()

        self._dispose(removed)
        logger.info("Cleared %d %s entries", len(removed), self._name)
        return len(removed)

    def stats(self) -> CacheStats:
        """Count valid and expired entries."""
        with self._locked():
            now = self._clock()
            total = len(self._entries)
            valid = sum(1 for _, exp in self._entries.values() if exp > now)
        return CacheStats(
            total_entries=total, valid_entries=valid, expired_entries=total - valid
        )

    def __len__(self) -> int:
        with self._locked():
            return len(self._entries)

    def _dispose(self, values: list[V]) -> None:
        if self._on_evict is None:
            return
        for value in values:
            try:
                self._on_evict(value)
            except Exception as e:
                logger.warning("Failed to dispose %s entry: %s", self._name, e)
