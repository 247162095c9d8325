"""
In-memory, time-boxed caching.

Entries expire lazily: a stale entry is deleted the next time its key
is read. The cache is owned by a client instance, not shared globally.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Detail pages change rarely once an issue is listed
DETAIL_CACHE_TTL_SECONDS = 4 * 24 * 60 * 60


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and the time it was stored."""

    data: T
    timestamp: float


class TTLCache(Generic[T]):
    """Key/value cache with a fixed time-to-live and lazy eviction.

    Not thread-safe. Under asyncio the check-then-write sequence runs
    without interleaving, so at worst two concurrent misses for the same
    key fetch twice and the later write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DETAIL_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime in seconds
            clock: Time source returning seconds (injectable for tests)
            name: Label used in log messages
        """
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp > self.ttl_seconds:
            del self._entries[key]
            logger.debug(f"{self.name}: expired entry evicted for {key}")
            return None

        return entry.data

    def set(self, key: str, data: T) -> None:
        """Store a value, replacing any previous entry for the key."""
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def invalidate(self, key: str) -> None:
        """Drop an entry if present."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
