"""In-process cache for list query results.

Entries are keyed by ``ListQuery.cache_key()`` and expire a fixed number of
seconds after insertion.  Any successful write clears the whole cache and
bumps a generation counter, so a result read from the store before a clear
is never cached after it.  One ``threading.Lock`` guards every operation,
so a lookup never sees a half-written entry and a ``clear()`` is visible
to every later lookup.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _CacheEntry(Generic[T]):
    value: T
    inserted_at: float


class ListCache(Generic[T]):
    """TTL cache with wholesale invalidation.

    Constructed once in the application lifespan and passed explicitly to
    the list and update operations.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _CacheEntry[T]] = {}
        self._generation = 0

    def get(self, key: str) -> T | None:
        """Return the cached value, or ``None`` when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.inserted_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    @property
    def generation(self) -> int:
        """Number of clears so far; read it before loading a value to cache."""
        with self._lock:
            return self._generation

    def set(self, key: str, value: T, generation: int | None = None) -> None:
        """Store ``value``; dropped when a clear happened since ``generation``."""
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("list_cache_stale_write_dropped", extra={"cache_key": key})
                return
            self._entries[key] = _CacheEntry(value=value, inserted_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries = {}
            self._generation += 1
        logger.debug("list_cache_cleared", extra={"entries_dropped": dropped})

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
