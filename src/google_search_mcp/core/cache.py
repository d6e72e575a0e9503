"""Bounded, expiring in-memory cache for collaborator responses.

Search responses are cached for a few minutes so that an agent paging
back and forth over the same query does not spend API quota twice.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any, Generic, TypeVar

DEFAULT_CACHE_MAX_SIZE = 256
DEFAULT_CACHE_TTL_SECONDS = 300.0

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """
    An LRU cache whose entries also expire after a fixed time-to-live.

    When the cache exceeds max_size, the least recently used entries are
    evicted. Expired entries are dropped lazily on access.

    Thread-safe for concurrent access.

    Example:
        cache = TTLCache(max_size=100, ttl_seconds=60)
        cache.set("key1", "value1")
        cache.get("key1")  # "value1" for the next minute
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[K, tuple[float, V]] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @property
    def max_size(self) -> int:
        """Maximum cache size."""
        return self._max_size

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return a fresh value and mark it as recently used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                self._misses += 1
                return default
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: K, value: V) -> None:
        """Store a value, evicting the oldest entries if over max size."""
        if self._max_size <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        """Clear all items."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and entry[0] > self._clock()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
            }
