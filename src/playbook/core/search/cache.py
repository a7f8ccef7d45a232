"""
Time-boxed, size-bounded cache for code search results.

The clock is injected so expiry can be tested without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SearchCache(Generic[V]):
    """
    LRU cache whose entries expire ``ttl_seconds`` after insertion.

    Example:
        >>> cache: SearchCache[int] = SearchCache(ttl_seconds=60)
        >>> cache.put(SearchCache.key("o/r", "retry"), 3)
        >>> cache.get("o/r:retry")
        3
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        capacity: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, V]] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def key(full_name: str, query: str) -> str:
        return f"{full_name}:{query}"

    def get(self, key: str) -> V | None:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                logger.debug("Search cache entry expired: %s", key)
                return None
            self._entries.move_to_end(key)
            logger.debug("Search cache hit: %s", key)
            return value

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Search cache evicted: %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
