"""Result caches for the search engine.

The searcher depends on the ``ResultCache`` interface only, so the in-memory
TTL/LRU cache can be replaced with ``NullResultCache`` in tests or sized per
deployment.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Generic, Optional, Tuple, TypeVar

LOGGER = logging.getLogger(__name__)

V = TypeVar("V")


class ResultCache(ABC, Generic[V]):
    """Interface for caching computed search results."""

    @abstractmethod
    def get(self, key: str) -> Optional[V]:
        """Return the cached value, or None on a miss or an expired entry."""

    @abstractmethod
    def set(self, key: str, value: V) -> None:
        """Store a value under ``key``."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    def __len__(self) -> int:
        return 0


class TTLResultCache(ResultCache[V]):
    """Bounded in-memory cache with per-entry expiry.

    Entries expire ``ttl`` seconds after being stored. When ``max_entries`` is
    reached the least recently used entry is evicted.
    """

    def __init__(
        self,
        *,
        max_entries: int = 500,
        ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, Tuple[float, V]] = OrderedDict()

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            LOGGER.debug("Cache miss: %s", key)
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            LOGGER.debug("Cache entry expired: %s", key)
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        LOGGER.debug("Cache hit: %s", key)
        return value

    def set(self, key: str, value: V) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (self._clock() + self.ttl, value)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug("Cache evicted: %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullResultCache(ResultCache[V]):
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[V]:
        return None

    def set(self, key: str, value: V) -> None:
        pass

    def clear(self) -> None:
        pass
