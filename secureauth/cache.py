"""Bounded in-memory TTL cache.

Used for breach range bodies, which are keyed by a public five-character
digest prefix. Entries expire after ``ttl_seconds`` and the least recently
used entry is evicted once ``max_entries`` is reached.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class CacheEntry:
    """Represents a cached value with timestamp."""

    __slots__ = ("value", "timestamp")

    def __init__(self, value: Any, timestamp: float):
        self.value = value
        self.timestamp = timestamp


class BoundedTTLCache:
    """
    LRU cache with a hard size cap and per-entry expiry.

    Usage:
        cache = BoundedTTLCache(max_entries=1024, ttl_seconds=3600)
        cache.set("21BD1", records)
        cached = cache.get("21BD1")
    """

    def __init__(
        self,
        max_entries: int = 1024,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = int(max_entries)
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp >= self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._entries[key] = CacheEntry(value, now)
            self._entries.move_to_end(key)
            self._prune(now)

    def _prune(self, now: float) -> None:
        for key in [k for k, entry in self._entries.items() if self._expired(entry, now)]:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted {evicted}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
