"""
CalendarCache - per-viewer in-memory TTL cache for event queries.

Usage:
    from almanac.cache import CalendarCache

    cache = CalendarCache(ttl_seconds=30)
    key = cache.make_key('U1', start, end, filters)
    cache.set(key, events)
    cached = cache.get(key)  # Returns None if expired
    cache.clear()            # Remove all entries

Each controller owns its own instance; nothing is shared between viewers.
"""

import json
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Generic, Optional, TypeVar

from almanac.types import EventFilters

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with expiration timestamp."""

    value: T
    expires_at: float
    created_at: float


class CalendarCache(Generic[T]):
    """In-memory TTL cache keyed by (unit, date range, filters)."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Callable[[], float]] = None):
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._data: dict[str, CacheEntry[T]] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @staticmethod
    def make_key(unit_id: str, start_date: date, end_date: date, filters: Optional[EventFilters] = None) -> str:
        """Deterministic key; filter lists are order-independent."""
        filters = filters or EventFilters()
        serialized = json.dumps(filters.as_dict(), sort_keys=True, separators=(",", ":"))
        return f"calendar_events:{unit_id}:{start_date.isoformat()}:{end_date.isoformat()}:{serialized}"

    def get(self, key: str) -> Optional[T]:
        """
        Get a cached value by key.

        Returns None if key doesn't exist or has expired.
        """
        entry = self._data.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() >= entry.expires_at:
            del self._data[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: T) -> None:
        """Store a value; it expires ttl_seconds from now."""
        now = self._clock()
        self._data[key] = CacheEntry(value=value, expires_at=now + self._ttl, created_at=now)

    def invalidate(self, key: str) -> bool:
        """
        Remove a single entry from the cache.

        Returns True if the key existed, False otherwise.
        """
        return self._data.pop(key, None) is not None

    def clear(self) -> int:
        """
        Remove all entries from the cache.

        Returns the number of entries removed.
        """
        count = len(self._data)
        self._data.clear()
        return count

    def __len__(self) -> int:
        return len(self._data)

    def stats(self) -> dict:
        """Entries, hits, misses and hit rate."""
        now = self._clock()
        valid_entries = sum(1 for e in self._data.values() if e.expires_at > now)
        total_requests = self._hits + self._misses

        return {
            "entries": valid_entries,
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total_requests if total_requests > 0 else 0.0,
        }
