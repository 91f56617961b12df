"""
Result cache for page resolution and torrent parsing.

Design:
  - In-memory OrderedDict (process lifetime, nothing on disk)
  - TTL-based expiration (5 minutes); expired entries are dropped on lookup
  - FIFO eviction of the oldest inserted entry at capacity (100)
  - Thread-safe with a single lock guarding entries and counters
  - Values are deep-copied in and out, callers never share an entry

Usage:
    cache = ResultCache(ttl=300, max_size=100)

    cache.set("page_extract_frieren", "https://darkmahou.io/frieren/")
    url = cache.get("page_extract_frieren")

    snapshot = cache.get_metrics()
"""

import copy
import re
import time
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from darkmahou_app.config import CACHE_TTL_SECONDS, MAX_CACHE_SIZE


_WHITESPACE = re.compile(r'\s+')


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamp: float
    key: str


@dataclass(frozen=True)
class MetricsSnapshot:
    """Read-only copy of the performance counters."""
    search_time: float = 0.0
    parse_time: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0
    fuzzy_match_count: int = 0

    @property
    def cache_efficiency(self) -> float:
        """Hit percentage, 0 when the cache was never consulted."""
        total = self.cache_hits + self.cache_misses
        return (self.cache_hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'search_time_ms': round(self.search_time, 2),
            'parse_time_ms': round(self.parse_time, 2),
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'fuzzy_match_count': self.fuzzy_match_count,
            'cache_efficiency': round(self.cache_efficiency, 2),
        }


class PerformanceMetrics:
    """Thread-safe, monotonically increasing counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._search_time = 0.0
        self._parse_time = 0.0
        self._cache_hits = 0
        self._cache_misses = 0
        self._fuzzy_match_count = 0

    def record_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._cache_misses += 1

    def increment_fuzzy_count(self) -> None:
        with self._lock:
            self._fuzzy_match_count += 1

    def record_search_time(self, elapsed_ms: float) -> None:
        with self._lock:
            self._search_time += max(0.0, elapsed_ms)

    def record_parse_time(self, elapsed_ms: float) -> None:
        with self._lock:
            self._parse_time += max(0.0, elapsed_ms)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                search_time=self._search_time,
                parse_time=self._parse_time,
                cache_hits=self._cache_hits,
                cache_misses=self._cache_misses,
                fuzzy_match_count=self._fuzzy_match_count,
            )

    def reset(self) -> None:
        """Zero every counter. Intended for test isolation."""
        with self._lock:
            self._search_time = 0.0
            self._parse_time = 0.0
            self._cache_hits = 0
            self._cache_misses = 0
            self._fuzzy_match_count = 0


class ResultCache:
    """Thread-safe in-memory cache shared by the page resolver and the provider."""

    def __init__(self, ttl: int = CACHE_TTL_SECONDS, max_size: int = MAX_CACHE_SIZE,
                 clock: Callable[[], float] = time.time):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds (default: 5 minutes)
            max_size: Maximum cache entries (default: 100)
            clock: Time source in seconds, injectable for tests
        """
        self.ttl = ttl
        self.max_size = max(1, max_size)
        self._clock = clock
        self._cache: OrderedDict = OrderedDict()
        self._lock = threading.Lock()
        self.metrics = PerformanceMetrics()

    @staticmethod
    def make_key(key: str) -> str:
        """Lower-case the key and turn whitespace runs into underscores."""
        return _WHITESPACE.sub('_', (key or '').lower())

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value if present and not expired.

        Returns:
            A copy of the cached value, or None on a miss
        """
        cache_key = self.make_key(key)

        with self._lock:
            entry = self._cache.get(cache_key)
            if entry is None:
                self.metrics.record_miss()
                return None

            if self._clock() - entry.timestamp > self.ttl:
                del self._cache[cache_key]
                self.metrics.record_miss()
                return None

            self.metrics.record_hit()
            return copy.deepcopy(entry.data)

    def set(self, key: str, data: Any) -> None:
        """Store a copy of data under key, evicting the oldest entry at capacity."""
        cache_key = self.make_key(key)

        with self._lock:
            if len(self._cache) >= self.max_size and cache_key not in self._cache:
                self._cache.popitem(last=False)

            # Overwriting keeps the original insertion position
            self._cache[cache_key] = CacheEntry(
                data=copy.deepcopy(data),
                timestamp=self._clock(),
                key=cache_key,
            )

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return self.make_key(key) in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def keys(self):
        """Canonical keys in insertion order."""
        with self._lock:
            return list(self._cache.keys())

    def get_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    def clear(self) -> None:
        """Drop all entries (counters are kept)."""
        with self._lock:
            self._cache.clear()

    def reset(self) -> None:
        """Drop all entries and zero the counters."""
        self.clear()
        self.metrics.reset()

    def evict_expired(self) -> int:
        """
        Manually evict all expired entries.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        with self._lock:
            expired_keys = [
                key for key, entry in self._cache.items()
                if now - entry.timestamp > self.ttl
            ]
            for key in expired_keys:
                del self._cache[key]
        return len(expired_keys)


# Global cache instance (singleton pattern)
_global_cache: Optional[ResultCache] = None
_global_lock = threading.Lock()


def get_cache() -> ResultCache:
    """
    Get the process-wide cache.

    Creates cache on first access (lazy initialization).
    """
    global _global_cache
    with _global_lock:
        if _global_cache is None:
            _global_cache = ResultCache()
        return _global_cache


def reset_cache() -> ResultCache:
    """Replace the process-wide cache with a fresh one."""
    global _global_cache
    with _global_lock:
        _global_cache = ResultCache()
        return _global_cache
