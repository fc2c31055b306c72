"""Read-through memoization caches for the weather engine.

Every query in the engine is a pure function of its key, so a cache entry can
be computed by several threads at once without harm. The lock only guards the
dict itself; values are computed outside it and inserted with insert-or-ignore
semantics so the first stored value wins.
"""
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Optional
import logging

logger = logging.getLogger(__name__)

_MISSING = object()


class MemoCache:
    """Thread-safe, bounded memo cache keyed by hashable tuples."""

    def __init__(self, name: str, max_entries: Optional[int] = 50000):
        """Initialize cache.

        Args:
            name: Label used in stats and log messages
            max_entries: Upper bound on stored entries (None for unbounded)
        """
        self.name = name
        self._max_entries = max_entries
        self._entries: Dict[Hashable, Any] = {}
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Look up a key without computing it.

        Args:
            key: Cache key

        Returns:
            The cached value or default
        """
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is _MISSING:
                return default
            self._hits += 1
            return value

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def put(self, key: Hashable, value: Any) -> Any:
        """Insert a value unless the key is already present.

        Args:
            key: Cache key
            value: Freshly computed value

        Returns:
            The value that ends up stored under the key
        """
        with self._lock:
            stored = self._entries.setdefault(key, value)
            if self._max_entries is not None and len(self._entries) > self._max_entries:
                self._evict()
            return stored

    def get_or_compute(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value for key, computing and storing it on a miss.

        Args:
            key: Cache key
            factory: Zero-argument callable producing the value

        Returns:
            The cached (or newly stored) value
        """
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is not _MISSING:
                self._hits += 1
                return value
            self._misses += 1

        # Compute outside the lock; recomputation is idempotent
        return self.put(key, factory())

    def _evict(self) -> None:
        # Drop the oldest tenth; dicts keep insertion order
        drop = max(1, len(self._entries) // 10)
        for key in list(self._entries)[:drop]:
            del self._entries[key]

    def clear(self) -> None:
        """Remove every entry and reset stats."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        logger.debug(f"Cleared cache {self.name}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with entry count, hits and misses
        """
        with self._lock:
            return {
                "name": self.name,
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }
