"""
In-Memory Cache Module

Process-wide key/value store with per-entry TTL, shared by the public data
cache (master snapshot + derived views) and the admin item cache.
Single event loop, no locking: a set() simply replaces whatever was there.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """Value plus the moment it was stored and how long it stays servable."""
    value: Any
    created_at: float
    ttl: float  # seconds
    hits: int = 0

    def is_expired(self, now: float) -> bool:
        """An entry is servable only while now < created_at + ttl."""
        return now >= self.created_at + self.ttl

    def access(self) -> Any:
        self.hits += 1
        return self.value


class CacheStore:
    """
    In-memory TTL cache.

    Usage:
        cache = CacheStore(default_ttl=1800, max_size=1000)
        cache.set("master_data", records)
        records = cache.get("master_data")  # None once the TTL has lapsed

    Expired entries are dropped lazily on access and in bulk by
    cleanup_expired().  When full, storing a new key evicts the entry that
    was stored longest ago; that scan is linear in the entry count, so size
    each store for its own workload.  The clock is injectable so tests can
    move time.
    """

    DEFAULT_TTL = 1800  # 30 minutes
    MAX_SIZE = 1000

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_size: int = MAX_SIZE,
        clock: Optional[Clock] = None,
    ):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, dropping it if expired."""
        entry = self._entries.get(key)
        if entry is not None and entry.is_expired(self._clock()):
            self._entries.pop(key)
            return None
        return entry

    def _drop(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in list(keys):
            if self._entries.pop(key, None) is not None:
                removed += 1
        return removed

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when absent or expired (counted as a miss)."""
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            logger.debug(f"Cache miss: {key}")
            return None

        self._hits += 1
        logger.debug(f"Cache hit: {key}")
        return entry.access()

    def peek(self, key: str) -> Optional[Any]:
        """Like get() but leaves hit/miss counters alone."""
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store value under key, replacing any previous entry wholesale.

        Args:
            ttl: seconds the value stays servable (default_ttl when omitted)
        """
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest()

        entry_ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, created_at=self._clock(), ttl=entry_ttl)
        logger.debug(f"Cached {key} (ttl={entry_ttl}s)")

    def _evict_oldest(self) -> None:
        if not self._entries:
            return
        victim = min(self._entries, key=lambda k: self._entries[k].created_at)
        self._entries.pop(victim)
        self._evictions += 1
        logger.debug(f"Evicted {victim} (cache full at {self.max_size} entries)")

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def delete(self, key: str) -> bool:
        """Remove a single key. Returns True if it was present."""
        return self._drop([key]) == 1

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix."""
        return self._drop(k for k in self._entries if k.startswith(prefix))

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Remove every entry, or only those whose key contains pattern.

        Returns:
            Number of entries removed
        """
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed
        return self._drop(k for k in self._entries if pattern in k)

    def cleanup_expired(self) -> int:
        """Sweep out entries whose TTL has lapsed; returns how many went."""
        now = self._clock()
        removed = self._drop(k for k, entry in self._entries.items() if entry.is_expired(now))
        if removed:
            logger.info(f"Swept {removed} expired cache entries")
        return removed

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def keys(self) -> List[str]:
        """Keys of all non-expired entries."""
        now = self._clock()
        return [k for k, entry in self._entries.items() if not entry.is_expired(now)]

    def reset_stats(self) -> None:
        self._hits = self._misses = self._evictions = 0

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
            "default_ttl": self.default_ttl,
        }
