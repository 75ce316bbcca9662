"""
Master data cache and derived view orchestration.

One Firestore query fills the master snapshot; every public view
(version lists, status groupings, statistics) is derived from it and
cached under its own key.  Quota exhaustion degrades to the static
fallback dataset without ever being stored as the master snapshot.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from cache import CacheStore
from exceptions import UnknownViewError
from records.charts import CHART_BUILDERS
from records.derivations import (
    PARAMETERIZED_VIEWS,
    VIEW_KINDS,
    VIEW_STATS,
    VIEW_STATUS,
    VIEW_VERSION1,
    VIEW_VERSION2,
    derive,
)
from records.fallback import FallbackDataset
from records.models import STATUSES, V1_MAX, V1_MIN, Record, in_range, numeric_field
from store.base import RecordStore
from store.errors import is_quota_exhaustion

logger = logging.getLogger(__name__)

MASTER_CACHE_KEY = "master_data"
STATUS_LOOKUP_PREFIX = "version1_status_"

# Firestore free-tier read quotas reset daily
QUOTA_RESET_WINDOW = timedelta(hours=24)


def cache_key(view_kind: str, param: Optional[str] = None) -> str:
    """``view_kind`` alone, or ``view_kind_param``."""
    if param is None:
        return view_kind
    return f"{view_kind}_{param}"


def default_master_dependents() -> List[str]:
    """Derived keys dropped together with the master snapshot."""
    keys = [VIEW_VERSION1, VIEW_VERSION2, VIEW_STATS, VIEW_STATUS]
    keys.extend(cache_key(VIEW_STATUS, status) for status in STATUSES)
    return keys


class DataCacheService:
    """
    Request-facing access to the master snapshot and its derived views.

    Usage:
        service = DataCacheService(cache, store, fallback)
        stats = await service.get_optimized_data("stats")
        active = await service.get_optimized_data("status", "active")
        service.invalidate_master()

    Derived keys registered with ``register_dependent`` are removed by
    ``invalidate_master``.  Anything else (e.g. the narrow
    ``version1_status_*`` lookups) stays until its own TTL lapses.
    """

    def __init__(
        self,
        cache: CacheStore,
        store: RecordStore,
        fallback: FallbackDataset,
        master_ttl: float = 1800,
        derived_ttl: float = 1800,
        fallback_ttl: float = 60,
        status_lookup_limit: int = 5,
    ):
        self.cache = cache
        self.store = store
        self.fallback = fallback
        self.master_ttl = master_ttl
        self.derived_ttl = derived_ttl
        self.fallback_ttl = fallback_ttl
        self.status_lookup_limit = status_lookup_limit

        # Set on quota exhaustion, cleared by the next successful master fetch
        self.quota_exhausted_at: Optional[datetime] = None

        # Concurrent master misses wait for one in-flight fetch
        self._master_lock = asyncio.Lock()
        # Bumped by every invalidation; results fetched under an older
        # generation are served but never cached
        self.generation = 0
        self._master_dependents: Dict[str, None] = {}
        for key in default_master_dependents():
            self.register_dependent(key)

        if derived_ttl > master_ttl:
            logger.warning(
                f"Derived TTL ({derived_ttl}s) exceeds master TTL ({master_ttl}s); "
                "derived views may outlive their snapshot"
            )

    # ------------------------------------------------------------------
    # Dependency registry
    # ------------------------------------------------------------------

    def register_dependent(self, key: str) -> None:
        """Mark a derived key for removal whenever the master is invalidated."""
        self._master_dependents[key] = None

    @property
    def registered_keys(self) -> List[str]:
        return list(self._master_dependents)

    # ------------------------------------------------------------------
    # Quota state
    # ------------------------------------------------------------------

    def record_quota_exhaustion(self) -> None:
        self.quota_exhausted_at = datetime.now(timezone.utc)

    def quota_status(self) -> Dict[str, Any]:
        """Whether reads are currently degraded to fallback data."""
        exhausted_at = self.quota_exhausted_at
        return {
            "quotaExceeded": exhausted_at is not None,
            "lastExhaustedAt": exhausted_at.isoformat() if exhausted_at else None,
            "quotaResetTime": (
                (exhausted_at + QUOTA_RESET_WINDOW).isoformat() if exhausted_at else None
            ),
        }

    # ------------------------------------------------------------------
    # Master snapshot
    # ------------------------------------------------------------------

    async def _load_master(self) -> Tuple[List[Record], bool]:
        """
        Return (records, from_fallback).

        Raises:
            Any non-quota backing store error
        """
        cached = self.cache.get(MASTER_CACHE_KEY)
        if cached is not None:
            return cached, False

        async with self._master_lock:
            # Another request may have filled it while we waited
            cached = self.cache.peek(MASTER_CACHE_KEY)
            if cached is not None:
                return cached, False

            generation = self.generation
            try:
                records = await self.store.fetch_range("v1", V1_MIN, V1_MAX)
            except Exception as e:
                if not is_quota_exhaustion(e):
                    logger.error(f"Master fetch failed: {type(e).__name__}: {e}")
                    raise
                logger.warning(f"Backing store quota exhausted, serving fallback data: {e}")
                self.record_quota_exhaustion()
                return self.fallback.all_records(), True

            self.quota_exhausted_at = None
            if generation != self.generation:
                logger.info("Master cache invalidated during fetch, not caching the snapshot")
                return records, False
            self.cache.set(MASTER_CACHE_KEY, records, ttl=self.master_ttl)
            logger.info(f"Master data cached: {len(records)} records (ttl={self.master_ttl}s)")
            return records, False

    async def get_master_data(self) -> List[Record]:
        """All records with v1 in [0, 200]; fallback records on quota exhaustion."""
        records, _ = await self._load_master()
        return records

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    async def get_optimized_data(self, view_kind: str, param: Optional[str] = None) -> Any:
        """
        Serve a derived view, computing and caching it on a miss.

        Args:
            view_kind: version1, version2, status or stats
            param: status name for the "status" view; other kinds ignore it

        Raises:
            UnknownViewError: unsupported view_kind
        """
        if view_kind not in VIEW_KINDS:
            raise UnknownViewError(view_kind)

        key = cache_key(view_kind, param)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        generation = self.generation
        records, from_fallback = await self._load_master()
        derive_param = param if view_kind in PARAMETERIZED_VIEWS else None

        if from_fallback:
            result = self.fallback.view(view_kind, derive_param)
            ttl = self.fallback_ttl
        else:
            result = derive(records, view_kind, derive_param)
            ttl = self.derived_ttl

        if generation == self.generation:
            self.cache.set(key, result, ttl=ttl)
        return result

    async def get_chart_data(self, chart: str) -> Any:
        """Chart-ready shape (pie, bar or scatter) from the stats view."""
        builder = CHART_BUILDERS.get(chart)
        if builder is None:
            raise UnknownViewError(f"chart/{chart}")
        stats = await self.get_optimized_data(VIEW_STATS)
        return builder(stats)

    async def get_status_top(self, status: str) -> List[Record]:
        """
        First records (by v1) with the given status, straight from the store.

        Bypasses the master snapshot: the query's ordering and limit differ
        from the derived "status" view.  Cached under its own key, which
        is not part of the master invalidation cascade.
        """
        key = f"{STATUS_LOOKUP_PREFIX}{status}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            records = await self.store.fetch_by_status(
                status, self.status_lookup_limit, V1_MIN, V1_MAX
            )
        except Exception as e:
            if not is_quota_exhaustion(e):
                logger.error(f"Status lookup failed for {status}: {type(e).__name__}: {e}")
                raise
            logger.warning(f"Backing store quota exhausted, serving fallback {status} records")
            self.record_quota_exhaustion()
            matches = [
                record for record in self.fallback.all_records()
                if record.get("status") == status and in_range(record, "v1")
            ]
            matches.sort(key=lambda record: numeric_field(record, "v1"))
            return matches[:self.status_lookup_limit]

        self.cache.set(key, records, ttl=self.derived_ttl)
        return records

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate_all(self) -> int:
        """Clear every cache entry, master and derived."""
        self.generation += 1
        count = self.cache.invalidate()
        logger.info(f"Cache cleared: {count} entries removed")
        return count

    def invalidate_master(self) -> List[str]:
        """
        Remove the master snapshot and every registered derived key.

        Returns:
            Keys that were actually present
        """
        self.generation += 1
        removed = [
            key for key in [MASTER_CACHE_KEY, *self._master_dependents]
            if self.cache.delete(key)
        ]
        logger.info(f"Master cache invalidated ({len(removed)} keys removed)")
        return removed

    def reload_fallback_dataset(self) -> Dict[str, Any]:
        """
        Re-read the fallback dataset.

        Raises:
            FallbackDatasetError: the previous dataset stays in place
        """
        return self.fallback.reload()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_cache_statistics(self) -> Dict[str, Any]:
        stats = self.cache.get_stats()
        master = self.cache.peek(MASTER_CACHE_KEY)
        stats.update({
            "master_cached": master is not None,
            "master_size": len(master) if master is not None else 0,
            "keys": sorted(self.cache.keys()),
            "registered_keys": self.registered_keys,
            "ttl": {
                "master": self.master_ttl,
                "derived": self.derived_ttl,
                "fallback": self.fallback_ttl,
            },
        })
        return stats
