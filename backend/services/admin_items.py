"""
Admin item cache.

Smaller sibling of the public data cache for the item management panel:
the whole collection is cached as one list, every item also gets its own
slot, and an aggregate stats entry is kept next to them.  It runs on its
own CacheStore so a large collection cannot evict the public views.  Edits write
through to the store and cascade into the public master cache.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from cache import CacheStore
from exceptions import InvalidUpdateError
from records.fallback import FallbackDataset
from records.models import Record, clean_item_update
from store.base import RecordStore
from store.errors import is_quota_exhaustion
from .data_cache import DataCacheService

logger = logging.getLogger(__name__)

ADMIN_ALL_ITEMS_KEY = "admin_all_items"
ADMIN_ITEM_PREFIX = "admin_item_"
ADMIN_STATS_KEY = "admin_stats"

SEARCH_FIELDS = ("name", "status", "category", "id")


def build_admin_stats(items: List[Record]) -> Dict[str, Any]:
    """Counts by raw status and category; missing values count as 'unknown'."""
    by_status: Dict[str, int] = {}
    by_category: Dict[str, int] = {}

    for item in items:
        status = item.get("status") or "unknown"
        category = item.get("category") or "unknown"
        by_status[status] = by_status.get(status, 0) + 1
        by_category[category] = by_category.get(category, 0) + 1

    return {
        "total": len(items),
        "byStatus": by_status,
        "byCategory": by_category,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


class AdminItemService:
    """
    Cached item access for the admin panel.

    Usage:
        admin = AdminItemService(cache, store, fallback, data_service)
        items = await admin.get_all_items()
        await admin.update_item("abc123", {"status": "captured"})
    """

    def __init__(
        self,
        cache: CacheStore,
        store: RecordStore,
        fallback: FallbackDataset,
        data_service: DataCacheService,
        ttl: float = 900,
    ):
        self.cache = cache
        self.store = store
        self.fallback = fallback
        self.data_service = data_service
        self.ttl = ttl
        self._generation = 0

    @staticmethod
    def item_key(item_id: str) -> str:
        return f"{ADMIN_ITEM_PREFIX}{item_id}"

    async def get_all_items(self) -> List[Record]:
        """
        Every item in the collection.

        A miss refreshes the list, every per-item slot and the stats entry.
        """
        cached = self.cache.get(ADMIN_ALL_ITEMS_KEY)
        if cached is not None:
            return cached

        generation = self._generation
        try:
            items = await self.store.fetch_all()
        except Exception as e:
            if not is_quota_exhaustion(e):
                logger.error(f"Admin: failed to fetch items: {type(e).__name__}: {e}")
                raise
            logger.warning("Admin: backing store quota exhausted, serving fallback items")
            self.data_service.record_quota_exhaustion()
            return self.fallback.all_records()

        if generation != self._generation:
            return items

        for item in items:
            self.cache.set(self.item_key(item["id"]), item, ttl=self.ttl)
        self.cache.set(ADMIN_ALL_ITEMS_KEY, items, ttl=self.ttl)
        self.cache.set(ADMIN_STATS_KEY, build_admin_stats(items), ttl=self.ttl)

        logger.info(f"Admin: all items cached ({len(items)} items)")
        return items

    async def get_item(self, item_id: str) -> Optional[Record]:
        """Single item, or None if it does not exist."""
        key = self.item_key(item_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            item = await self.store.get_item(item_id)
        except Exception as e:
            if not is_quota_exhaustion(e):
                raise
            logger.warning(f"Admin: quota exhausted, looking up {item_id} in fallback data")
            self.data_service.record_quota_exhaustion()
            return next(
                (record for record in self.fallback.all_records() if record.get("id") == item_id),
                None,
            )

        if item is not None:
            self.cache.set(key, item, ttl=self.ttl)
        return item

    async def update_item(self, item_id: str, data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Write allowed fields through to the store and refresh caches.

        Raises:
            InvalidUpdateError: no updatable field in data
            ItemNotFoundError: unknown item id
        """
        clean = clean_item_update(data)
        if not clean:
            raise InvalidUpdateError()

        logger.info(f"Admin: updating item {item_id} ({', '.join(clean)})")
        await self.store.update_item(item_id, clean)
        self._generation += 1

        key = self.item_key(item_id)
        cached = self.cache.peek(key)
        if cached is not None:
            cached.update(clean)
            self.cache.set(key, cached, ttl=self.ttl)

        self.cache.delete(ADMIN_ALL_ITEMS_KEY)
        self.cache.delete(ADMIN_STATS_KEY)
        # Public views must not keep serving the pre-edit snapshot
        self.data_service.invalidate_master()

        return {"success": True, "message": "Item updated successfully", "updated": clean}

    async def get_stats(self) -> Dict[str, Any]:
        cached = self.cache.get(ADMIN_STATS_KEY)
        if cached is not None:
            return cached

        stats = build_admin_stats(await self.get_all_items())
        self.cache.set(ADMIN_STATS_KEY, stats, ttl=self.ttl)
        return stats

    async def search(self, query: str) -> List[Record]:
        """Case-insensitive substring match on name, status, category and id."""
        items = await self.get_all_items()
        needle = (query or "").strip().lower()
        if not needle:
            return items

        return [
            item for item in items
            if any(needle in str(item.get(field) or "").lower() for field in SEARCH_FIELDS)
        ]

    def clear_cache(self) -> int:
        """Drop admin entries and the public master snapshot."""
        self._generation += 1
        removed = 0
        removed += self.cache.delete(ADMIN_ALL_ITEMS_KEY)
        removed += self.cache.delete(ADMIN_STATS_KEY)
        removed += self.cache.delete_prefix(ADMIN_ITEM_PREFIX)
        removed += len(self.data_service.invalidate_master())
        logger.info(f"Admin: caches cleared ({removed} entries)")
        return removed

    async def warm_cache(self) -> Dict[str, Any]:
        items = await self.get_all_items()
        stats = await self.get_stats()
        return {"items": len(items), "stats_total": stats["total"]}
