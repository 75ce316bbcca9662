"""Cache-backed services for The Blacklist."""

from .data_cache import DataCacheService, MASTER_CACHE_KEY, cache_key
from .admin_items import AdminItemService

__all__ = [
    "DataCacheService",
    "AdminItemService",
    "MASTER_CACHE_KEY",
    "cache_key",
]
