"""
FastAPI Dependency Injection Module

Builds the process-wide cache, record store, fallback dataset and services
once at startup and hands them to route handlers through ``Depends``.
Tests swap the whole container with ``app.dependency_overrides[get_services]``.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends

from cache import CacheStore
from config import Settings
from exceptions import StoreNotConfiguredError
from records.fallback import FallbackDataset
from services.admin_items import AdminItemService
from services.data_cache import DataCacheService
from store.base import RecordStore
from store.memory_store import InMemoryRecordStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler may need."""
    settings: Settings
    cache: CacheStore
    admin_cache: CacheStore
    store: RecordStore
    fallback: FallbackDataset
    data_service: DataCacheService
    admin_service: AdminItemService
    debug_mode: bool = False
    started_at: float = field(default_factory=time.monotonic)


_services: Optional[ServiceContainer] = None


def build_record_store(settings: Settings, fallback: FallbackDataset) -> RecordStore:
    """
    Firestore when credentials are configured; otherwise an in-memory store
    seeded from the fallback records, which is refused in production.
    """
    if settings.firestore_configured:
        from store.firestore_store import FirestoreRecordStore
        return FirestoreRecordStore.from_settings(settings)

    if settings.environment == "production":
        raise StoreNotConfiguredError(
            "Firestore credentials are required in production "
            "(FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL, FIREBASE_PRIVATE_KEY)"
        )

    logger.warning("Firestore not configured, using in-memory store seeded from fallback data")
    return InMemoryRecordStore(fallback.all_records())


def build_services(
    settings: Settings,
    store: Optional[RecordStore] = None,
    fallback: Optional[FallbackDataset] = None,
    cache: Optional[CacheStore] = None,
    admin_cache: Optional[CacheStore] = None,
) -> ServiceContainer:
    """Wire the services together without touching the module-level container."""
    if fallback is None:
        fallback = FallbackDataset.load(settings.resolved_fallback_data_path)
    if store is None:
        store = build_record_store(settings, fallback)
    if cache is None:
        cache = CacheStore(
            default_ttl=settings.master_cache_ttl,
            max_size=settings.cache_max_size,
        )
    if admin_cache is None:
        admin_cache = CacheStore(
            default_ttl=settings.admin_cache_ttl,
            max_size=settings.admin_cache_max_size,
        )

    data_service = DataCacheService(
        cache,
        store,
        fallback,
        master_ttl=settings.master_cache_ttl,
        derived_ttl=settings.derived_cache_ttl,
        fallback_ttl=settings.fallback_cache_ttl,
        status_lookup_limit=settings.status_lookup_limit,
    )
    admin_service = AdminItemService(
        admin_cache,
        store,
        fallback,
        data_service,
        ttl=settings.admin_cache_ttl,
    )

    return ServiceContainer(
        settings=settings,
        cache=cache,
        admin_cache=admin_cache,
        store=store,
        fallback=fallback,
        data_service=data_service,
        admin_service=admin_service,
        debug_mode=settings.debug,
    )


def init_services(settings: Settings, store: Optional[RecordStore] = None) -> ServiceContainer:
    """Initialize the global service container."""
    global _services
    _services = build_services(settings, store=store)
    return _services


def get_services() -> ServiceContainer:
    """Get the global service container."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() at startup.")
    return _services


async def close_services() -> None:
    """Clear caches and release the store client."""
    global _services
    if _services is None:
        return
    _services.cache.invalidate()
    _services.admin_cache.invalidate()
    await _services.store.close()
    _services = None


def get_data_service(services: ServiceContainer = Depends(get_services)) -> DataCacheService:
    return services.data_service


def get_admin_service(services: ServiceContainer = Depends(get_services)) -> AdminItemService:
    return services.admin_service


def get_fallback_dataset(services: ServiceContainer = Depends(get_services)) -> FallbackDataset:
    return services.fallback
