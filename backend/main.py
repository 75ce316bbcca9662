"""
The Blacklist FastAPI Backend

Serves the Blacklist records from a Firestore collection through an
in-memory TTL cache, degrading to a bundled fallback dataset when the
Firestore read quota is exhausted.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from dependencies import close_services, get_services, init_services
from middleware.error_handler import ErrorHandlerMiddleware, add_error_handlers
from routers import admin, cache_admin, lists, stats, system

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Background cleanup task handle
_cleanup_task: asyncio.Task | None = None


async def periodic_cache_cleanup(interval: float) -> None:
    """Periodically drop expired cache entries to bound memory growth."""
    while True:
        try:
            await asyncio.sleep(interval)

            services = get_services()
            cleaned = services.cache.cleanup_expired() + services.admin_cache.cleanup_expired()
            if cleaned > 0:
                logger.info(f"Cleaned {cleaned} expired cache entries")
        except asyncio.CancelledError:
            logger.debug("Cache cleanup task cancelled")
            break
        except Exception as e:
            logger.warning(f"Error in cache cleanup: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("The Blacklist Backend starting...")
    logger.info(f"   Environment: {settings.environment}")

    # Validate required settings
    missing_settings = settings.validate_required_settings()
    if missing_settings:
        for missing in missing_settings:
            logger.warning(f"   Missing: {missing}")
        if settings.environment == "production":
            logger.critical("   Cannot start in production with missing required settings!")
            raise RuntimeError(f"Missing required settings: {', '.join(missing_settings)}")

    services = init_services(settings)
    fallback_info = services.fallback.info()
    logger.info(f"   Record store: {services.store.name} (collection: {settings.collection_name})")
    logger.info(
        f"   Fallback dataset: {fallback_info['counts']['all']} records"
        f"{' (minimal)' if fallback_info['is_minimal'] else ''}"
    )
    logger.info(
        f"   Cache: master TTL={settings.master_cache_ttl}s, derived TTL={settings.derived_cache_ttl}s, "
        f"admin TTL={settings.admin_cache_ttl}s, max size={settings.cache_max_size} "
        f"(admin {settings.admin_cache_max_size})"
    )
    if not settings.admin_api_token:
        logger.warning("   Admin token: NOT configured (admin endpoints open in development)")

    global _cleanup_task
    _cleanup_task = asyncio.create_task(periodic_cache_cleanup(settings.cache_cleanup_interval))
    logger.info(f"   Periodic cache cleanup every {settings.cache_cleanup_interval}s")

    yield

    # Shutdown
    logger.info("The Blacklist Backend shutting down...")

    if _cleanup_task:
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            pass
        logger.info("   Cache cleanup task stopped")

    services = get_services()
    cache_size = len(services.cache) + len(services.admin_cache)
    await close_services()
    logger.info(f"   Cleared {cache_size} cache entries")


app = FastAPI(
    title="The Blacklist API",
    description="Cached Blacklist records with quota-aware fallback data",
    version=system.SERVICE_VERSION,
    lifespan=lifespan,
)

# Must be added BEFORE CORSMiddleware so that error responses
# pass through CORS and get proper headers added.
app.add_middleware(ErrorHandlerMiddleware)
add_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "X-Admin-Token", "HX-Request", "HX-Target", "HX-Current-URL"],
)

# Include routers
app.include_router(system.router)
app.include_router(lists.router)
app.include_router(stats.router)
app.include_router(cache_admin.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
