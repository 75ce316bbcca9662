"""
System Status API Router

Root and health endpoints: backing store in use, fallback dataset
availability and cache statistics.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import ServiceContainer, get_services

logger = logging.getLogger(__name__)
router = APIRouter(tags=["System"])

SERVICE_NAME = "The Blacklist"
SERVICE_VERSION = "1.0.0"


@router.get("/")
async def root() -> Dict[str, Any]:
    """Root endpoint - liveness check."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@router.get("/health")
async def health_check(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """
    Detailed health check.

    Reports "degraded" while reads are being served from fallback data.
    """
    fallback_info = services.fallback.info()
    quota = services.data_service.quota_status()

    return {
        "status": "degraded" if quota["quotaExceeded"] else "healthy",
        "store": services.store.name,
        "fallback": {
            "available": fallback_info["available"],
            "is_minimal": fallback_info["is_minimal"],
            "records": fallback_info["counts"]["all"],
        },
        "quota": quota,
        "cache": services.data_service.get_cache_statistics(),
        "admin_cache": services.admin_cache.get_stats(),
        "environment": services.settings.environment,
    }
