"""
Cache management endpoints.

All routes require the admin token.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth.dependencies import require_admin
from dependencies import get_data_service, get_fallback_dataset
from records.fallback import FallbackDataset
from services.data_cache import DataCacheService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/cache",
    tags=["Cache"],
    dependencies=[Depends(require_admin)],
)


# ============================================================================
# Response Models
# ============================================================================


class ClearCacheResponse(BaseModel):
    success: bool = True
    cleared: int


class InvalidateMasterResponse(BaseModel):
    success: bool = True
    removed: List[str]


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/clear", response_model=ClearCacheResponse)
async def clear_cache(service: DataCacheService = Depends(get_data_service)):
    """Drop every cache entry."""
    return ClearCacheResponse(cleared=service.invalidate_all())


@router.post("/invalidate-master", response_model=InvalidateMasterResponse)
async def invalidate_master(service: DataCacheService = Depends(get_data_service)):
    """
    Drop the master snapshot and the derived views registered against it.

    Narrow ``version1_status_*`` lookups are not registered and stay cached
    until their TTL lapses.
    """
    return InvalidateMasterResponse(removed=service.invalidate_master())


@router.get("/stats")
async def cache_stats(service: DataCacheService = Depends(get_data_service)) -> Dict[str, Any]:
    return service.get_cache_statistics()


@router.post("/reload-fallback")
async def reload_fallback(service: DataCacheService = Depends(get_data_service)) -> Dict[str, Any]:
    """Re-read the fallback dataset; on failure the previous copy stays in place."""
    info = service.reload_fallback_dataset()
    return {"success": True, "fallback": info}


@router.get("/fallback-info")
async def fallback_info(fallback: FallbackDataset = Depends(get_fallback_dataset)) -> Dict[str, Any]:
    return fallback.info()
