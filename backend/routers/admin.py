"""
Admin API Router

Item management for the admin panel:
- Listing, lookup, search and editing of items
- Admin cache clearing and warming
- Quota and debug status

All routes require the admin token.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel

from auth.dependencies import require_admin
from dependencies import ServiceContainer, get_admin_service, get_services
from records.models import ItemUpdate, Record
from services.admin_items import ADMIN_ALL_ITEMS_KEY, AdminItemService
from services.data_cache import MASTER_CACHE_KEY

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/api",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/items", response_model=List[Record])
async def list_items(admin: AdminItemService = Depends(get_admin_service)):
    return await admin.get_all_items()


@router.get("/items/{item_id}", response_model=Record)
async def get_item(item_id: str, admin: AdminItemService = Depends(get_admin_service)):
    item = await admin.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    update: ItemUpdate = Body(...),
    admin: AdminItemService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """
    Update name, status, category, v1 or v2.

    Other fields and null values are ignored; an update with nothing left
    is rejected with 400.
    """
    return await admin.update_item(item_id, update.model_dump(exclude_none=True))


@router.get("/stats")
async def admin_stats(admin: AdminItemService = Depends(get_admin_service)) -> Dict[str, Any]:
    return await admin.get_stats()


@router.get("/search", response_model=List[Record])
async def search_items(
    q: Optional[str] = Query(None, description="Matched against name, status, category and id"),
    admin: AdminItemService = Depends(get_admin_service),
):
    return await admin.search(q or "")


@router.post("/clear-cache")
async def clear_admin_cache(admin: AdminItemService = Depends(get_admin_service)) -> Dict[str, Any]:
    removed = admin.clear_cache()
    return {"success": True, "message": "Admin cache cleared", "removed": removed}


@router.post("/warm-cache")
async def warm_admin_cache(admin: AdminItemService = Depends(get_admin_service)) -> Dict[str, Any]:
    warmed = await admin.warm_cache()
    return {"success": True, "message": "Admin cache warmed", **warmed}


@router.get("/quota-status")
async def quota_status(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    return {"success": True, "data": services.data_service.quota_status()}


@router.get("/debug-mode")
async def debug_mode(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    return {
        "debugMode": services.debug_mode,
        "logLevel": services.settings.log_level,
        "metrics": {
            "uptime": round(time.monotonic() - services.started_at, 3),
            "cacheStats": {
                "masterCache": "hit" if MASTER_CACHE_KEY in services.cache else "miss",
                "adminCache": "hit" if ADMIN_ALL_ITEMS_KEY in services.admin_cache else "miss",
            },
        },
    }


class DebugToggle(BaseModel):
    debugMode: bool = False


@router.post("/toggle-debug")
async def toggle_debug(
    toggle: DebugToggle = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Switch debug mode at runtime; the root logger follows it."""
    services.debug_mode = toggle.debugMode
    if toggle.debugMode:
        level = logging.DEBUG
    else:
        level = getattr(logging, services.settings.log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)

    state = "enabled" if toggle.debugMode else "disabled"
    logger.info(f"Debug mode {state} (log level {logging.getLevelName(level)})")
    return {
        "success": True,
        "debugMode": services.debug_mode,
        "message": f"Debug mode {state}",
    }
