"""
Public list endpoints.

Each endpoint returns JSON, or an HTML list fragment when the request
carries ``HX-Request: true``.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from dependencies import get_data_service, get_fallback_dataset
from exceptions import UnknownStatusError, UnknownViewError
from records.derivations import VIEW_STATS, VIEW_STATUS, VIEW_VERSION1, VIEW_VERSION2
from records.fallback import FallbackDataset
from records.models import STATUSES, Record
from rendering import render_item_list, render_stats_cards, wants_fragment
from services.data_cache import DataCacheService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Lists"])

DUMMY_VIEWS = ("all", VIEW_VERSION1, VIEW_VERSION2, VIEW_STATS)


def _known_status(name: str) -> str:
    status = name.strip().lower()
    if status not in STATUSES:
        raise UnknownStatusError(name)
    return status


def _list_response(request: Request, records: List[Record]) -> Any:
    if wants_fragment(request.headers):
        return HTMLResponse(render_item_list(records))
    return records


@router.get("/version1")
async def version1(
    request: Request,
    service: DataCacheService = Depends(get_data_service),
):
    """Records with v1 in [0, 200], ordered by v1."""
    return _list_response(request, await service.get_optimized_data(VIEW_VERSION1))


@router.get("/version2")
async def version2(
    request: Request,
    service: DataCacheService = Depends(get_data_service),
):
    """Records with v2 in [0, 200], in v1 order."""
    return _list_response(request, await service.get_optimized_data(VIEW_VERSION2))


@router.get("/version1/{status}")
async def version1_by_status(
    status: str,
    request: Request,
    service: DataCacheService = Depends(get_data_service),
):
    """First records (by v1) with the given status."""
    records = await service.get_status_top(_known_status(status))
    return _list_response(request, records)


@router.get("/status/{name}")
async def records_by_status(
    name: str,
    request: Request,
    service: DataCacheService = Depends(get_data_service),
):
    """All master records whose status equals name."""
    records = await service.get_optimized_data(VIEW_STATUS, _known_status(name))
    return _list_response(request, records)


@router.get("/dummy-data/{view}")
async def dummy_data(
    view: str,
    request: Request,
    fallback: FallbackDataset = Depends(get_fallback_dataset),
):
    """
    Serve the fallback dataset directly (demo mode).

    ``view`` is one of all, version1, version2 or stats.
    """
    if view not in DUMMY_VIEWS:
        raise UnknownViewError(view)

    data = fallback.all_records() if view == "all" else fallback.view(view)

    if wants_fragment(request.headers):
        if view == VIEW_STATS:
            return HTMLResponse(render_stats_cards(data))
        return HTMLResponse(render_item_list(data))
    return data
