"""Statistics and chart endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from dependencies import get_data_service
from records.derivations import VIEW_STATS
from rendering import render_stats_cards, wants_fragment
from services.data_cache import DataCacheService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("")
async def get_stats(
    request: Request,
    service: DataCacheService = Depends(get_data_service),
):
    """
    Status counts and percentages, per-status buckets, v1 ranges,
    scatter points and category counts.
    """
    stats = await service.get_optimized_data(VIEW_STATS)
    if wants_fragment(request.headers):
        return HTMLResponse(render_stats_cards(stats))
    return stats


@router.get("/cards", response_class=HTMLResponse)
async def get_stats_cards(service: DataCacheService = Depends(get_data_service)):
    return HTMLResponse(render_stats_cards(await service.get_optimized_data(VIEW_STATS)))


@router.get("/chart/{chart}")
async def get_chart(
    chart: str,
    service: DataCacheService = Depends(get_data_service),
):
    """Chart-ready data for pie, bar or scatter."""
    return await service.get_chart_data(chart)
