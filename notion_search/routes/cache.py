"""
Preload and cache administration routes for the Notion search front-end
"""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from notion_search.dependencies import get_cache_registry, get_preloader, get_visibility_observer
from notion_search.models import CacheStatsResponse, PreloadRequest, PreloadResponse, SweepReportModel
from notion_search.preload import PreloadScheduler, VisibilityObserver
from notion_search.registry import CacheRegistry, UnknownStoreError

router = APIRouter()


@router.post("/preload", response_model=PreloadResponse, status_code=202, tags=["Cache"])
async def preload(
    request: PreloadRequest,
    observer: VisibilityObserver = Depends(get_visibility_observer),
):
    """
    Report result rows that became visible

    Rows returned by a recent search are preloaded into the page cache in the
    background. Everything else is ignored.
    """
    scheduled = observer.notify_visible(request.page_ids)
    return PreloadResponse(requested=len(request.page_ids), scheduled=scheduled)


@router.get("/cache/stats", response_model=CacheStatsResponse, tags=["Cache"])
async def cache_stats(
    registry: CacheRegistry = Depends(get_cache_registry),
    preloader: PreloadScheduler = Depends(get_preloader),
    observer: VisibilityObserver = Depends(get_visibility_observer),
):
    """Size and hit counts of every store"""
    return CacheStatsResponse(
        stores=registry.stats(),
        preload=preloader.stats(),
        observed_pages=len(observer),
    )


@router.post("/cache/sweep", response_model=List[SweepReportModel], tags=["Cache"])
async def sweep_cache(registry: CacheRegistry = Depends(get_cache_registry)):
    """Run a sweep now instead of waiting for the next tick"""
    return [asdict(report) for report in registry.sweeper.run_once()]


@router.delete("/cache/{store}", status_code=204, tags=["Cache"])
async def clear_cache(
    store: str = Path(..., description="Store name"),
    registry: CacheRegistry = Depends(get_cache_registry),
):
    """Drop every entry of one store"""
    try:
        registry.clear(store)
    except UnknownStoreError:
        raise HTTPException(status_code=404, detail=f"Unknown cache store '{store}'")
