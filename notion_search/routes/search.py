"""
Search and filter routes for the Notion search front-end
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from notion_search.cache import generate_search_key, normalize_filters, normalize_query
from notion_search.dependencies import get_cache_registry, get_notion, get_visibility_observer
from notion_search.logger import get_logger
from notion_search.models import FilterOptionsModel, SearchResultModel
from notion_search.notion import NotionClient
from notion_search.pages import fetch_filter_options, search_pages
from notion_search.preload import VisibilityObserver
from notion_search.registry import FILTER, SEARCH, CacheRegistry

router = APIRouter()
logger = get_logger("routes.search")

FILTER_OPTIONS_KEY = "filter_options"


@router.get("/filters", response_model=FilterOptionsModel, tags=["Search"])
async def get_filters(
    client: NotionClient = Depends(get_notion),
    registry: CacheRegistry = Depends(get_cache_registry),
):
    """Available subject, grade and period values"""
    try:
        return await registry.store(FILTER).get_or_fetch(
            FILTER_OPTIONS_KEY,
            lambda: run_in_threadpool(fetch_filter_options, client),
        )
    except Exception as e:
        logger.error("Error fetching filters: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch filter options"
        )


@router.get("/search", response_model=List[SearchResultModel], tags=["Search"])
async def search(
    q: str = Query("", description="Text contained in the page title"),
    subject: Optional[str] = Query(None, description="Subject filter"),
    grade: Optional[str] = Query(None, description="Grade filter"),
    period: Optional[str] = Query(None, description="Period filter"),
    client: NotionClient = Depends(get_notion),
    registry: CacheRegistry = Depends(get_cache_registry),
    observer: VisibilityObserver = Depends(get_visibility_observer),
):
    """
    Search the database

    - **q**: title text to search for (empty lists everything)
    - **subject**, **grade**, **period**: optional filters
    """
    # the key and the upstream query must be built from the same values
    query = normalize_query(q)
    filters = normalize_filters({"subject": subject, "grade": grade, "period": period})
    key = generate_search_key(query, filters)
    try:
        results = await registry.store(SEARCH).get_or_fetch(
            key,
            lambda: run_in_threadpool(search_pages, client, query, filters),
        )
    except Exception as e:
        logger.error("Error querying Notion: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Failed to query Notion database"
        )

    # rows of a fresh result list become eligible for preloading once visible
    observer.observe(row["id"] for row in results)
    return results
