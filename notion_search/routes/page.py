"""
Page detail routes for the Notion search front-end
"""

from fastapi import APIRouter, Depends, HTTPException, Path

from starlette.concurrency import run_in_threadpool

from notion_search.cache import page_cache_key
from notion_search.dependencies import get_cache_registry, get_notion
from notion_search.logger import get_logger
from notion_search.models import ChildPageDetailModel, PageDetailModel
from notion_search.notion import NotionClient
from notion_search.pages import fetch_child_page_detail, fetch_page_detail
from notion_search.registry import PAGE, CacheRegistry
from notion_search.utils import describe_block

router = APIRouter()
logger = get_logger("routes.page")


@router.get("/page/{page_id}", response_model=PageDetailModel, tags=["Pages"])
async def get_page(
    page_id: str = Path(..., description="Notion page id"),
    client: NotionClient = Depends(get_notion),
    registry: CacheRegistry = Depends(get_cache_registry),
):
    """
    Get page properties, content, attachments and child pages

    - **page_id**: the page id from search results
    """
    try:
        return await registry.store(PAGE).get_or_fetch(
            page_cache_key(page_id),
            lambda: run_in_threadpool(fetch_page_detail, client, page_id),
        )
    except Exception as e:
        logger.error("Error fetching page details for %s: %s", page_id, e)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch page details: {str(e)}"
        )


@router.get("/child-page/{page_id}", response_model=ChildPageDetailModel, tags=["Pages"])
async def get_child_page(
    page_id: str = Path(..., description="Notion child page id"),
    client: NotionClient = Depends(get_notion),
):
    """Get child page content; not cached"""
    try:
        return await run_in_threadpool(fetch_child_page_detail, client, page_id)
    except Exception as e:
        logger.error("Error fetching child page details for %s: %s", page_id, e)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch child page details: {str(e)}"
        )


@router.get("/debug/{page_id}", tags=["Pages"])
async def debug_page(
    page_id: str = Path(..., description="Notion page id"),
    client: NotionClient = Depends(get_notion),
):
    """Describe the block structure of a page"""
    try:
        page = await run_in_threadpool(client.retrieve_page, page_id)
        blocks = await run_in_threadpool(client.list_block_children, page_id)
    except Exception as e:
        logger.error("Debug analysis of %s failed: %s", page_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "page": {
            "id": page["id"],
            "properties": list(page.get("properties", {}))
        },
        "blocks": [describe_block(block) for block in blocks]
    }
