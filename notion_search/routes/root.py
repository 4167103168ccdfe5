"""
Root, health and connectivity routes for the Notion search front-end
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from notion_search.config import Config
from notion_search.dependencies import get_notion
from notion_search.logger import get_logger
from notion_search.notion import NotionClient

router = APIRouter()
logger = get_logger("routes.root")


@router.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to Notion Search",
        "provider": "Notion",
        "version": Config.VERSION,
        "docs": Config.DOCS_URL,
        "endpoints": {
            "search": "/search?q=text&subject=&grade=&period=",
            "filters": "/filters",
            "page": "/page/{page_id}",
            "child_page": "/child-page/{page_id}",
            "preload": "/preload",
            "cache": "/cache/stats"
        }
    }


@router.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "provider": "Notion",
        "message": "API is running"
    }


@router.get("/test", tags=["Health"])
async def test_connection(client: NotionClient = Depends(get_notion)):
    """Query a single row to verify the Notion token and database id"""
    logger.info("Testing Notion connection (database %s)", client.database_id)
    try:
        results = await run_in_threadpool(client.query_database, None, 1)
        return {
            "success": True,
            "page_count": len(results),
            "sample_page": results[0] if results else None
        }
    except Exception as e:
        logger.error("Notion connection test failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e)
            }
        )
