"""
Notion search front-end application package
"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool

from notion_search.config import Config, get_notion_client
from notion_search.logger import get_logger
from notion_search.models import ErrorResponse
from notion_search.notion import NotionClient
from notion_search.pages import fetch_page_detail
from notion_search.preload import PreloadScheduler, VisibilityObserver
from notion_search.registry import PAGE, CacheRegistry
from notion_search.routes.root import router as root_router
from notion_search.routes.search import router as search_router
from notion_search.routes.page import router as page_router
from notion_search.routes.cache import router as cache_router

logger = get_logger()


def create_app(
    notion_client_factory: Callable[[], NotionClient] = get_notion_client,
    registry: Optional[CacheRegistry] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""

    registry = registry or CacheRegistry()

    async def preload_page(page_id: str):
        client = notion_client_factory()
        return await run_in_threadpool(fetch_page_detail, client, page_id)

    preloader = PreloadScheduler(
        registry.store(PAGE),
        preload_page,
        max_concurrent=Config.MAX_CONCURRENT_PRELOADS,
    )
    observer = VisibilityObserver(preloader, max_watched=Config.MAX_OBSERVED_PAGES)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await registry.init()
        logger.info("Cache registry initialized: %s", ", ".join(registry.names))
        try:
            yield
        finally:
            await preloader.close()
            await registry.shutdown()

    # Initialize FastAPI app
    app = FastAPI(
        title=Config.TITLE,
        description=Config.DESCRIPTION,
        version=Config.VERSION,
        docs_url=Config.DOCS_URL,
        redoc_url=Config.REDOC_URL,
        lifespan=lifespan,
    )

    app.state.notion_client_factory = notion_client_factory
    app.state.cache_registry = registry
    app.state.preloader = preloader
    app.state.visibility_observer = observer

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.ALLOW_ORIGINS,
        allow_credentials=Config.ALLOW_CREDENTIALS,
        allow_methods=Config.ALLOW_METHODS,
        allow_headers=Config.ALLOW_HEADERS,
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(search_router)
    app.include_router(page_router)
    app.include_router(cache_router)

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                detail=exc.detail,
                error_type="HTTPException"
            ).model_dump()
        )

    return app
