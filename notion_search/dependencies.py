"""
FastAPI dependencies exposing the per-application cache objects
"""

from fastapi import Request

from notion_search.notion import NotionClient
from notion_search.preload import PreloadScheduler, VisibilityObserver
from notion_search.registry import CacheRegistry


def get_notion(request: Request) -> NotionClient:
    return request.app.state.notion_client_factory()


def get_cache_registry(request: Request) -> CacheRegistry:
    return request.app.state.cache_registry


def get_preloader(request: Request) -> PreloadScheduler:
    return request.app.state.preloader


def get_visibility_observer(request: Request) -> VisibilityObserver:
    return request.app.state.visibility_observer
