"""
Configuration and upstream client setup for the Notion search front-end
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

from notion_search.notion import NotionClient

load_dotenv()


class Config:
    """Application configuration"""

    # API settings
    TITLE = "Notion Search"
    DESCRIPTION = "Cached search front-end for a Notion database"
    VERSION = "1.0.0"
    DOCS_URL = "/docs"
    REDOC_URL = "/redoc"

    # CORS settings
    ALLOW_ORIGINS = ["*"]
    ALLOW_CREDENTIALS = True
    ALLOW_METHODS = ["*"]
    ALLOW_HEADERS = ["*"]

    # Server settings
    HOST = "0.0.0.0"
    PORT = int(os.getenv("PORT", "3000"))
    RELOAD = True

    # Notion settings
    NOTION_TOKEN = os.getenv("NOTION_TOKEN", "")
    NOTION_DATABASE_ID = os.getenv("NOTION_DATABASE_ID", "")
    NOTION_VERSION = os.getenv("NOTION_VERSION", "2022-06-28")
    NOTION_API_URL = os.getenv("NOTION_API_URL", "https://api.notion.com/v1")
    NOTION_MAX_QUERY_PAGES = 5

    # Database schema
    TITLE_PROPERTY = "名前"
    FILTER_PROPERTIES = {
        "subject": ("教科", "multi_select"),
        "grade": ("学年", "select"),
        "period": ("時期", "multi_select"),
    }

    # Cache settings (seconds)
    GENERAL_CACHE_TTL = 10 * 60
    SEARCH_CACHE_TTL = 5 * 60
    PAGE_CACHE_TTL = 15 * 60
    FILTER_CACHE_TTL = 30 * 60
    CACHE_SOFT_LIMIT = 1000
    CACHE_TARGET_SIZE = 800
    SWEEP_INTERVAL = 2 * 60

    # Preload settings
    MAX_CONCURRENT_PRELOADS = 3
    MAX_OBSERVED_PAGES = 5000


def get_notion_client() -> NotionClient:
    """Get the configured Notion client instance"""
    return _get_cached_client()


@lru_cache(maxsize=1)
def _get_cached_client() -> NotionClient:
    """Create a single client per process so the HTTP session pool is shared."""
    return NotionClient(
        token=Config.NOTION_TOKEN,
        database_id=Config.NOTION_DATABASE_ID,
        base_url=Config.NOTION_API_URL,
        notion_version=Config.NOTION_VERSION,
        max_query_pages=Config.NOTION_MAX_QUERY_PAGES,
    )
