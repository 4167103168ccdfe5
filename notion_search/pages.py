"""Producers that turn Notion API responses into the payloads we serve.

These are blocking and meant to be run in a threadpool. They are the functions
the request handlers (and the preloader) call on a cache miss.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from notion_search.config import Config
from notion_search.logger import get_logger
from notion_search.notion import NotionClient
from notion_search.utils import build_search_filter, extract_files, option_names

logger = get_logger("pages")

INACCESSIBLE = "inaccessible"


def search_pages(
    client: NotionClient,
    query: Optional[str],
    filters: Mapping[str, Optional[str]],
) -> List[Dict[str, Any]]:
    notion_filter = build_search_filter(
        query, filters, Config.TITLE_PROPERTY, Config.FILTER_PROPERTIES
    )
    pages = client.query_database(filter=notion_filter)
    return [{"id": page["id"], "properties": page.get("properties", {})} for page in pages]


def fetch_filter_options(client: NotionClient) -> Dict[str, List[str]]:
    """Distinct option values for each filter, read from the database schema."""
    database = client.retrieve_database()
    return {
        f"{name}s": option_names(database, prop, prop_type)
        for name, (prop, prop_type) in Config.FILTER_PROPERTIES.items()
    }


def _expand_children(
    client: NotionClient, blocks: List[Dict[str, Any]], only_types: Optional[set] = None
) -> List[Dict[str, Any]]:
    """Inline the direct children of blocks that have them, in document order.

    Child pages are never inlined. A failure to list one block's children is
    logged and that block is kept without them.
    """
    expanded = []
    for block in blocks:
        expanded.append(block)
        if not block.get("has_children"):
            continue
        if only_types is not None and block.get("type") not in only_types:
            continue
        try:
            children = client.list_block_children(block["id"])
        except Exception as e:
            logger.error("Error fetching children for block %s: %s", block.get("id"), e)
            continue
        expanded.extend(c for c in children if c.get("type") != "child_page")
    return expanded


def _child_page(client: NotionClient, block: Mapping[str, Any]) -> Dict[str, Any]:
    child = block.get("child_page") or {}
    page_id = child.get("id") or block["id"]
    title = child.get("title") or "Untitled"
    try:
        page = client.retrieve_page(page_id)
    except Exception as e:
        logger.warning("Error fetching child page %s: %s", page_id, e)
        return {"id": block["id"], "title": title, "properties": None, "error": INACCESSIBLE}
    return {"id": page_id, "title": title, "properties": page.get("properties")}


def fetch_page_detail(client: NotionClient, page_id: str) -> Dict[str, Any]:
    """Page properties, its own content blocks, attachments and child pages."""
    page = client.retrieve_page(page_id)
    blocks = client.list_block_children(page_id)
    logger.debug("Found %d blocks in page %s", len(blocks), page_id)

    child_page_blocks = [b for b in blocks if b.get("type") == "child_page"]
    parent_blocks = [b for b in blocks if b.get("type") != "child_page"]
    content = _expand_children(client, parent_blocks)

    return {
        "page": {"id": page["id"], "properties": page.get("properties", {})},
        "content": content,
        "files": extract_files(content),
        "child_pages": [_child_page(client, b) for b in child_page_blocks],
    }


def fetch_child_page_detail(client: NotionClient, page_id: str) -> Dict[str, Any]:
    """Like ``fetch_page_detail`` but only table rows are expanded and grandchildren are skipped."""
    page = client.retrieve_page(page_id)
    blocks = client.list_block_children(page_id)
    parent_blocks = [b for b in blocks if b.get("type") != "child_page"]
    content = _expand_children(client, parent_blocks, only_types={"table"})
    return {
        "page": {"id": page["id"], "properties": page.get("properties", {})},
        "content": content,
        "files": extract_files(content),
    }
