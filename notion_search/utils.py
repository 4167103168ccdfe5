"""Utility functions for the Notion search front-end."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


_HTTP_SESSION: requests.Session | None = None


def get_http_session() -> requests.Session:
    """Shared requests session with connection pooling + light retries."""
    global _HTTP_SESSION
    if _HTTP_SESSION is not None:
        return _HTTP_SESSION

    session = requests.Session()
    retry = Retry(
        total=2,
        connect=2,
        read=2,
        backoff_factor=0.2,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "POST"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(pool_connections=50, pool_maxsize=50, max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    _HTTP_SESSION = session
    return session


def build_search_filter(
    query: Optional[str],
    filters: Mapping[str, Optional[str]],
    title_property: str,
    filter_properties: Mapping[str, Tuple[str, str]],
) -> Optional[Dict[str, Any]]:
    """Build a Notion database filter from the query text and active filters.

    A single condition is returned as-is, several are combined with ``and``,
    and ``None`` means no filtering at all.
    """
    conditions: List[Dict[str, Any]] = []

    if query:
        conditions.append({"property": title_property, "title": {"contains": query}})

    for name, (prop, prop_type) in filter_properties.items():
        value = filters.get(name)
        if not value:
            continue
        # select supports equality only; multi_select matches any contained option
        operator = "equals" if prop_type == "select" else "contains"
        conditions.append({"property": prop, prop_type: {operator: value}})

    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"and": conditions}


def option_names(database: Mapping[str, Any], prop: str, prop_type: str) -> List[str]:
    """Sorted option names of a select/multi_select property in a database schema."""
    schema = (database.get("properties") or {}).get(prop) or {}
    options = (schema.get(prop_type) or {}).get("options") or []
    return sorted(opt["name"] for opt in options if opt.get("name"))


def plain_text(rich_text: Optional[List[Mapping[str, Any]]]) -> str:
    return "".join(t.get("plain_text", "") for t in rich_text or [])


def _file_url(payload: Mapping[str, Any]) -> Optional[str]:
    if payload.get("type") == "external":
        return (payload.get("external") or {}).get("url")
    return (payload.get("file") or {}).get("url")


def extract_files(blocks: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Pull file and pdf attachments out of a list of blocks.

    Images are left in the content; only downloadable attachments are returned.
    """
    files = []
    for block in blocks:
        block_type = block.get("type")
        if block_type not in ("file", "pdf"):
            continue
        payload = block.get(block_type)
        if not payload:
            continue
        default_name = "Unnamed PDF" if block_type == "pdf" else "Unnamed file"
        files.append({
            "type": block_type,
            "name": payload.get("name") or default_name,
            "url": _file_url(payload),
            "caption": plain_text(payload.get("caption")),
        })
    return files


def describe_block(block: Mapping[str, Any]) -> Dict[str, Any]:
    """Summarize a block for the debug endpoint."""
    summary: Dict[str, Any] = {
        "id": block.get("id"),
        "type": block.get("type"),
        "has_children": bool(block.get("has_children")),
    }
    if block.get("type") == "child_page":
        summary["child_page"] = block.get("child_page")
    elif block.get("type") == "paragraph":
        rich_text = (block.get("paragraph") or {}).get("rich_text") or []
        summary["text_content"] = plain_text(rich_text)
        summary["mentions"] = [
            {
                "type": (t.get("mention") or {}).get("type"),
                "id": ((t.get("mention") or {}).get("page") or {}).get("id")
                or ((t.get("mention") or {}).get("database") or {}).get("id"),
            }
            for t in rich_text
            if t.get("type") == "mention"
        ]
    return summary
