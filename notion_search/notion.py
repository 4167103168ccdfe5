"""Minimal blocking client for the Notion REST API.

Calls are made with ``requests``; async callers should go through
``run_in_threadpool``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from notion_search.logger import get_logger
from notion_search.utils import get_http_session

logger = get_logger("notion")


class NotionClient:
    def __init__(
        self,
        token: str,
        database_id: str,
        base_url: str = "https://api.notion.com/v1",
        notion_version: str = "2022-06-28",
        max_query_pages: int = 5,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.database_id = database_id
        self.base_url = base_url.rstrip("/")
        self.max_query_pages = max_query_pages
        self.timeout = timeout
        self._session = session or get_http_session()
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": notion_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        logger.debug("Notion %s %s", method, path)
        response = self._session.request(
            method,
            f"{self.base_url}{path}",
            headers=self._headers,
            timeout=self.timeout,
            **kwargs,
        )
        response.raise_for_status()
        return response.json()

    def query_database(
        self,
        filter: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Query the configured database, following cursors up to ``max_query_pages``."""
        body: Dict[str, Any] = {"page_size": min(limit, 100) if limit else 100}
        if filter:
            body["filter"] = filter

        results: List[Dict[str, Any]] = []
        for _ in range(self.max_query_pages):
            data = self._request("POST", f"/databases/{self.database_id}/query", json=body)
            results.extend(data.get("results", []))
            if not data.get("has_more") or (limit and len(results) >= limit):
                break
            body["start_cursor"] = data.get("next_cursor")
        return results[:limit] if limit else results

    def retrieve_database(self) -> Dict[str, Any]:
        return self._request("GET", f"/databases/{self.database_id}")

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/pages/{page_id}")

    def list_block_children(self, block_id: str) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"page_size": 100}
        while True:
            data = self._request("GET", f"/blocks/{block_id}/children", params=params)
            blocks.extend(data.get("results", []))
            if not data.get("has_more"):
                return blocks
            params["start_cursor"] = data.get("next_cursor")
