"""Shared fixtures for the Notion search tests."""

import pytest

from notion_search.registry import CacheRegistry


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotionClient:
    """Stands in for NotionClient with canned responses and a call log."""

    database_id = "db-test"

    def __init__(self, pages=None, blocks=None, database=None):
        self.pages = pages or {}
        self.blocks = blocks or {}
        self.database = database or {"properties": {}}
        self.query_results = []
        self.calls = []
        self.fail_query = False

    def query_database(self, filter=None, limit=None):
        self.calls.append(("query_database", filter))
        if self.fail_query:
            raise RuntimeError("notion unavailable")
        results = self.query_results
        return results[:limit] if limit else results

    def retrieve_database(self):
        self.calls.append(("retrieve_database", None))
        return self.database

    def retrieve_page(self, page_id):
        self.calls.append(("retrieve_page", page_id))
        if page_id not in self.pages:
            raise RuntimeError(f"page {page_id} not found")
        return self.pages[page_id]

    def list_block_children(self, block_id):
        self.calls.append(("list_block_children", block_id))
        return self.blocks.get(block_id, [])

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def registry(clock):
    return CacheRegistry(clock=clock)


@pytest.fixture
def fake_notion():
    return FakeNotionClient()
