"""
Cache Registry and Sweeper Tests
"""

import asyncio
import threading

import pytest

from notion_search.cache import CacheStore
from notion_search.registry import (
    FILTER,
    GENERAL,
    PAGE,
    SEARCH,
    CacheRegistry,
    UnknownStoreError,
)
from notion_search.sweeper import PeriodicSweeper


class TestCacheRegistry:
    """Test cases for the named store set."""

    def test_default_stores_and_ttls(self, registry):
        assert set(registry.names) == {GENERAL, SEARCH, PAGE, FILTER}
        assert registry.store(GENERAL).default_ttl == 600
        assert registry.store(SEARCH).default_ttl == 300
        assert registry.store(PAGE).default_ttl == 900
        assert registry.store(FILTER).default_ttl == 1800

    def test_stores_are_independent(self, registry):
        registry.set(SEARCH, "k", "search-value")
        registry.set(PAGE, "k", "page-value")
        assert registry.get(SEARCH, "k") == "search-value"
        assert registry.get(PAGE, "k") == "page-value"
        registry.delete(SEARCH, "k")
        assert registry.get(SEARCH, "k") is None
        assert registry.get(PAGE, "k") == "page-value"

    def test_ttl_override(self, registry, clock):
        registry.set(FILTER, "opts", ["a"], ttl=5)
        clock.advance(6)
        assert registry.get(FILTER, "opts") is None

    def test_unknown_store(self, registry):
        with pytest.raises(UnknownStoreError):
            registry.get("nope", "k")
        with pytest.raises(KeyError):
            registry.set("nope", "k", 1)

    def test_search_store_end_to_end(self, registry, clock):
        results_a = [{"id": "p1"}]
        registry.set(SEARCH, "q:math::", results_a)
        assert registry.get(SEARCH, "q:math::") == results_a

        clock.advance(5 * 60 + 1)
        assert registry.get(SEARCH, "q:math::") is None

    def test_clear_single_store(self, registry):
        registry.set(SEARCH, "a", 1)
        registry.set(PAGE, "b", 2)
        registry.clear(SEARCH)
        assert registry.store(SEARCH).size() == 0
        assert registry.store(PAGE).size() == 1

    def test_sweep_reports_every_store(self, registry, clock):
        registry.set(SEARCH, "old", 1)
        registry.set(FILTER, "opts", 2)
        clock.advance(301)

        reports = {r.store: r for r in registry.sweep()}

        assert set(reports) == {GENERAL, SEARCH, PAGE, FILTER}
        assert reports[SEARCH].size_before == 1
        assert reports[SEARCH].size_after == 0
        assert reports[FILTER].size_after == 1

    def test_failing_store_does_not_stop_the_others(self, registry, clock, monkeypatch):
        registry.set(GENERAL, "g", 1, ttl=1)
        registry.set(PAGE, "p", 1, ttl=1)
        clock.advance(2)

        def broken_sweep():
            raise RuntimeError("mutated during iteration")

        monkeypatch.setattr(registry.store(SEARCH), "sweep", broken_sweep)

        reports = registry.sweep()

        assert SEARCH not in {r.store for r in reports}
        assert registry.store(GENERAL).size() == 0
        assert registry.store(PAGE).size() == 0

    def test_custom_ttls(self, clock):
        registry = CacheRegistry(ttls={"only": 7}, clock=clock)
        assert registry.names == ["only"]
        assert isinstance(registry.store("only"), CacheStore)


class TestPeriodicSweeper:
    """Test cases for the background sweep loop."""

    @pytest.mark.asyncio
    async def test_loop_sweeps_until_stopped(self, clock):
        registry = CacheRegistry(clock=clock, sweep_interval=0.01)
        registry.set(SEARCH, "k", 1, ttl=1)
        clock.advance(2)

        await registry.init()
        assert registry.sweeper.running
        await asyncio.sleep(0.05)
        await registry.shutdown()

        assert not registry.sweeper.running
        assert registry.store(SEARCH).size() == 0
        assert registry.sweeper.last_reports

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_without_start_is_safe(self, registry):
        await registry.sweeper.stop()
        await registry.sweeper.start()
        task = registry.sweeper._task
        await registry.sweeper.start()
        assert registry.sweeper._task is task
        await registry.sweeper.stop()

    @pytest.mark.asyncio
    async def test_loop_survives_a_failing_sweep(self, clock):
        calls = []

        class FlakyRegistry:
            def sweep(self):
                calls.append(1)
                if len(calls) == 1:
                    raise RuntimeError("boom")
                return []

        sweeper = PeriodicSweeper(FlakyRegistry(), interval=0.01)
        await sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert len(calls) >= 2

    def test_overlapping_tick_is_skipped(self, registry):
        registry.sweeper._sweep_lock.acquire()
        assert registry.sweeper.sweeping
        assert registry.sweeper.run_once() == []
        registry.sweeper._sweep_lock.release()
        assert len(registry.sweeper.run_once()) == 4
        assert not registry.sweeper.sweeping

    def test_sweep_started_from_another_thread_blocks_the_tick(self, registry, monkeypatch):
        started = threading.Event()
        finish = threading.Event()
        original_sweep = registry.sweep

        def slow_sweep():
            started.set()
            finish.wait(timeout=1)
            return original_sweep()

        monkeypatch.setattr(registry, "sweep", slow_sweep)
        worker = threading.Thread(target=registry.sweeper.run_once)
        worker.start()
        assert started.wait(timeout=1)

        assert registry.sweeper.run_once() == []

        finish.set()
        worker.join(timeout=1)
        assert len(registry.sweeper.last_reports) == 4
