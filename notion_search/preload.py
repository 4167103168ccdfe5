"""Background warming of the page cache.

Result rows that become visible are preloaded so that opening one is served
from cache. Preloading is best-effort: failures are dropped, nothing is
retried, and at most ``max_concurrent`` fetches run at once.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict, deque
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, Set

from notion_search.cache import CacheStore, page_cache_key
from notion_search.logger import get_logger

logger = get_logger("preload")


class PreloadScheduler:
    def __init__(
        self,
        store: CacheStore,
        fetch: Callable[[str], Awaitable[Any]],
        max_concurrent: int = 3,
        key_func: Callable[[str], str] = page_cache_key,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.store = store
        self.fetch = fetch
        self.max_concurrent = max_concurrent
        self.key_func = key_func
        self._pending: Deque[str] = deque()
        self._queued: Set[str] = set()
        self._in_flight: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self.completed = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def schedule(self, page_id: str) -> bool:
        """Queue ``page_id`` for preloading. Returns False when it was a no-op."""
        if (
            page_id in self._queued
            or page_id in self._in_flight
            or self.store.contains(self.key_func(page_id))
        ):
            return False
        self._pending.append(page_id)
        self._queued.add(page_id)
        self._idle.clear()
        self._run_next()
        return True

    def _run_next(self) -> None:
        while len(self._in_flight) < self.max_concurrent and self._pending:
            page_id = self._pending.popleft()
            self._queued.discard(page_id)
            self._in_flight.add(page_id)
            task = asyncio.get_running_loop().create_task(
                self._preload(page_id, self.store.generation)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if not self._pending and not self._in_flight:
            self._idle.set()

    async def _preload(self, page_id: str, generation: int) -> None:
        try:
            value = await self.fetch(page_id)
        except Exception as e:
            self.failed += 1
            logger.debug("Preload of %s failed: %s", page_id, e)
        else:
            self.completed += 1
            key = self.key_func(page_id)
            if self.store.generation != generation:
                logger.debug("Page cache invalidated while preloading %s, dropping result", page_id)
            # an on-demand fetch may have populated the key in the meantime
            elif not self.store.contains(key):
                self.store.set(key, value)
        finally:
            self._in_flight.discard(page_id)
            self._run_next()

    def cancel_pending(self) -> int:
        """Drop every queued preload that has not started yet."""
        dropped = len(self._pending)
        self._pending.clear()
        self._queued.clear()
        if not self._in_flight:
            self._idle.set()
        return dropped

    async def join(self) -> None:
        """Wait until nothing is queued or in flight."""
        await self._idle.wait()

    async def close(self) -> None:
        self.cancel_pending()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def stats(self) -> Dict[str, int]:
        return {
            "pending": self.pending,
            "in_flight": self.in_flight,
            "completed": self.completed,
            "failed": self.failed,
            "max_concurrent": self.max_concurrent,
        }


class VisibilityObserver:
    """Turns "row became visible" events into preload requests.

    A watched page is scheduled the first time it is reported visible and is
    then no longer watched, so repeated reports from scroll jitter are ignored
    until the page is observed again.
    """

    def __init__(self, scheduler: PreloadScheduler, max_watched: int = 5000):
        self.scheduler = scheduler
        self.max_watched = max_watched
        self._watched: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, page_id: str) -> bool:
        return page_id in self._watched

    def __len__(self) -> int:
        return len(self._watched)

    def observe(self, page_ids: Iterable[str]) -> None:
        for page_id in page_ids:
            self._watched[page_id] = None
            self._watched.move_to_end(page_id)
        while len(self._watched) > self.max_watched:
            self._watched.popitem(last=False)

    def notify_visible(self, page_ids: Iterable[str]) -> int:
        """Schedule every watched page in ``page_ids``; returns how many were queued."""
        scheduled = 0
        for page_id in page_ids:
            if page_id not in self._watched:
                continue
            del self._watched[page_id]
            if self.scheduler.schedule(page_id):
                scheduled += 1
        return scheduled

    def disconnect(self) -> None:
        self._watched.clear()
        self.scheduler.cancel_pending()
