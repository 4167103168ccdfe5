"""Periodic sweep of every cache store in a registry."""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import TYPE_CHECKING, List, Optional

from notion_search.cache import SweepReport
from notion_search.logger import get_logger

if TYPE_CHECKING:
    from notion_search.registry import CacheRegistry

logger = get_logger("sweeper")


class PeriodicSweeper:
    """Runs ``registry.sweep()`` on a fixed interval until stopped.

    Sweeps are synchronous, so two of them never interleave on the event loop.
    A non-blocking lock additionally skips a tick if a sweep started from
    another thread is still running.
    """

    def __init__(self, registry: "CacheRegistry", interval: float):
        self.registry = registry
        self.interval = float(interval)
        self._sweep_lock = Lock()
        self.last_reports: List[SweepReport] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def sweeping(self) -> bool:
        return self._sweep_lock.locked()

    def run_once(self) -> List[SweepReport]:
        if not self._sweep_lock.acquire(blocking=False):
            logger.info("Previous cache sweep still running, skipping tick")
            return []
        try:
            self.last_reports = self.registry.sweep()
        finally:
            self._sweep_lock.release()
        return self.last_reports

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._sweep_loop())
            logger.info("Cache sweeper started (every %ss)", self.interval)

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Cache sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.run_once()
            except Exception:
                logger.exception("Cache sweep failed")
