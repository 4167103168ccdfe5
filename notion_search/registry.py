"""The set of named cache stores used by the request handlers.

Each store caches one kind of upstream data with a TTL matching how often that
data changes: filter options rarely change, search results change the most.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from notion_search.cache import CacheStore, SweepReport
from notion_search.config import Config
from notion_search.logger import get_logger
from notion_search.sweeper import PeriodicSweeper

logger = get_logger("registry")

GENERAL = "general"
SEARCH = "search"
PAGE = "page"
FILTER = "filter"

DEFAULT_TTLS: Dict[str, float] = {
    GENERAL: Config.GENERAL_CACHE_TTL,
    SEARCH: Config.SEARCH_CACHE_TTL,
    PAGE: Config.PAGE_CACHE_TTL,
    FILTER: Config.FILTER_CACHE_TTL,
}


class UnknownStoreError(KeyError):
    pass


class CacheRegistry:
    def __init__(
        self,
        ttls: Optional[Mapping[str, float]] = None,
        soft_limit: int = Config.CACHE_SOFT_LIMIT,
        target_size: int = Config.CACHE_TARGET_SIZE,
        sweep_interval: float = Config.SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        ttls = DEFAULT_TTLS if ttls is None else ttls
        self._stores: Dict[str, CacheStore] = {
            name: CacheStore(
                name,
                default_ttl=ttl,
                soft_limit=soft_limit,
                target_size=target_size,
                clock=clock,
            )
            for name, ttl in ttls.items()
        }
        self.sweeper = PeriodicSweeper(self, interval=sweep_interval)

    @property
    def names(self) -> List[str]:
        return list(self._stores)

    def store(self, name: str) -> CacheStore:
        try:
            return self._stores[name]
        except KeyError:
            raise UnknownStoreError(name) from None

    def get(self, name: str, key: str) -> Optional[Any]:
        return self.store(name).get(key)

    def set(self, name: str, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self.store(name).set(key, value, ttl)

    def delete(self, name: str, key: str) -> None:
        self.store(name).delete(key)

    def clear(self, name: Optional[str] = None) -> None:
        stores = [self.store(name)] if name else self._stores.values()
        for store in stores:
            store.clear()

    def sweep(self) -> List[SweepReport]:
        """Sweep every store. A failure in one store does not stop the others."""
        reports = []
        for name, store in self._stores.items():
            try:
                report = store.sweep()
            except Exception:
                logger.exception("Cache cleanup [%s] failed", name)
                continue
            logger.info(
                "Cache cleanup [%s]: %d -> %d items",
                name,
                report.size_before,
                report.size_after,
            )
            reports.append(report)
        return reports

    def stats(self) -> List[Dict[str, Any]]:
        return [store.stats() for store in self._stores.values()]

    async def init(self) -> None:
        await self.sweeper.start()

    async def shutdown(self) -> None:
        await self.sweeper.stop()
