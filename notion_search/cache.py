"""In-process expiring cache stores.

Each store is a plain mapping of string keys to expiring entries. Expiry is
checked lazily on every read, while memory is bounded by the periodic sweep
(see ``notion_search.sweeper``). Everything here is best-effort and resets when
the process restarts.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, Optional, TypeVar

from notion_search.logger import get_logger

T = TypeVar("T")

logger = get_logger("cache")

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ExpiringEntry(Generic[T]):
    value: T
    expiry: float
    access_count: int = 0
    last_accessed: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now > self.expiry


@dataclass(frozen=True)
class SweepReport:
    store: str
    size_before: int
    size_after: int
    expired: int = 0
    evicted: int = 0


class CacheStore(Generic[T]):
    """A named expiring cache.

    Reads never return an entry past its expiry. Capacity is only enforced by
    ``sweep``: once the store holds more than ``soft_limit`` live entries the
    least recently read ones are dropped until ``target_size`` remain.
    """

    def __init__(
        self,
        name: str,
        default_ttl: float,
        soft_limit: int = 1000,
        target_size: int = 800,
        clock: Callable[[], float] = time.monotonic,
    ):
        if target_size > soft_limit:
            raise ValueError("target_size must not exceed soft_limit")
        self.name = name
        self.default_ttl = float(default_ttl)
        self.soft_limit = int(soft_limit)
        self.target_size = int(target_size)
        self._clock = clock
        self._lock = RLock()
        self._data: Dict[str, ExpiringEntry[T]] = {}
        self._hits = 0
        self._misses = 0
        self._generation = 0

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            now = self._clock()
            entry = self._data.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                self._data.pop(key, None)
                self._misses += 1
                return None
            entry.access_count += 1
            entry.last_accessed = now
            self._hits += 1
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        with self._lock:
            now = self._clock()
            ttl = self.default_ttl if ttl is None else float(ttl)
            self._data[key] = ExpiringEntry(
                value=value, expiry=now + ttl, access_count=0, last_accessed=now
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._generation += 1

    def peek(self, key: str) -> Optional[ExpiringEntry[T]]:
        """Return the raw entry without touching its access metadata."""
        with self._lock:
            return self._data.get(key)

    def contains(self, key: str) -> bool:
        """True when ``key`` holds a live entry. Does not count as a read."""
        with self._lock:
            entry = self._data.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def size(self) -> int:
        with self._lock:
            return len(self._data)

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._generation += 1

    @property
    def generation(self) -> int:
        """Bumped by every explicit invalidation (``delete`` or ``clear``)."""
        with self._lock:
            return self._generation

    def sweep(self) -> SweepReport:
        with self._lock:
            now = self._clock()
            size_before = len(self._data)

            expired_keys = [k for k, v in self._data.items() if v.is_expired(now)]
            for k in expired_keys:
                self._data.pop(k, None)

            evicted = 0
            if len(self._data) > self.soft_limit:
                # sorted() is stable, so equal timestamps keep insertion order
                by_age = sorted(self._data.items(), key=lambda item: item[1].last_accessed)
                overflow = len(self._data) - self.target_size
                for k, _ in by_age[:overflow]:
                    self._data.pop(k, None)
                evicted = overflow

            return SweepReport(
                store=self.name,
                size_before=size_before,
                size_after=len(self._data),
                expired=len(expired_keys),
                evicted=evicted,
            )

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "size": len(self._data),
                "default_ttl": self.default_ttl,
                "hits": self._hits,
                "misses": self._misses,
            }

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl: Optional[float] = None,
    ) -> T:
        """Return the cached value for ``key`` or await ``producer`` and store it.

        Producer errors propagate unchanged and nothing is stored for the key.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit [%s]: %s", self.name, key)
            return cached
        logger.debug("Cache miss [%s]: %s", self.name, key)
        value = await producer()
        self.set(key, value, ttl)
        return value


def _field(value: str) -> str:
    return f"{len(value)}:{value}"


def normalize_query(query: Optional[str]) -> str:
    if not query:
        return ""
    return _WHITESPACE.sub(" ", query).strip()


def normalize_filters(filters: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """Strip filter values and drop the inactive ones (``None`` or blank)."""
    active = {}
    for name, value in (filters or {}).items():
        if value is None:
            continue
        value = str(value).strip()
        if value:
            active[name] = value
    return active


def generate_search_key(query: Optional[str], filters: Optional[Mapping[str, Optional[str]]] = None) -> str:
    """Build a deterministic cache key for a search request.

    The query and filters go through ``normalize_query`` and
    ``normalize_filters``; callers must send the same normalized values
    upstream. Active filters are ordered by name and every field is
    length-prefixed so that no two different requests can produce the same key
    by shifting characters between adjacent fields.
    """
    parts = ["search", _field(normalize_query(query))]
    active = normalize_filters(filters)
    for name in sorted(active):
        parts.append(f"{_field(name)}={_field(active[name])}")
    return "|".join(parts)


def page_cache_key(page_id: str) -> str:
    return f"page_{page_id}"
