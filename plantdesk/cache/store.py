"""TTL cache store.

Entries expire lazily: an expired entry is evicted by the read that finds it.
Keys derived from one remote collection share the collection name as a
substring, so ``invalidate_by_prefix(collection)`` drops all of them after a
write to that collection.

The store also owns the table of in-flight reads used by
:class:`~plantdesk.cache.fetcher.ReadThroughFetcher`, so that ``clear()`` on
logout drops both in one call.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class _Miss:
    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


class CacheTTL:
    SHORT = 30_000  # frequently changing collections
    DEFAULT = 60_000
    LONG = 300_000  # reference data


@dataclass(frozen=True)
class TTLTiers:
    """TTL tiers in effect for one application instance (ms)."""
    short: int = CacheTTL.SHORT
    default: int = CacheTTL.DEFAULT
    long: int = CacheTTL.LONG


class CacheKeys:
    """Key builders. Every key embeds the collection name."""

    @staticmethod
    def read_data(collection: str) -> str:
        return f"read:{collection}"

    @staticmethod
    def fetch_by_plant(collection: str) -> str:
        return f"plant:{collection}"

    @staticmethod
    def scoped(operation: str, collection: str, plant: str) -> str:
        return f"{operation}:{collection}:{plant}"

    @staticmethod
    def dashboard() -> str:
        return "dashboard:all"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: str
    value: T
    stored_at: float  # ms
    ttl: int  # ms

    def is_valid(self, now: float) -> bool:
        return now - self.stored_at <= self.ttl


@dataclass(frozen=True)
class CacheStats:
    size: int
    keys: list[str]


class CacheStore:
    """Key/value store with per-entry TTL.

    All operations are synchronous and total; none of them can fail.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or _wall_clock_ms
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._generation = 0

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Any:
        """Return the stored value, or ``MISS`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return MISS

        if not entry.is_valid(self._clock()):
            del self._entries[key]
            return MISS

        return entry.value

    def set(self, key: str, value: Any, ttl: int = CacheTTL.DEFAULT) -> None:
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl=ttl,
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_by_prefix(self, pattern: str) -> list[str]:
        """Drop every entry whose key contains ``pattern``.

        Returns the removed keys.
        """
        doomed = [key for key in self._entries if pattern in key]
        for key in doomed:
            del self._entries[key]
        return doomed

    def clear(self) -> None:
        """Drop all entries and forget every in-flight read."""
        self._entries.clear()
        self._pending.clear()
        self._generation += 1

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), keys=list(self._entries))

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISS

    # --- in-flight reads ---------------------------------------------------

    def pending_for(self, key: str) -> asyncio.Task | None:
        return self._pending.get(key)

    def register_pending(self, key: str, task: asyncio.Task) -> None:
        self._pending[key] = task

    def release_pending(self, key: str, task: asyncio.Task) -> None:
        # A clear() may have happened mid-flight and a newer request for the
        # same key may already be registered; only remove our own task.
        if self._pending.get(key) is task:
            del self._pending[key]

    @property
    def generation(self) -> int:
        """Bumped by every clear(); reads started before it must not repopulate."""
        return self._generation

    @property
    def pending_count(self) -> int:
        return len(self._pending)
