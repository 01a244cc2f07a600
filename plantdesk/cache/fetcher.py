"""Read-through fetcher.

Wraps a remote read with the cache store:

1. a fresh cache entry is returned without touching the network
2. a caller asking for a key that is already being loaded joins the
   in-flight call instead of issuing a second one
3. otherwise the loader runs once; a successful result is cached

At most one remote read per key is in flight at any time.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from plantdesk.core.results import ApiResult
from plantdesk.observability import log_event

from .store import MISS, CacheStore, CacheTTL

T = TypeVar("T")

Loader = Callable[[], Awaitable[ApiResult[T]]]


class ReadThroughFetcher:
    def __init__(self, cache: CacheStore) -> None:
        self._cache = cache

    @property
    def cache(self) -> CacheStore:
        return self._cache

    async def fetch(
        self,
        key: str,
        loader: Loader[T],
        ttl: int = CacheTTL.DEFAULT,
        *,
        trace_id: str | None = None,
    ) -> ApiResult[T]:
        """Return the value for ``key``, loading it at most once.

        Args:
            key: Cache key; must contain the collection name.
            loader: Zero-arg coroutine function performing the remote read.
            ttl: Entry lifetime in milliseconds.
            trace_id: Optional trace id for the emitted events.

        Returns:
            The cached value wrapped as success, or the loader's result. Every
            caller that joined the same in-flight call receives the very same
            result object.

        Raises:
            Whatever the loader raises, re-raised to every joined caller.
        """
        cached = self._cache.get(key)
        if cached is not MISS:
            return ApiResult.ok(cached)

        task = self._cache.pending_for(key)
        if task is not None:
            log_event("cache.join", trace_id=trace_id, key=key, level=logging.DEBUG)
        else:
            log_event("cache.miss", trace_id=trace_id, key=key, level=logging.DEBUG)
            task = asyncio.get_running_loop().create_task(
                self._load(key, loader, ttl, trace_id)
            )
            self._cache.register_pending(key, task)

        # The shared call keeps running even if this caller is cancelled.
        return await asyncio.shield(task)

    async def _load(
        self,
        key: str,
        loader: Loader[T],
        ttl: int,
        trace_id: str | None,
    ) -> ApiResult[T]:
        generation = self._cache.generation
        me = asyncio.current_task()

        try:
            result = await loader()
        except Exception as exc:
            self._cache.release_pending(key, me)
            log_event(
                "cache.load.error",
                trace_id=trace_id,
                key=key,
                error=str(exc),
                level=logging.WARNING,
            )
            raise

        if (
            result.success
            and result.data is not None
            and generation == self._cache.generation
        ):
            self._cache.set(key, result.data, ttl)
        self._cache.release_pending(key, me)

        log_event(
            "cache.load.end",
            trace_id=trace_id,
            key=key,
            ok=result.success,
            level=logging.DEBUG,
        )
        return result

    async def prefetch(
        self,
        key: str,
        loader: Loader[T],
        ttl: int = CacheTTL.DEFAULT,
    ) -> None:
        """Warm the cache for ``key``. Best effort; never raises."""
        if key in self._cache:
            return

        try:
            await self.fetch(key, loader, ttl)
        except Exception as exc:  # noqa: BLE001 - prefetch is advisory
            log_event("cache.prefetch.error", key=key, error=str(exc), level=logging.WARNING)

    def invalidate_collection(self, collection: str) -> list[str]:
        """Drop every cached read derived from ``collection``."""
        removed = self._cache.invalidate_by_prefix(collection)
        log_event("cache.invalidate", collection=collection, keys=removed)
        return removed
