"""Page-facing read API.

Pages ask for a collection by name; this service picks the cache key, the
loader and the TTL tier, and always goes through the read-through fetcher.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from plantdesk.cache import CacheKeys, ReadThroughFetcher, TTLTiers
from plantdesk.core.results import ApiResult
from plantdesk.observability import log_event

from .base import RemoteStore
from .plants import plant_collections

Records = list[dict[str, Any]]


class CollectionService:
    def __init__(
        self,
        *,
        store: RemoteStore,
        fetcher: ReadThroughFetcher,
        plants: Sequence[str],
        default_plant: str,
        ttl: TTLTiers | None = None,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._plants = list(plants)
        self._default_plant = default_plant
        self._ttl = ttl or TTLTiers()

    async def read(
        self,
        collection: str,
        ttl: int | None = None,
        *,
        trace_id: str | None = None,
    ) -> ApiResult[Records]:
        return await self._fetcher.fetch(
            CacheKeys.read_data(collection),
            lambda: self._store.read(collection),
            self._ttl.default if ttl is None else ttl,
            trace_id=trace_id,
        )

    async def read_by_plant(
        self,
        base: str,
        ttl: int | None = None,
        *,
        trace_id: str | None = None,
    ) -> ApiResult[Records]:
        """Read every plant's copy of ``base`` and tag rows with ``_plant``.

        A plant whose read fails is skipped; the call only fails when every
        plant failed.
        """
        async def load() -> ApiResult[Records]:
            merged: Records = []
            errors: list[str] = []
            for plant, collection in plant_collections(base, self._plants, self._default_plant):
                result = await self._store.read(collection)
                if not result.success:
                    errors.append(f"{collection}: {result.error}")
                    log_event(
                        "collection.plant.error",
                        trace_id=trace_id,
                        sheet=collection,
                        error=result.error,
                        level=logging.WARNING,
                    )
                    continue
                merged.extend({**row, "_plant": plant} for row in result.data or [])

            if errors and len(errors) == len(self._plants):
                return ApiResult.fail("; ".join(errors))
            return ApiResult.ok(merged)

        return await self._fetcher.fetch(
            CacheKeys.fetch_by_plant(base),
            load,
            self._ttl.default if ttl is None else ttl,
            trace_id=trace_id,
        )

    async def refresh(self, collection: str, ttl: int | None = None) -> ApiResult[Records]:
        """Drop cached reads of ``collection`` and read it again."""
        self._fetcher.invalidate_collection(collection)
        return await self.read(collection, ttl)

    async def prefetch(self, collections: Iterable[str], ttl: int | None = None) -> None:
        """Warm reference collections, by default under the long TTL."""
        for collection in collections:
            await self._fetcher.prefetch(
                CacheKeys.read_data(collection),
                lambda c=collection: self._store.read(c),
                self._ttl.long if ttl is None else ttl,
            )
