# ============================================================
# Activity log sink
# ============================================================
from typing import Protocol

from plantdesk.core.results import ApiResult
from plantdesk.remote import MutationAction, RemoteStore

from .entities import ActivityLogEntry


class ActivityLogRepository(Protocol):
    async def append(self, entry: ActivityLogEntry) -> ApiResult[None]:
        """Append one entry"""
        ...

    async def list_for_record(
            self,
            entity_kind: str,
            record_id: str,
    ) -> ApiResult[list[ActivityLogEntry]]:
        """Every entry of one record, in storage order"""
        ...


class RemoteActivityLogRepository(ActivityLogRepository):
    def __init__(self, store: RemoteStore, collection: str = "activity_logs"):
        self._store = store
        self._collection = collection

    async def append(self, entry: ActivityLogEntry) -> ApiResult[None]:
        result = await self._store.write(
            MutationAction.CREATE,
            self._collection,
            entry.to_dict(),
        )
        if not result.success:
            return ApiResult.fail(result.error or "Failed to write activity log")
        return ApiResult.ok(None)

    async def list_for_record(
            self,
            entity_kind: str,
            record_id: str,
    ) -> ApiResult[list[ActivityLogEntry]]:
        result = await self._store.read(self._collection)
        if not result.success:
            return ApiResult.fail(result.error or "Failed to read activity log")

        entries = [
            ActivityLogEntry.from_dict(row)
            for row in result.data or []
            if row.get("sheet_name") == entity_kind
            and str(row.get("record_id")) == str(record_id)
        ]
        return ApiResult.ok(entries)


class InMemoryActivityLogRepository(ActivityLogRepository):
    def __init__(self):
        self.entries: list[ActivityLogEntry] = []

    async def append(self, entry: ActivityLogEntry) -> ApiResult[None]:
        self.entries.append(entry)
        return ApiResult.ok(None)

    async def list_for_record(
            self,
            entity_kind: str,
            record_id: str,
    ) -> ApiResult[list[ActivityLogEntry]]:
        return ApiResult.ok([
            e for e in self.entries
            if e.entity_kind == entity_kind and e.record_id == str(record_id)
        ])
