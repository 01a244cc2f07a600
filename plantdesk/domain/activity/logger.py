"""Activity logger.

Builds log entries for committed mutations and hands them to a sink. Entries
are never produced for mutations that were routed to approval or that failed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from plantdesk.core.errors import RemoteStoreError
from plantdesk.core.results import ApiResult
from plantdesk.domain.actors import Actor
from plantdesk.observability import log_event
from plantdesk.remote import MutationAction

from .diff import build_preview, compute_changes
from .entities import ActivityLogEntry
from .repository import ActivityLogRepository


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityLogger:
    def __init__(
        self,
        repository: ActivityLogRepository,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._clock = clock or _utcnow

    def build_entry(
        self,
        *,
        entity_kind: str,
        record_id: str,
        action: MutationAction,
        actor: Actor,
        before: Mapping[str, Any] | None,
        after: Mapping[str, Any] | None,
        plant: str | None = None,
    ) -> ActivityLogEntry:
        """Snapshot a committed mutation.

        ``before`` is dropped for creates and ``after`` for deletes, whatever
        the caller passed. ``plant`` is the plant whose copy was written and
        defaults to the actor's own plant.
        """
        action = MutationAction(action)
        before_snapshot = None if action == MutationAction.CREATE or before is None else dict(before)
        after_snapshot = None if action == MutationAction.DELETE or after is None else dict(after)

        return ActivityLogEntry(
            id=uuid.uuid4().hex,
            entity_kind=entity_kind,
            record_id=str(record_id),
            action=action,
            actor_id=actor.id,
            actor_name=actor.display_name,
            actor_role=actor.role,
            actor_plant=plant or actor.plant,
            timestamp=self._clock(),
            before=before_snapshot,
            after=after_snapshot,
            changes=compute_changes(action, before_snapshot, after_snapshot),
            preview=build_preview(after_snapshot if after_snapshot is not None else before_snapshot),
        )

    async def record(self, entry: ActivityLogEntry) -> ApiResult[None]:
        try:
            result = await self._repo.append(entry)
        except Exception as exc:  # noqa: BLE001 - sink failures become results
            result = ApiResult.fail(f"Activity log write failed: {exc}")

        log_event(
            "activity.record",
            entity_kind=entry.entity_kind,
            record_id=entry.record_id,
            action=entry.action.value,
            ok=result.success,
            level=logging.INFO if result.success else logging.WARNING,
        )
        return result

    async def query(self, entity_kind: str, record_id: str) -> list[ActivityLogEntry]:
        """Entries of one record, newest first.

        Raises:
            RemoteStoreError: if the sink cannot be read.
        """
        result = await self._repo.list_for_record(entity_kind, str(record_id))
        if not result.success:
            raise RemoteStoreError(result.error or "Failed to read activity log")

        # Stable sort over reversed storage order: later appends win timestamp ties.
        entries = list(reversed(result.data or []))
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries
