# ============================================================
# Approval sink
# ============================================================
from datetime import datetime, timezone
from typing import Any, Protocol
import uuid

from plantdesk.core.results import ApiResult
from plantdesk.remote import MutationAction, RemoteStore

from .entities import ApprovalAction, ApprovalRecord, ApprovalStatus


class ApprovalRepositoryProtocol(Protocol):
    async def create_pending(
            self,
            *,
            entity_kind: str,
            action: ApprovalAction,
            target_id: str | None,
            snapshot: dict[str, Any],
            reason: str,
            submitted_by: str,
            target_collection: str | None = None,
    ) -> ApiResult[ApprovalRecord]:
        """Append a new pending approval"""
        ...


def _new_record(
        *,
        entity_kind: str,
        action: ApprovalAction,
        target_id: str | None,
        snapshot: dict[str, Any],
        reason: str,
        submitted_by: str,
        target_collection: str | None,
) -> ApprovalRecord:
    return ApprovalRecord(
        id=uuid.uuid4().hex,
        entity_kind=entity_kind,
        action=ApprovalAction(action),
        target_id=target_id,
        snapshot=dict(snapshot),
        reason=reason,
        submitted_by=submitted_by,
        submitted_at=datetime.now(timezone.utc),
        status=ApprovalStatus.PENDING,
        target_collection=target_collection,
    )


class RemoteApprovalRepository(ApprovalRepositoryProtocol):
    """Appends approval records to the remote approval collection.

    Append only: resolving a request (approve/reject) happens out of band.
    """

    def __init__(self, store: RemoteStore, collection: str = "approval_requests"):
        self._store = store
        self._collection = collection

    async def create_pending(
            self,
            *,
            entity_kind: str,
            action: ApprovalAction,
            target_id: str | None,
            snapshot: dict[str, Any],
            reason: str,
            submitted_by: str,
            target_collection: str | None = None,
    ) -> ApiResult[ApprovalRecord]:
        record = _new_record(
            entity_kind=entity_kind,
            action=action,
            target_id=target_id,
            snapshot=snapshot,
            reason=reason,
            submitted_by=submitted_by,
            target_collection=target_collection,
        )
        result = await self._store.write(
            MutationAction.CREATE,
            self._collection,
            record.to_dict(),
        )
        if not result.success:
            return ApiResult.fail(result.error or "Failed to submit approval request")
        return ApiResult.ok(record)


class InMemoryApprovalRepository(ApprovalRepositoryProtocol):
    def __init__(self):
        self.records: list[ApprovalRecord] = []

    async def create_pending(
            self,
            *,
            entity_kind: str,
            action: ApprovalAction,
            target_id: str | None,
            snapshot: dict[str, Any],
            reason: str,
            submitted_by: str,
            target_collection: str | None = None,
    ) -> ApiResult[ApprovalRecord]:
        record = _new_record(
            entity_kind=entity_kind,
            action=action,
            target_id=target_id,
            snapshot=snapshot,
            reason=reason,
            submitted_by=submitted_by,
            target_collection=target_collection,
        )
        self.records.append(record)
        return ApiResult.ok(record)
