"""Mutation request/result models.

A request moves through::

    CREATED ─┬─> DENIED
             ├─> PENDING_APPROVAL
             └─> WRITING ─┬─> COMMITTED ──> LOGGED
                          └─> FAILED

``COMMITTED`` is terminal only when the activity log write failed; the
mutation itself still succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from plantdesk.core.results import ApiResult
from plantdesk.domain.activity.entities import ActivityLogEntry
from plantdesk.domain.actors import Actor
from plantdesk.domain.approval.entities import ApprovalRecord
from plantdesk.remote.schemas import MutationAction

T = TypeVar("T", bound=Mapping[str, Any])


class MutationState(str, Enum):
    CREATED = "created"
    DENIED = "denied"
    PENDING_APPROVAL = "pending_approval"
    WRITING = "writing"
    COMMITTED = "committed"
    LOGGED = "logged"
    FAILED = "failed"


@dataclass(frozen=True)
class MutationRequest(Generic[T]):
    """One user-initiated write.

    Attributes:
        entity_kind: Base collection name, e.g. ``trouble_record``.
        payload: The record to create, the updated record, or at least
            ``{"id": ...}`` for a delete. ``_plant`` selects the plant copy.
        before: Prior snapshot of the record for updates and deletes.
        reason: Justification shown to the reviewer if approval is needed.
    """

    entity_kind: str
    action: MutationAction
    payload: T
    actor: Actor
    before: Mapping[str, Any] | None = None
    reason: str = ""
    trace_id: str | None = None

    @property
    def target_id(self) -> str | None:
        record_id = self.payload.get("id")
        if record_id in (None, ""):
            return None
        return str(record_id)

    @property
    def plant(self) -> str:
        return self.payload.get("_plant") or self.actor.plant


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    state: MutationState
    entity: T | None = None
    error: str | None = None
    approval: ApprovalRecord | None = None
    activity: ActivityLogEntry | None = None
    log_error: str | None = None
    trace_id: str | None = None

    @property
    def ok(self) -> bool:
        """The target record was changed."""
        return self.state in (MutationState.COMMITTED, MutationState.LOGGED)

    @property
    def pending_approval(self) -> bool:
        return self.state == MutationState.PENDING_APPROVAL

    @property
    def failed(self) -> bool:
        return self.state in (MutationState.FAILED, MutationState.DENIED)

    def to_api_result(self) -> ApiResult[T]:
        if self.failed:
            return ApiResult.fail(self.error or "Operation failed")
        return ApiResult.ok(self.entity)
