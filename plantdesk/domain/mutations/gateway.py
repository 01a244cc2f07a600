from __future__ import annotations

import logging
from typing import Any, Mapping

from plantdesk.cache import CacheStore
from plantdesk.core.errors import PermissionDeniedError
from plantdesk.domain.activity import ActivityLogger
from plantdesk.domain.actors import Actor
from plantdesk.domain.approval import (
    ApprovalAction,
    ApprovalGate,
    ApprovalRepositoryProtocol,
    GateDecision,
)
from plantdesk.domain.policies import PolicyProvider
from plantdesk.observability import Span, log_event, new_trace_id
from plantdesk.remote import RemoteStore, collection_for_plant

from .entities import MutationAction, MutationRequest, MutationResult, MutationState
from .reporting import ErrorReporter, LoggingErrorReporter

_GATED_ACTIONS = {
    MutationAction.UPDATE: ApprovalAction.EDIT,
    MutationAction.DELETE: ApprovalAction.DELETE,
}


class MutationGateway:
    """
    Executes create/update/delete requests on behalf of pages.

    Responsibilities:
    - Refuse writes from roles without write access
    - Route gated edits/deletes to the approval collection
    - Issue the remote write
    - Invalidate cached reads of the written collection
    - Record the activity log entry (best effort)

    Non-responsibilities:
    - Optimistic list updates (see plantdesk.domain.optimistic)
    - Retries; a failed write is reported once and left to the user
    - Acting on approval decisions made later by a reviewer
    """

    def __init__(
        self,
        *,
        store: RemoteStore,
        cache: CacheStore,
        approval_gate: ApprovalGate,
        approval_repository: ApprovalRepositoryProtocol,
        activity_logger: ActivityLogger,
        policy_provider: PolicyProvider | None = None,
        error_reporter: ErrorReporter | None = None,
        default_plant: str = "NPK2",
    ) -> None:
        self._store = store
        self._cache = cache
        self._gate = approval_gate
        self._approvals = approval_repository
        self._activity = activity_logger
        self._policies = policy_provider
        self._errors = error_reporter or LoggingErrorReporter()
        self._default_plant = default_plant

    async def execute(self, request: MutationRequest) -> MutationResult:
        """Run one mutation to a terminal state.

        Never raises for remote failures: the outcome is always a
        ``MutationResult``. ``PENDING_APPROVAL`` is a successful outcome, not
        an error.
        """
        trace_id = request.trace_id or new_trace_id()
        action = MutationAction(request.action)
        span = Span(name=f"mutation.{action.value}", trace_id=trace_id)
        span.attributes.update(entity_kind=request.entity_kind, role=request.actor.role)

        log_event(
            "mutation.start",
            trace_id=trace_id,
            entity_kind=request.entity_kind,
            action=action.value,
            target_id=request.target_id,
        )
        try:
            result = await self._execute(request, action, trace_id)
        finally:
            span.end()
            log_event("span.end", trace_id=trace_id, span=span)

        log_event(
            "mutation.end",
            trace_id=trace_id,
            state=result.state.value,
            error=result.error,
            level=logging.WARNING if result.failed else logging.INFO,
        )
        return result

    async def _execute(
        self,
        request: MutationRequest,
        action: MutationAction,
        trace_id: str,
    ) -> MutationResult:
        role = request.actor.role

        if self._policies is not None:
            policy = self._policies.for_entity(entity_kind=request.entity_kind)
            if not policy.can_write(role):
                return MutationResult(
                    state=MutationState.DENIED,
                    error=str(PermissionDeniedError(role, action.value)),
                    trace_id=trace_id,
                )

        if action != MutationAction.CREATE and request.target_id is None:
            return MutationResult(
                state=MutationState.FAILED,
                error=f"Cannot {action.value} a record without an id",
                trace_id=trace_id,
            )

        collection = collection_for_plant(
            request.entity_kind, request.plant, self._default_plant
        )

        if action in _GATED_ACTIONS:
            approval_action = _GATED_ACTIONS[action]
            decision = self._gate.decide(
                role, approval_action, entity_kind=request.entity_kind
            )
            log_event(
                "approval.decide",
                trace_id=trace_id,
                role=role,
                action=approval_action.value,
                decision=decision.value,
            )
            if decision == GateDecision.REQUIRES_APPROVAL:
                return await self._submit_for_approval(
                    request, approval_action, collection, trace_id
                )

        # WRITING
        payload = self._write_payload(request, action)
        try:
            written = await self._store.write(action, collection, payload)
        except Exception as exc:  # noqa: BLE001 - boundary wrapper for custom stores
            return MutationResult(
                state=MutationState.FAILED,
                error=f"Remote write failed: {exc}",
                trace_id=trace_id,
            )

        if not written.success:
            return MutationResult(
                state=MutationState.FAILED,
                error=written.error or "Remote write failed",
                trace_id=trace_id,
            )

        # COMMITTED
        entity = self._committed_entity(request, action, written.data)
        removed = self._cache.invalidate_by_prefix(request.entity_kind)
        log_event(
            "cache.invalidate",
            trace_id=trace_id,
            collection=request.entity_kind,
            keys=removed,
        )

        entry = self._activity.build_entry(
            entity_kind=request.entity_kind,
            record_id=str(entity.get("id") or request.target_id or ""),
            action=action,
            actor=request.actor,
            before=request.before,
            after=entity,
            plant=request.plant,
        )
        logged = await self._activity.record(entry)
        if not logged.success:
            self._errors.report(
                logged.error or "Activity log write failed",
                context={
                    "trace_id": trace_id,
                    "entity_kind": request.entity_kind,
                    "record_id": entry.record_id,
                    "action": action.value,
                },
            )
            return MutationResult(
                state=MutationState.COMMITTED,
                entity=entity,
                log_error=logged.error,
                trace_id=trace_id,
            )

        return MutationResult(
            state=MutationState.LOGGED,
            entity=entity,
            activity=entry,
            trace_id=trace_id,
        )

    async def _submit_for_approval(
        self,
        request: MutationRequest,
        approval_action: ApprovalAction,
        collection: str,
        trace_id: str,
    ) -> MutationResult:
        if approval_action == ApprovalAction.DELETE and request.before is not None:
            snapshot = dict(request.before)
        else:
            snapshot = dict(request.payload)

        try:
            submitted = await self._approvals.create_pending(
                entity_kind=request.entity_kind,
                action=approval_action,
                target_id=request.target_id,
                snapshot=snapshot,
                reason=request.reason,
                submitted_by=request.actor.display_name,
                target_collection=collection,
            )
        except Exception as exc:  # noqa: BLE001 - boundary wrapper for custom sinks
            return MutationResult(
                state=MutationState.FAILED,
                error=f"Approval submission failed: {exc}",
                trace_id=trace_id,
            )

        if not submitted.success:
            return MutationResult(
                state=MutationState.FAILED,
                error=submitted.error or "Failed to submit approval request",
                trace_id=trace_id,
            )

        return MutationResult(
            state=MutationState.PENDING_APPROVAL,
            approval=submitted.data,
            trace_id=trace_id,
        )

    @staticmethod
    def _write_payload(request: MutationRequest, action: MutationAction) -> dict[str, Any]:
        if action == MutationAction.DELETE:
            return {"id": request.target_id}
        # Client-side tags (_plant, _is_pending) never reach the sheet.
        return {k: v for k, v in request.payload.items() if not str(k).startswith("_")}

    @staticmethod
    def _committed_entity(
        request: MutationRequest,
        action: MutationAction,
        data: Any,
    ) -> dict[str, Any]:
        """The authoritative record after the write.

        Deletes answer with a bare boolean; the prior snapshot (or the id)
        stands in for the entity.
        """
        if action == MutationAction.DELETE:
            return dict(request.before or request.payload)
        if isinstance(data, Mapping):
            return {**request.payload, **data}
        return dict(request.payload)

    # --- page-facing shortcuts --------------------------------------------

    async def create(self, entity_kind: str, payload: Mapping[str, Any], actor: Actor) -> MutationResult:
        return await self.execute(MutationRequest(
            entity_kind=entity_kind,
            action=MutationAction.CREATE,
            payload=payload,
            actor=actor,
        ))

    async def update(
        self,
        entity_kind: str,
        payload: Mapping[str, Any],
        actor: Actor,
        *,
        before: Mapping[str, Any] | None = None,
        reason: str = "",
    ) -> MutationResult:
        return await self.execute(MutationRequest(
            entity_kind=entity_kind,
            action=MutationAction.UPDATE,
            payload=payload,
            actor=actor,
            before=before,
            reason=reason,
        ))

    async def delete(
        self,
        entity_kind: str,
        record: Mapping[str, Any],
        actor: Actor,
        *,
        reason: str = "",
    ) -> MutationResult:
        """Delete ``record``; the full record doubles as the prior snapshot."""
        return await self.execute(MutationRequest(
            entity_kind=entity_kind,
            action=MutationAction.DELETE,
            payload={"id": record.get("id"), "_plant": record.get("_plant")},
            actor=actor,
            before=record,
            reason=reason,
        ))
