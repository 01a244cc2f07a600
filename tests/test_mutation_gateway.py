from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from plantdesk.cache import CacheKeys, CacheStore
from plantdesk.core.results import ApiResult
from plantdesk.domain.activity import ActivityLogger, InMemoryActivityLogRepository
from plantdesk.domain.actors import Actor
from plantdesk.domain.approval import (
    ApprovalAction,
    ApprovalStatus,
    DefaultApprovalGate,
    InMemoryApprovalRepository,
    RemoteApprovalRepository,
)
from plantdesk.domain.mutations import (
    MutationAction,
    MutationGateway,
    MutationRequest,
    MutationState,
)
from plantdesk.domain.policies import DEFAULT_ROLE_POLICY, DefaultPolicyProvider
from plantdesk.remote import HttpRemoteStore

from tests.fixtures.fake_clock import FakeClock
from tests.fixtures.fake_remote_store import FakeRemoteStore
from tests.fixtures.mock_approval_gate import mock_approval_gate

PRIOR_RECORD = {
    "id": "42",
    "tanggal": "2026-10-12",
    "masalah": "Screw conveyor jammed",
    "status": "open",
}

SUPERVISOR = Actor(id="u-7", name="Sari", role="supervisor", plant="NPK2")
OPERATOR = Actor(id="u-9", name="Budi", role="user", plant="NPK2")
MANAGER = Actor(id="u-3", name="Rina", role="manager", plant="NPK2")


class FailingActivityLogRepository(InMemoryActivityLogRepository):
    async def append(self, entry):
        raise ConnectionError("activity_logs unreachable")


def build_gateway(
    store: FakeRemoteStore,
    *,
    activity_repo=None,
    approval_gate=None,
    approval_repo=None,
    error_reporter=None,
):
    provider = DefaultPolicyProvider(policy=DEFAULT_ROLE_POLICY)
    cache = CacheStore(clock=FakeClock())
    activity_repo = activity_repo or InMemoryActivityLogRepository()
    approval_repo = approval_repo or InMemoryApprovalRepository()
    gateway = MutationGateway(
        store=store,
        cache=cache,
        approval_gate=approval_gate or DefaultApprovalGate(provider),
        approval_repository=approval_repo,
        activity_logger=ActivityLogger(activity_repo),
        policy_provider=provider,
        error_reporter=error_reporter,
    )
    return gateway, cache, activity_repo, approval_repo


def _delete_request(actor: Actor) -> MutationRequest:
    return MutationRequest(
        entity_kind="trouble_record",
        action=MutationAction.DELETE,
        payload={"id": "42"},
        actor=actor,
        before=PRIOR_RECORD,
        reason="Entered twice",
    )


@pytest.mark.asyncio
async def test_direct_delete_writes_logs_and_invalidates_once() -> None:
    # Arrange
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, cache, activity_repo, approval_repo = build_gateway(store)
    cache.set(CacheKeys.read_data("trouble_record"), [PRIOR_RECORD])

    # Act
    with patch.object(cache, "invalidate_by_prefix", wraps=cache.invalidate_by_prefix) as spy:
        result = await gateway.execute(_delete_request(SUPERVISOR))

    # Assert
    assert result.state == MutationState.LOGGED
    assert result.ok is True
    assert store.writes == [(MutationAction.DELETE, "trouble_record", {"id": "42"})]
    spy.assert_called_once_with("trouble_record")
    assert CacheKeys.read_data("trouble_record") not in cache

    [entry] = activity_repo.entries
    assert entry.action == MutationAction.DELETE
    assert entry.record_id == "42"
    assert entry.before == PRIOR_RECORD
    assert entry.after is None
    assert entry.changes == {"deleted_data": PRIOR_RECORD}
    assert entry.actor_role == "supervisor"
    assert approval_repo.records == []


@pytest.mark.asyncio
async def test_gated_delete_submits_an_approval_and_touches_nothing_else() -> None:
    # Arrange
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, cache, activity_repo, approval_repo = build_gateway(store)
    cache.set(CacheKeys.read_data("trouble_record"), [PRIOR_RECORD])

    # Act
    with patch.object(cache, "invalidate_by_prefix", wraps=cache.invalidate_by_prefix) as spy:
        result = await gateway.execute(_delete_request(OPERATOR))

    # Assert
    assert result.state == MutationState.PENDING_APPROVAL
    assert result.pending_approval is True
    assert result.failed is False
    assert store.writes == []
    assert activity_repo.entries == []
    spy.assert_not_called()
    assert cache.get(CacheKeys.read_data("trouble_record")) == [PRIOR_RECORD]

    [record] = approval_repo.records
    assert record is result.approval
    assert record.status == ApprovalStatus.PENDING
    assert record.action == ApprovalAction.DELETE
    assert record.target_id == "42"
    assert record.snapshot == PRIOR_RECORD
    assert record.reason == "Entered twice"
    assert record.submitted_by == "Budi"
    assert record.target_collection == "trouble_record"


@pytest.mark.asyncio
async def test_gated_edit_never_produces_an_activity_entry() -> None:
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, _, activity_repo, approval_repo = build_gateway(store)

    result = await gateway.update(
        "trouble_record",
        {**PRIOR_RECORD, "status": "closed"},
        OPERATOR,
        before=PRIOR_RECORD,
        reason="Fixed on night shift",
    )

    assert result.state == MutationState.PENDING_APPROVAL
    assert activity_repo.entries == []
    assert approval_repo.records[0].action == ApprovalAction.EDIT
    assert approval_repo.records[0].snapshot["status"] == "closed"


@pytest.mark.asyncio
async def test_approval_records_land_in_the_approval_collection() -> None:
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, _, _, _ = build_gateway(
        store, approval_repo=RemoteApprovalRepository(store, "approval_requests")
    )

    result = await gateway.execute(_delete_request(OPERATOR))

    assert result.state == MutationState.PENDING_APPROVAL
    [(action, collection, row)] = store.writes
    assert action == MutationAction.CREATE
    assert collection == "approval_requests"
    assert row["action"] == "delete"
    assert row["itemId"] == "42"
    assert row["status"] == "pending"
    assert row["itemData"] == PRIOR_RECORD


@pytest.mark.asyncio
async def test_failed_approval_submission_is_a_failure() -> None:
    store = FakeRemoteStore(failing={"approval_requests"})
    gateway, _, _, _ = build_gateway(
        store, approval_repo=RemoteApprovalRepository(store, "approval_requests")
    )

    result = await gateway.execute(_delete_request(OPERATOR))

    assert result.state == MutationState.FAILED
    assert result.error == "approval_requests unavailable"


@pytest.mark.asyncio
async def test_create_is_never_gated_even_for_approval_roles() -> None:
    store = FakeRemoteStore()
    gateway, _, activity_repo, approval_repo = build_gateway(
        store, approval_gate=mock_approval_gate
    )
    mock_approval_gate.decide.reset_mock()

    result = await gateway.create("trouble_record", {"masalah": "Belt torn"}, OPERATOR)

    assert result.state == MutationState.LOGGED
    assert result.entity["id"] == "1001"
    mock_approval_gate.decide.assert_not_called()
    assert approval_repo.records == []

    [entry] = activity_repo.entries
    assert entry.before is None
    assert entry.after == {"masalah": "Belt torn", "id": "1001"}
    assert entry.changes is None


@pytest.mark.asyncio
async def test_direct_update_logs_a_field_diff() -> None:
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, _, activity_repo, _ = build_gateway(store)

    result = await gateway.update(
        "trouble_record",
        {**PRIOR_RECORD, "status": "closed"},
        SUPERVISOR,
        before=PRIOR_RECORD,
    )

    assert result.state == MutationState.LOGGED
    assert result.activity is activity_repo.entries[0]
    assert result.activity.changes == {"status": {"old": "open", "new": "closed"}}


@pytest.mark.asyncio
async def test_view_only_role_is_denied_without_side_effects() -> None:
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    gateway, _, activity_repo, approval_repo = build_gateway(store)

    result = await gateway.create("trouble_record", {"masalah": "x"}, MANAGER)

    assert result.state == MutationState.DENIED
    assert result.failed is True
    assert "manager" in result.error
    assert store.writes == []
    assert activity_repo.entries == []
    assert approval_repo.records == []


@pytest.mark.asyncio
async def test_remote_write_failure_skips_logging_and_invalidation() -> None:
    store = FakeRemoteStore(failing={"trouble_record"})
    gateway, cache, activity_repo, _ = build_gateway(store)
    cache.set(CacheKeys.read_data("trouble_record"), ["stale but kept"])

    result = await gateway.execute(_delete_request(SUPERVISOR))

    assert result.state == MutationState.FAILED
    assert result.error == "trouble_record unavailable"
    assert result.to_api_result() == ApiResult.fail("trouble_record unavailable")
    assert activity_repo.entries == []
    assert cache.get(CacheKeys.read_data("trouble_record")) == ["stale but kept"]


@pytest.mark.asyncio
async def test_activity_log_failure_still_reports_success() -> None:
    # Arrange
    store = FakeRemoteStore({"trouble_record": [PRIOR_RECORD]})
    reporter = MagicMock()
    gateway, cache, _, _ = build_gateway(
        store,
        activity_repo=FailingActivityLogRepository(),
        error_reporter=reporter,
    )
    cache.set(CacheKeys.read_data("trouble_record"), [PRIOR_RECORD])

    # Act
    result = await gateway.execute(_delete_request(SUPERVISOR))

    # Assert
    assert result.state == MutationState.COMMITTED
    assert result.ok is True
    assert "activity_logs unreachable" in result.log_error
    assert store.sheets["trouble_record"] == []
    assert CacheKeys.read_data("trouble_record") not in cache

    reporter.report.assert_called_once()
    _, kwargs = reporter.report.call_args
    assert kwargs["context"]["record_id"] == "42"


@pytest.mark.asyncio
async def test_update_without_id_fails_before_any_write() -> None:
    store = FakeRemoteStore()
    gateway, _, _, _ = build_gateway(store)

    result = await gateway.update("trouble_record", {"status": "closed"}, SUPERVISOR)

    assert result.state == MutationState.FAILED
    assert store.writes == []


@pytest.mark.asyncio
async def test_secondary_plant_writes_to_its_own_collection() -> None:
    # Arrange
    record = {"id": "7", "masalah": "Dryer trip", "_plant": "NPK1"}
    store = FakeRemoteStore({"trouble_record_NPK1": [{"id": "7", "masalah": "Dryer trip"}]})
    gateway, cache, activity_repo, _ = build_gateway(store)
    cache.set(CacheKeys.fetch_by_plant("trouble_record"), [record])
    cache.set(CacheKeys.scoped("summary", "trouble_record", "NPK1"), 3)

    # Act
    result = await gateway.update(
        "trouble_record",
        {**record, "masalah": "Dryer trip, reset"},
        SUPERVISOR,
        before=record,
    )

    # Assert
    assert result.state == MutationState.LOGGED
    [(_, collection, payload)] = store.writes
    assert collection == "trouble_record_NPK1"
    assert "_plant" not in payload
    assert cache.stats().size == 0
    assert activity_repo.entries[0].actor_plant == "NPK1"


@pytest.mark.asyncio
async def test_delete_shortcut_uses_the_record_as_prior_snapshot() -> None:
    record = {"id": "7", "masalah": "Dryer trip", "_plant": "NPK1"}
    store = FakeRemoteStore({"trouble_record_NPK1": [{"id": "7", "masalah": "Dryer trip"}]})
    gateway, _, activity_repo, _ = build_gateway(store)

    result = await gateway.delete("trouble_record", record, SUPERVISOR)

    assert result.state == MutationState.LOGGED
    assert store.writes == [(MutationAction.DELETE, "trouble_record_NPK1", {"id": "7"})]
    assert activity_repo.entries[0].before == record


class RaisingApprovalStore(FakeRemoteStore):
    async def write(self, action, collection, payload):
        if collection == "approval_requests":
            raise ConnectionError("approval sink unreachable")
        return await super().write(action, collection, payload)


@pytest.mark.asyncio
async def test_approval_sink_exception_becomes_a_failed_result() -> None:
    # Arrange
    store = RaisingApprovalStore({"trouble_record": [PRIOR_RECORD]})
    gateway, cache, activity_repo, _ = build_gateway(
        store, approval_repo=RemoteApprovalRepository(store, "approval_requests")
    )
    cache.set(CacheKeys.read_data("trouble_record"), [PRIOR_RECORD])

    # Act
    result = await gateway.delete("trouble_record", PRIOR_RECORD, OPERATOR, reason="dup")

    # Assert
    assert result.state == MutationState.FAILED
    assert "approval sink unreachable" in result.error
    assert store.sheets["trouble_record"] == [PRIOR_RECORD]
    assert activity_repo.entries == []
    assert cache.get(CacheKeys.read_data("trouble_record")) == [PRIOR_RECORD]


@pytest.mark.asyncio
async def test_update_acknowledged_without_data_keeps_reply_fields_out_of_the_record() -> None:
    # Arrange
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "message": "Data updated"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        store = HttpRemoteStore(base_url="http://test/exec", client=client)
        gateway, _, activity_repo, _ = build_gateway(store)

        # Act
        result = await gateway.update(
            "trouble_record",
            {**PRIOR_RECORD, "status": "closed"},
            SUPERVISOR,
            before=PRIOR_RECORD,
        )

    # Assert
    assert result.state == MutationState.LOGGED
    assert result.entity == {**PRIOR_RECORD, "status": "closed"}
    [entry] = activity_repo.entries
    assert entry.after == {**PRIOR_RECORD, "status": "closed"}
    assert entry.changes == {"status": {"old": "open", "new": "closed"}}
