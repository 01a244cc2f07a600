"""Per-page optimistic list with explicit pending-mutation state.

Each optimistic change opens a :class:`PendingMutation` holding the rollback
snapshot captured at that moment. The mutation then moves exactly once::

    OPTIMISTIC ─┬─> CONFIRMED
                └─> ROLLED_BACK

Confirming or rolling back an already resolved mutation does nothing, so a
late network response cannot undo a retry the user already made. Rollback
reverts only the one entity it owns; changes made to other rows in the
meantime survive.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from plantdesk.core.errors import InvalidTransitionError
from plantdesk.remote.schemas import MutationAction

from .reconciler import Record, clear_pending, generate_temp_id, mark_pending

if TYPE_CHECKING:
    from plantdesk.domain.mutations import MutationGateway, MutationRequest, MutationResult


class PendingState(str, Enum):
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass
class PendingMutation:
    key: str
    action: MutationAction
    snapshot: Record | None
    index: int
    state: PendingState = PendingState.OPTIMISTIC

    @property
    def resolved(self) -> bool:
        return self.state != PendingState.OPTIMISTIC


class OptimisticList:
    def __init__(self, items: Iterable[Mapping[str, Any]] = (), *, id_field: str = "id") -> None:
        self._id_field = id_field
        self._items: list[Record] = [dict(item) for item in items]
        self._pending: dict[str, PendingMutation] = {}

    @property
    def items(self) -> list[Record]:
        return [dict(item) for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def is_pending(self, key: Any) -> bool:
        return str(key) in self._pending

    @property
    def pending_keys(self) -> list[str]:
        return list(self._pending)

    def replace_all(self, items: Iterable[Mapping[str, Any]]) -> None:
        """Load a fresh server list. Outstanding mutations are dropped unresolved."""
        self._items = [dict(item) for item in items]
        self._pending.clear()

    # --- optimistic changes -------------------------------------------------

    def add(self, entity: Mapping[str, Any], temp_id: str | None = None) -> PendingMutation:
        key = temp_id or generate_temp_id()
        self._ensure_free(key)

        self._items.insert(0, mark_pending(entity, **{self._id_field: key}))
        return self._open(key, MutationAction.CREATE, snapshot=None, index=0)

    def update(self, entity: Mapping[str, Any]) -> PendingMutation:
        key = self._key_of(entity)
        self._ensure_free(key)

        index = self._index_of(key)
        if index is None:
            raise InvalidTransitionError(f"No record with id '{key}' to update")

        snapshot = dict(self._items[index])
        self._items[index] = mark_pending(entity)
        return self._open(key, MutationAction.UPDATE, snapshot=snapshot, index=index)

    def remove(self, record_id: Any) -> PendingMutation:
        key = str(record_id)
        self._ensure_free(key)

        index = self._index_of(key)
        if index is None:
            raise InvalidTransitionError(f"No record with id '{key}' to delete")

        snapshot = self._items.pop(index)
        return self._open(key, MutationAction.DELETE, snapshot=snapshot, index=index)

    # --- resolution ---------------------------------------------------------

    def confirm(
        self,
        pending: PendingMutation,
        server_entity: Mapping[str, Any] | None = None,
    ) -> list[Record]:
        """Accept the server outcome for ``pending``.

        For adds, ``server_entity`` carries the server-assigned id; for
        updates it may carry server-computed fields.
        """
        if pending.resolved or self._pending.get(pending.key) is not pending:
            return self.items

        index = self._index_of(pending.key)
        if pending.action != MutationAction.DELETE and index is not None:
            server = dict(server_entity or {})
            if pending.action == MutationAction.CREATE and self._id_field not in server:
                server[self._id_field] = pending.key
            self._items[index] = clear_pending(self._items[index], **server)

        self._close(pending, PendingState.CONFIRMED)
        return self.items

    def rollback(self, pending: PendingMutation) -> list[Record]:
        """Undo the optimistic change of ``pending`` only."""
        if pending.resolved or self._pending.get(pending.key) is not pending:
            return self.items

        index = self._index_of(pending.key)
        if pending.action == MutationAction.CREATE:
            if index is not None:
                del self._items[index]
        elif pending.action == MutationAction.UPDATE:
            if index is not None:
                self._items[index] = dict(pending.snapshot)
        elif index is None:
            self._items.insert(min(pending.index, len(self._items)), dict(pending.snapshot))

        self._close(pending, PendingState.ROLLED_BACK)
        return self.items

    async def apply(
        self,
        gateway: "MutationGateway",
        request: "MutationRequest",
        *,
        temp_id: str | None = None,
    ) -> "MutationResult":
        """Apply ``request`` optimistically, run it, then confirm or roll back.

        A request routed to approval is rolled back too: the target record did
        not change.
        """
        action = MutationAction(request.action)
        if action == MutationAction.CREATE:
            pending = self.add(request.payload, temp_id)
        elif action == MutationAction.UPDATE:
            pending = self.update(request.payload)
        else:
            pending = self.remove(request.target_id)

        try:
            result = await gateway.execute(request)
        except BaseException:
            self.rollback(pending)
            raise

        if result.ok:
            server = result.entity if action != MutationAction.DELETE else None
            self.confirm(pending, server)
        else:
            self.rollback(pending)
        return result

    # --- internals ----------------------------------------------------------

    def _open(self, key: str, action: MutationAction, *, snapshot: Record | None, index: int) -> PendingMutation:
        pending = PendingMutation(key=key, action=action, snapshot=snapshot, index=index)
        self._pending[key] = pending
        return pending

    def _close(self, pending: PendingMutation, state: PendingState) -> None:
        pending.state = state
        pending.snapshot = None
        del self._pending[pending.key]

    def _ensure_free(self, key: str) -> None:
        if key in self._pending:
            raise InvalidTransitionError(f"Record '{key}' already has a mutation in flight")

    def _key_of(self, entity: Mapping[str, Any]) -> str:
        value = entity.get(self._id_field)
        if value in (None, ""):
            raise InvalidTransitionError("Entity has no id")
        return str(value)

    def _index_of(self, key: str) -> int | None:
        for i, item in enumerate(self._items):
            if str(item.get(self._id_field)) == key:
                return i
        return None
