"""Pure optimistic list transforms.

Every function takes the list a page currently renders and returns a new
list; inputs are never mutated. Optimistic entries carry ``_is_pending``
until confirmed.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

PENDING_FIELD = "_is_pending"

Record = dict[str, Any]


@dataclass(frozen=True)
class OptimisticChange:
    """A list with one optimistic change applied.

    Attributes:
        items: The list to render now.
        rollback: Returns the list exactly as it was before the change.
        previous: The entity replaced or removed, if any.
    """

    items: list[Record]
    rollback: Callable[[], list[Record]] = field(repr=False)
    previous: Record | None = None


def generate_temp_id() -> str:
    return f"temp_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def is_pending(item: Mapping[str, Any]) -> bool:
    return bool(item.get(PENDING_FIELD))


def mark_pending(entity: Mapping[str, Any], **overrides: Any) -> Record:
    return {**entity, **overrides, PENDING_FIELD: True}


def clear_pending(entity: Mapping[str, Any], **overrides: Any) -> Record:
    cleared = {k: v for k, v in entity.items() if k != PENDING_FIELD}
    cleared.update(overrides)
    return cleared


def _snapshot(items: Sequence[Mapping[str, Any]]) -> Callable[[], list[Record]]:
    frozen = [dict(item) for item in items]
    return lambda: [dict(item) for item in frozen]


def optimistic_add(
    items: Sequence[Mapping[str, Any]],
    new_entity: Mapping[str, Any],
    temp_id: str,
    *,
    id_field: str = "id",
) -> OptimisticChange:
    """Prepend ``new_entity`` under ``temp_id``, tagged pending."""
    pending = mark_pending(new_entity, **{id_field: temp_id})
    return OptimisticChange(
        items=[pending, *(dict(item) for item in items)],
        rollback=_snapshot(items),
    )


def optimistic_update(
    items: Sequence[Mapping[str, Any]],
    updated_entity: Mapping[str, Any],
    *,
    id_field: str = "id",
) -> OptimisticChange:
    """Replace the entity sharing ``updated_entity``'s id, tagged pending.

    An unknown id leaves the list unchanged.
    """
    target = updated_entity.get(id_field)
    previous: Record | None = None
    new_items: list[Record] = []
    for item in items:
        if previous is None and item.get(id_field) == target:
            previous = dict(item)
            new_items.append(mark_pending(updated_entity))
        else:
            new_items.append(dict(item))

    return OptimisticChange(items=new_items, rollback=_snapshot(items), previous=previous)


def optimistic_delete(
    items: Sequence[Mapping[str, Any]],
    record_id: Any,
    *,
    id_field: str = "id",
) -> OptimisticChange:
    """Remove the entity; rollback puts it back at its original position."""
    previous: Record | None = None
    new_items: list[Record] = []
    for item in items:
        if previous is None and item.get(id_field) == record_id:
            previous = dict(item)
            continue
        new_items.append(dict(item))

    return OptimisticChange(items=new_items, rollback=_snapshot(items), previous=previous)


def confirm_add(
    items: Sequence[Mapping[str, Any]],
    temp_id: str,
    server_id: Any,
    *,
    id_field: str = "id",
) -> list[Record]:
    """Swap ``temp_id`` for the server id and clear the pending tag.

    A no-op when no pending entry carries ``temp_id`` any more.
    """
    return [
        clear_pending(item, **{id_field: server_id})
        if item.get(id_field) == temp_id and is_pending(item)
        else dict(item)
        for item in items
    ]


def confirm_update(
    items: Sequence[Mapping[str, Any]],
    record_id: Any,
    *,
    id_field: str = "id",
) -> list[Record]:
    """Clear the pending tag of ``record_id``; the id is unchanged."""
    return [
        clear_pending(item) if item.get(id_field) == record_id else dict(item)
        for item in items
    ]
