"""Before/after diffs for the activity log.

The three actions differ:

- update: every key present in either snapshot whose value differs,
  as ``{field: {"old": ..., "new": ...}}``
- delete: the whole prior snapshot under ``deleted_data``; the record no
  longer exists to inspect
- create: no diff; ``after`` already is the initial state
"""

from __future__ import annotations

from typing import Any, Mapping

from plantdesk.remote import MutationAction

_MAX_PREVIEW_CHARS = 120
_PREVIEW_FIELDS = 3


def compute_changes(
    action: MutationAction,
    before: Mapping[str, Any] | None,
    after: Mapping[str, Any] | None,
) -> dict[str, Any] | None:
    action = MutationAction(action)

    if action == MutationAction.CREATE:
        return None

    if action == MutationAction.DELETE:
        return {"deleted_data": dict(before) if before is not None else None}

    old = before or {}
    new = after or {}
    changes: dict[str, Any] = {}
    for key in sorted(set(old) | set(new)):
        old_value = old.get(key)
        new_value = new.get(key)
        if old_value != new_value:
            changes[key] = {"old": old_value, "new": new_value}
    return changes


def build_preview(record: Mapping[str, Any] | None) -> str:
    """Render the first few meaningful fields as ``key: value | ...``."""
    if not record:
        return ""

    parts: list[str] = []
    for key, value in record.items():
        if key == "id" or key.startswith("_") or value in (None, ""):
            continue
        parts.append(f"{key}: {value}")
        if len(parts) == _PREVIEW_FIELDS:
            break

    text = " | ".join(parts)
    if len(text) > _MAX_PREVIEW_CHARS:
        text = text[:_MAX_PREVIEW_CHARS] + '…'
    return text
