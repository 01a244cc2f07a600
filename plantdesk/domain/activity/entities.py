from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from plantdesk.remote import MutationAction


@dataclass(frozen=True)
class ActivityLogEntry:
    """One committed create, update or delete.

    Attributes:
        before: Prior snapshot for updates and deletes, ``None`` for creates.
        after: New snapshot for creates and updates, ``None`` for deletes.
        changes: Field diff for updates, ``{"deleted_data": before}`` for
            deletes, ``None`` for creates.
        preview: Short text rendering of the record for list views.
    """

    id: str
    entity_kind: str
    record_id: str
    action: MutationAction
    actor_id: str
    actor_role: str
    actor_plant: str
    timestamp: datetime
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    changes: dict[str, Any] | None
    preview: str
    actor_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Row layout of the activity log collection."""
        return {
            "id": self.id,
            "sheet_name": self.entity_kind,
            "record_id": self.record_id,
            "action": self.action.value,
            "user_id": self.actor_id,
            "user_name": self.actor_name,
            "user_role": self.actor_role,
            "plant": self.actor_plant,
            "timestamp": self.timestamp.isoformat(),
            "before": self.before,
            "after": self.after,
            "changes": json.dumps(self.changes, ensure_ascii=False, default=str)
            if self.changes is not None
            else "",
            "record_preview": self.preview,
        }

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "ActivityLogEntry":
        return cls(
            id=str(row["id"]),
            entity_kind=row["sheet_name"],
            record_id=str(row["record_id"]),
            action=MutationAction(row["action"]),
            actor_id=row.get("user_id", ""),
            actor_name=row.get("user_name", ""),
            actor_role=row.get("user_role", ""),
            actor_plant=row.get("plant", ""),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            before=row.get("before"),
            after=row.get("after"),
            changes=parse_changes(row.get("changes")),
            preview=row.get("record_preview", ""),
        )


def parse_changes(raw: Any) -> dict[str, Any] | None:
    """Decode the stored ``changes`` column; unreadable values become ``None``."""
    if not raw:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None
