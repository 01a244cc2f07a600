# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ApprovalAction(str, Enum):
    EDIT = "edit"
    DELETE = "delete"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class GateDecision(str, Enum):
    DIRECT = "direct"
    REQUIRES_APPROVAL = "requires_approval"


@dataclass(frozen=True)
class ApprovalRecord:
    id: str
    entity_kind: str
    action: ApprovalAction
    target_id: str | None
    snapshot: dict[str, Any]
    reason: str
    submitted_by: str
    submitted_at: datetime
    status: ApprovalStatus = ApprovalStatus.PENDING
    target_collection: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Row layout of the approval collection."""
        return {
            "id": self.id,
            "type": self.entity_kind,
            "action": self.action.value,
            "itemId": self.target_id,
            "itemData": self.snapshot,
            "targetSheet": self.target_collection,
            "reason": self.reason,
            "submittedBy": self.submitted_by,
            "submittedAt": self.submitted_at.isoformat(),
            "status": self.status.value,
            **self.metadata,
        }
