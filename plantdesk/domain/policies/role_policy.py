"""Role policy table.

Each role is classified into exactly one access level:

- ``no-access``: may not see or change anything
- ``view-only``: may read, never write
- ``direct-write``: creates, edits and deletes apply immediately
- ``approval-required``: creates apply immediately, edits and deletes are
  queued for a reviewer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class RoleAccess(str, Enum):
    NO_ACCESS = "no-access"
    VIEW_ONLY = "view-only"
    DIRECT_WRITE = "direct-write"
    APPROVAL_REQUIRED = "approval-required"


_WRITERS = {RoleAccess.DIRECT_WRITE, RoleAccess.APPROVAL_REQUIRED}


@dataclass(frozen=True)
class RolePolicy:
    roles: Mapping[str, RoleAccess] = field(default_factory=dict)
    default: RoleAccess = RoleAccess.NO_ACCESS

    def access_for(self, role: str | None) -> RoleAccess:
        if not role:
            return self.default
        return self.roles.get(role, self.default)

    def can_view(self, role: str | None) -> bool:
        return self.access_for(role) != RoleAccess.NO_ACCESS

    def can_write(self, role: str | None) -> bool:
        return self.access_for(role) in _WRITERS

    def requires_approval(self, role: str | None) -> bool:
        return self.access_for(role) == RoleAccess.APPROVAL_REQUIRED


DEFAULT_ROLE_POLICY = RolePolicy(
    roles={
        "admin": RoleAccess.DIRECT_WRITE,
        "supervisor": RoleAccess.DIRECT_WRITE,
        "avp": RoleAccess.DIRECT_WRITE,
        "user": RoleAccess.APPROVAL_REQUIRED,
        "manager": RoleAccess.VIEW_ONLY,
        "eksternal": RoleAccess.VIEW_ONLY,
    },
)
