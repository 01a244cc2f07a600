from typing import Protocol

from .role_policy import RolePolicy


class PolicyProvider(Protocol):
    def for_entity(self, *, entity_kind: str) -> RolePolicy:
        ...
