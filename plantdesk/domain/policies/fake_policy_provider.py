from .role_policy import RolePolicy


class FakePolicyProvider:
    def __init__(self, policy: RolePolicy):
        self._policy = policy

    def for_entity(self, *, entity_kind: str) -> RolePolicy:
        return self._policy
