from plantdesk.config import settings
from plantdesk.core.errors import ConfigurationError

from .role_policy import DEFAULT_ROLE_POLICY, RoleAccess, RolePolicy


def _fallback_access(value: str) -> RoleAccess:
    try:
        return RoleAccess(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"unknown_role_access must be one of {[a.value for a in RoleAccess]}, got {value!r}"
        ) from exc


class DefaultPolicyProvider:
    """
    PolicyProvider serving the dashboard's role table.

    Every entity kind shares one table today; ``entity_kind`` is accepted so
    per-collection overrides can be registered.
    """

    def __init__(
        self,
        policy: RolePolicy | None = None,
        overrides: dict[str, RolePolicy] | None = None,
    ) -> None:
        self._policy = policy or RolePolicy(
            roles=DEFAULT_ROLE_POLICY.roles,
            default=_fallback_access(settings.unknown_role_access),
        )
        self._overrides = dict(overrides or {})

    def for_entity(self, *, entity_kind: str) -> RolePolicy:
        return self._overrides.get(entity_kind, self._policy)
