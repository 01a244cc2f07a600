# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------


class PlantdeskError(Exception):
    pass


class RemoteStoreError(PlantdeskError):
    """Raised by remote store adapters when a call cannot be completed."""

    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PermissionDeniedError(PlantdeskError):
    def __init__(self, role: str, action: str):
        self.role = role
        self.action = action
        super().__init__(f"Role '{role}' may not {action} records")


class InvalidTransitionError(PlantdeskError):
    """Raised when a pending mutation is driven into an illegal state."""
    pass


class ConfigurationError(PlantdeskError):
    pass
