from .errors import (
    PlantdeskError,
    RemoteStoreError,
    PermissionDeniedError,
    InvalidTransitionError,
    ConfigurationError,
)
from .results import ApiResult
