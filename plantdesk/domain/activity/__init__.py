"""Append-only audit trail of committed mutations."""
from .entities import ActivityLogEntry
from .diff import compute_changes, build_preview
from .repository import (
    ActivityLogRepository,
    RemoteActivityLogRepository,
    InMemoryActivityLogRepository,
)
from .logger import ActivityLogger
