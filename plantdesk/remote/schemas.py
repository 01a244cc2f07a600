from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class MutationAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RemoteEnvelope(BaseModel):
    """Response body of the spreadsheet API.

    The API wraps payloads as ``{"success": ..., "data": ..., "error": ...}``
    but older endpoints return the bare payload, so every field is optional.
    """

    model_config = ConfigDict(extra="allow")

    success: bool | None = None
    data: Any = None
    error: str | None = None


class WriteRequest(BaseModel):
    action: MutationAction
    sheet: str
    data: dict[str, Any]
