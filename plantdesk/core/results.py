"""Typed results returned across the fetcher and gateway boundaries.

Remote failures are values, not exceptions: a caller can always tell a failed
read apart from an empty one without a try/except around every page handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of a remote call.

    Attributes:
        success: Whether the remote call completed.
        data: Payload on success (may legitimately be ``None`` for deletes).
        error: Human-readable message on failure, shown to the user verbatim.
    """

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ApiResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResult[T]":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        return payload
