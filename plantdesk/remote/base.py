"""Remote store abstraction.

In production the remote store is a spreadsheet web app reached over HTTP.
Tests swap in an in-memory fake or an httpx mock transport. Implementations
never raise for remote failures; they return a failed ``ApiResult``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from plantdesk.core.results import ApiResult

from .schemas import MutationAction


class RemoteStore(ABC):
    """Reads and writes whole records of named collections."""

    @abstractmethod
    async def read(self, collection: str) -> ApiResult[list[dict[str, Any]]]:
        """Return every record of ``collection``."""
        raise NotImplementedError

    @abstractmethod
    async def write(
        self,
        action: MutationAction,
        collection: str,
        payload: dict[str, Any],
    ) -> ApiResult[dict[str, Any]]:
        """Create, update or delete one record and return the stored entity."""
        raise NotImplementedError
