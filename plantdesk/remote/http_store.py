"""HTTP remote store that calls the spreadsheet web app."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from plantdesk.core.results import ApiResult
from plantdesk.observability import log_event

from .base import RemoteStore
from .schemas import MutationAction, RemoteEnvelope, WriteRequest

# The web app rejects CORS preflight, so JSON bodies travel as text/plain.
_POST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}


class HttpRemoteStore(RemoteStore):
    """Read and write collections through the spreadsheet HTTP API.

    Reads are ``GET {base_url}?action=read&sheet={collection}``; writes are a
    ``POST`` of ``{"action", "sheet", "data"}``. Transport errors, non-2xx
    statuses and ``{"success": false}`` bodies all become failed results.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Create an HTTP remote store.

        Args:
            base_url: Deployment URL of the spreadsheet web app.
            client: Optional injected httpx client for testing / transport control.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = base_url
        self._client = client
        self._timeout = timeout

    async def read(self, collection: str) -> ApiResult[list[dict[str, Any]]]:
        params = {"action": "read", "sheet": collection}
        try:
            body = await self._send("GET", params=params)
        except (httpx.HTTPError, ValueError) as exc:
            log_event("remote.read.error", sheet=collection, error=str(exc), level=logging.ERROR)
            return ApiResult.fail(str(exc) or exc.__class__.__name__)

        return self._unwrap(body, empty=[])

    async def write(
        self,
        action: MutationAction,
        collection: str,
        payload: dict[str, Any],
    ) -> ApiResult[dict[str, Any]]:
        request = WriteRequest(action=action, sheet=collection, data=payload)
        content = json.dumps(request.model_dump(mode="json"), ensure_ascii=False, default=str)
        try:
            body = await self._send("POST", content=content, headers=_POST_HEADERS)
        except (httpx.HTTPError, ValueError) as exc:
            log_event(
                "remote.write.error",
                sheet=collection,
                action=action.value,
                error=str(exc),
                level=logging.ERROR,
            )
            return ApiResult.fail(str(exc) or exc.__class__.__name__)

        return self._unwrap(body)

    async def _send(self, method: str, **kwargs: Any) -> Any:
        if self._client is not None:
            resp = await self._client.request(
                method, self._base_url, timeout=self._timeout, follow_redirects=True, **kwargs
            )
            resp.raise_for_status()
            return resp.json()

        async with httpx.AsyncClient() as client:
            resp = await client.request(
                method, self._base_url, timeout=self._timeout, follow_redirects=True, **kwargs
            )
            resp.raise_for_status()
            return resp.json()

    @staticmethod
    def _unwrap(body: Any, empty: Any = None) -> ApiResult[Any]:
        """Extract the payload of a reply.

        An envelope without ``data`` (e.g. ``{"success": true, "message": ...}``)
        carries no record, so ``empty`` stands in for it. Only bodies that are
        not envelopes at all pass through unchanged.
        """
        if not isinstance(body, dict):
            return ApiResult.ok(body)

        try:
            envelope = RemoteEnvelope.model_validate(body)
        except ValidationError as exc:
            return ApiResult.fail(f"Invalid response payload: {exc}")

        if envelope.success is False:
            return ApiResult.fail(envelope.error or "Unknown error")

        if envelope.data is not None:
            return ApiResult.ok(envelope.data)
        if envelope.success is True:
            return ApiResult.ok(empty)
        return ApiResult.ok(body)
