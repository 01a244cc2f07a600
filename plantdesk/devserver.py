"""In-memory spreadsheet API.

This stands in for the spreadsheet web app the dashboard talks to in
production:
- ``GET /exec?action=read&sheet=...`` returns every row of a sheet
- ``POST /exec`` with ``{"action", "sheet", "data"}`` creates, updates or
  deletes one row

Important:
- Bodies arrive as ``text/plain`` JSON, exactly like the real web app
- Every response is the ``{"success", "data", "error"}`` envelope with HTTP 200
- Sheets listed in ``failing_sheets`` answer ``success: false`` so callers
  can exercise their failure paths

Run locally with ``uvicorn plantdesk.devserver:app --port 8001``.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Iterable, Mapping

from fastapi import FastAPI, Request
from pydantic import ValidationError

from plantdesk.remote.schemas import MutationAction, WriteRequest

Rows = list[dict[str, Any]]


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _fail(error: str) -> dict[str, Any]:
    return {"success": False, "error": error}


def _index_of(rows: Rows, record_id: Any) -> int | None:
    for i, row in enumerate(rows):
        if str(row.get("id")) == str(record_id):
            return i
    return None


def create_app(
    sheets: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
    *,
    failing_sheets: Iterable[str] = (),
) -> FastAPI:
    app = FastAPI(title="Spreadsheet API (in-memory)", version="1.0.0")
    app.state.sheets = {
        name: [dict(row) for row in rows] for name, rows in (sheets or {}).items()
    }
    app.state.failing_sheets = set(failing_sheets)

    @app.get("/exec")
    async def read(action: str, sheet: str = "") -> dict[str, Any]:
        if action != "read":
            return _fail(f"Unknown action: {action}")
        if sheet in app.state.failing_sheets:
            return _fail(f"Sheet '{sheet}' is unavailable")
        # Unknown sheets read as empty, like a freshly added tab.
        return _ok([dict(row) for row in app.state.sheets.get(sheet, [])])

    @app.post("/exec")
    async def write(request: Request) -> dict[str, Any]:
        try:
            body = json.loads(await request.body())
            write_request = WriteRequest.model_validate(body)
        except (ValueError, ValidationError) as exc:
            return _fail(f"Invalid request: {exc}")

        sheet = write_request.sheet
        if sheet in app.state.failing_sheets:
            return _fail(f"Sheet '{sheet}' is unavailable")

        rows: Rows = app.state.sheets.setdefault(sheet, [])
        data = dict(write_request.data)

        if write_request.action == MutationAction.CREATE:
            data.setdefault("id", uuid.uuid4().hex[:12])
            rows.append(data)
            return _ok(dict(data))

        index = _index_of(rows, data.get("id"))
        if index is None:
            return _fail(f"Record '{data.get('id')}' not found in '{sheet}'")

        if write_request.action == MutationAction.UPDATE:
            rows[index] = {**rows[index], **data}
            return _ok(dict(rows[index]))

        removed = rows.pop(index)
        return _ok({"id": removed.get("id")})

    return app


app = create_app()
