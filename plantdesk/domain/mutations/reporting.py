import logging
from typing import Any, Protocol

from plantdesk.observability import log_event


class ErrorReporter(Protocol):
    """Secondary channel for failures that must not fail the primary call."""

    def report(self, error: str, *, context: dict[str, Any]) -> None:
        ...


class LoggingErrorReporter:
    def report(self, error: str, *, context: dict[str, Any]) -> None:
        log_event("error.reported", error=error, level=logging.ERROR, **context)
