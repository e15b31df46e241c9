"""Structured logging helpers shared by the parser, materializer, and sessions.

Purpose
    Keep every emission of logging data predictable and contextual without
    forcing host applications (configuration loaders, daemons) to adopt a
    specific logging backend.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_error``: emit structured entries via a
      single private emitter.
    - ``make_event``: convenience builder for structured event payloads.
    - ``mask_secret``: hides credentials before they reach a log record.

System Integration
    Used by the application layer and the gateway adapter so all diagnostics
    carry the same trace metadata. The domain layer stays free from logging.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_sql_config_trace_id", default=None)
"""Current trace identifier propagated through logging helpers.

Why
    A host loader may open several ``sql://`` sources during one reload and
    needs to correlate their events without threading identifiers manually.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_sql_config")
_LOGGER.addHandler(logging.NullHandler())

_MASK: Final[str] = "***"


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('reload-7')
    >>> TRACE_ID.get()
    'reload-7'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    stage: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for a pipeline stage.

    Why
        Keeps event construction consistent so downstream log processors can
        rely on stable keys.
    Inputs
        stage: ``"parse"``, ``"materialize"``, ``"session"`` or ``"gateway"``.
        path: Source path associated with the event, already masked.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('materialize', None, {'lines': 3})
    {'stage': 'materialize', 'path': None, 'lines': 3}
    """

    event: dict[str, Any] = {"stage": stage, "path": path}
    if payload:
        event |= dict(payload)
    return event


def mask_secret(value: str | None) -> str | None:
    """Return a placeholder for non-empty secrets.

    >>> mask_secret('hunter2'), mask_secret(''), mask_secret(None)
    ('***', '', None)
    """

    if not value:
        return value
    return _MASK


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
