"""Structured logging for configuration loading.

Purpose
    Every provider, parser and the builder report what they loaded (or skipped)
    through one package logger, tagged with the active trace identifier, so a
    host application can correlate a configuration build with its own spans.

Contents
    - ``TRACE_ID``: context variable holding the active trace identifier.
    - ``get_logger``: the package logger; silent until the host adds handlers.
    - ``bind_trace_id`` / ``traced``: set the identifier, permanently or for a
      ``with`` block.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``.
    - ``make_event``: ``source``/``location`` payload shared by lifecycle events.

System Integration
    Records carry their fields under ``record.context``. Field names that look
    like credentials are masked before they reach a handler; providers log keys
    and counts, never values.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_config_providers_trace_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_config_providers")
_LOGGER.addHandler(logging.NullHandler())

_MASK: Final[str] = "***"
_SENSITIVE: Final[frozenset[str]] = frozenset({"password", "secret", "secret_id", "token", "value"})


def get_logger() -> logging.Logger:
    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* for subsequent log records; ``None`` clears it.

    >>> bind_trace_id("build-1")
    >>> TRACE_ID.get()
    'build-1'
    >>> bind_trace_id(None)
    """

    TRACE_ID.set(trace_id)


@contextmanager
def traced(trace_id: str | None) -> Iterator[None]:
    """Bind *trace_id* inside the block and restore the previous one afterwards.

    ``None`` leaves the current binding untouched.

    >>> with traced("reload-7"):
    ...     TRACE_ID.get()
    'reload-7'
    >>> TRACE_ID.get() is None
    True
    """

    if trace_id is None:
        yield
        return
    token = TRACE_ID.set(trace_id)
    try:
        yield
    finally:
        TRACE_ID.reset(token)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Report a degraded load, e.g. an optional source that was skipped."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(source: str, location: str | None, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the fields of a source lifecycle event.

    Parameters
    ----------
    source:
        Provider name (``yaml``, ``env``, ``remote``, ``vault`` ...).
    location:
        Path or URI the provider reads, when it has one.
    payload:
        Extra fields appended after the base keys.

    Examples
    --------
    >>> make_event("remote", "http://config", {"keys": 3})
    {'source': 'remote', 'location': 'http://config', 'keys': 3}
    """

    event: dict[str, Any] = {"source": source, "location": location}
    event.update(payload or {})
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context: dict[str, Any] = {"trace_id": TRACE_ID.get()}
    for name, value in fields.items():
        context[name] = _MASK if name.lower() in _SENSITIVE else value
    _LOGGER.log(level, message, extra={"context": context})
