"""Logging for Switchboard on top of stdlib ``logging``.

All loggers live under the ``switchboard.`` namespace. Values bound with
``LogContext`` (the session binds ``thread_id``, the router binds
``agent``) are stamped onto every record created inside the scope, so
interleaved turns on different threads stay readable.

Usage::

    from switchboard.observability.logging import LogContext, configure_logging, get_logger

    log = get_logger("router")          # -> switchboard.router
    configure_logging(level="DEBUG")    # idempotent
    with LogContext(thread_id="customer_123"):
        log.info("turn started")

Environment:
    SWITCHBOARD_DEBUG=1         DEBUG level, overriding SWITCHBOARD_LOG_LEVEL.
    SWITCHBOARD_LOG_LEVEL=INFO  DEBUG, INFO, WARNING or ERROR.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_PREFIX = "switchboard"

_bindings: ContextVar[dict[str, Any]] = ContextVar("switchboard_log_bindings", default={})


def current_context() -> dict[str, Any]:
    """Return a copy of the values bound by the enclosing ``LogContext`` scopes."""
    return dict(_bindings.get())


class LogContext:
    """Bind key-value pairs to every record logged within the ``with`` block.

    Scopes nest (inner values win) and are per asyncio task.
    """

    def __init__(self, **bindings: Any) -> None:
        self._bindings = bindings
        self._tokens: list[Any] = []

    def __enter__(self) -> LogContext:
        self._tokens.append(_bindings.set({**_bindings.get(), **self._bindings}))
        return self

    def __exit__(self, *_: object) -> None:
        _bindings.reset(self._tokens.pop())


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    bound = getattr(record, "context", None)
    return bound if bound is not None else current_context()


class ContextFilter(logging.Filter):
    """Stamp the bound ``LogContext`` values onto records as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "context", None) is None:
            record.context = current_context()
        return True


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_LEVEL_STYLE: dict[int, tuple[str, str]] = {
    logging.DEBUG: ("D", "\033[2m"),
    logging.INFO: ("I", "\033[36m"),
    logging.WARNING: ("W", "\033[33m"),
    logging.ERROR: ("E", "\033[31m"),
    logging.CRITICAL: ("C", "\033[1;31m"),
}
_RESET = "\033[0m"
_DIM = "\033[2m"


class TextFormatter(logging.Formatter):
    """One line per record: time, level letter, short logger name, context, message."""

    def format(self, record: logging.LogRecord) -> str:
        letter, color = _LEVEL_STYLE.get(record.levelno, ("?", ""))
        name = record.name.removeprefix(f"{_PREFIX}.")
        parts = [f"{_DIM}{self.formatTime(record, '%H:%M:%S')}{_RESET}", f"{color}{letter} {name}{_RESET}"]
        parts.extend(f"{key}={value}" for key, value in _context_of(record).items())
        line = " ".join(parts) + f" ▸ {record.getMessage()}"
        if record.exc_info:
            line += f"\n{color}{self.formatException(record.exc_info)}{_RESET}"
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _context_of(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_setup_lock = threading.Lock()
_handler: logging.Handler | None = None


def get_logger(name: str) -> logging.Logger:
    """Return the logger for *name*, placed under the ``switchboard`` namespace."""
    if name != _PREFIX and not name.startswith(f"{_PREFIX}."):
        name = f"{_PREFIX}.{name}"
    return logging.getLogger(name)


def _install(handler: logging.Handler, level: str | int) -> None:
    global _handler
    root = logging.getLogger(_PREFIX)
    if _handler is not None:
        root.removeHandler(_handler)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)
    root.setLevel(logging.getLevelName(level.upper()) if isinstance(level, str) else level)
    _handler = handler


def configure_logging(level: str | int = "WARNING", fmt: str = "text", *, force: bool = False) -> None:
    """Attach a stderr handler to the ``switchboard`` logger.

    Only the first call has an effect unless *force* is set.

    Args:
        level: Level name or number.
        fmt: ``"text"`` for compact coloured lines, ``"json"`` for one
            JSON object per record.
        force: Replace a handler installed earlier.
    """
    with _setup_lock:
        if _handler is not None and not force:
            return
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter() if fmt == "json" else TextFormatter())
        _install(handler, level)


def reset_logging() -> None:
    """Remove the installed handler and restore WARNING; for tests."""
    global _handler
    with _setup_lock:
        root = logging.getLogger(_PREFIX)
        if _handler is not None:
            root.removeHandler(_handler)
            _handler = None
        root.setLevel(logging.WARNING)


_ENV_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_from_env() -> None:
    """Apply ``SWITCHBOARD_DEBUG`` / ``SWITCHBOARD_LOG_LEVEL``.

    The level is always applied; a handler is attached only when one of the
    variables is set. Unknown level names fall back to WARNING.
    """
    debug = os.environ.get("SWITCHBOARD_DEBUG") == "1"
    requested = os.environ.get("SWITCHBOARD_LOG_LEVEL")
    level = "DEBUG" if debug else (requested or "WARNING").upper()
    if level not in _ENV_LEVELS:
        level = "WARNING"

    logging.getLogger(_PREFIX).setLevel(level)
    if debug or requested is not None:
        with _setup_lock:
            if _handler is None:
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(
                    logging.Formatter("%(asctime)s %(levelname)-8s %(name)s  %(message)s")
                )
                _install(handler, level)


_configure_from_env()
