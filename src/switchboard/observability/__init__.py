"""Switchboard observability: structured logging."""

from switchboard.observability.logging import (
    ContextFilter,
    JsonFormatter,
    LogContext,
    TextFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "LogContext",
    "TextFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
