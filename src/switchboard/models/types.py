"""Gateway error types."""

from __future__ import annotations

from switchboard.types import SwitchboardError


class CompletionError(SwitchboardError):
    """Raised when a completion gateway call fails.

    Args:
        message: Human-readable error description.
        model: The model identifier that caused the error.
    """

    def __init__(self, message: str, *, model: str = "") -> None:
        self.model = model
        full = f"[{model}] {message}" if model else message
        super().__init__(full)


class CompletionTimeoutError(CompletionError):
    """Raised when a completion gateway call does not answer in time."""
