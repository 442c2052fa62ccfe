"""Configuration types for Switchboard."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_PROVIDER = "openai"


def parse_model_string(model: str) -> tuple[str, str]:
    """Return ``(provider, model_name)`` for a model id such as ``"openai:gpt-4o-mini"``.

    Only the first colon separates the provider, so fine-tuned ids like
    ``"openai:ft:gpt-4o:acme"`` keep their colons. A bare name gets
    ``DEFAULT_PROVIDER``.
    """
    provider, sep, name = model.partition(":")
    return (provider, name) if sep else (DEFAULT_PROVIDER, model)


class ModelConfig(BaseModel):
    """Connection settings handed to a ``CompletionGateway`` constructor.

    ``api_key=None`` defers to the SDK's own environment variable.
    ``max_retries`` and ``timeout`` are passed through to the SDK client;
    ``temperature`` is sent with every request.
    """

    model_config = {"frozen": True}

    provider: str = DEFAULT_PROVIDER
    model_name: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    max_retries: int = Field(default=3, ge=0)
    timeout: float = Field(default=30.0, gt=0)
    temperature: float | None = Field(default=0.0, ge=0.0, le=2.0)


class RouterConfig(BaseModel):
    """Limits applied to each routed turn.

    Args:
        max_iterations: Maximum gateway calls per turn before the router
            gives up with ``RoutingLoopExceededError``.
        completion_timeout: Per-call gateway timeout in seconds (``None``
            leaves timing to the gateway itself).
    """

    model_config = {"frozen": True}

    max_iterations: int = Field(default=10, ge=1)
    completion_timeout: float | None = Field(default=None, gt=0)


BusyPolicy = Literal["queue", "reject"]


class SessionConfig(BaseModel):
    """Configuration for a ``ConversationSession``.

    Args:
        busy_policy: What a second ``send`` on a thread with a turn in
            flight does: ``"queue"`` waits its turn, ``"reject"`` raises
            ``ThreadBusyError``.
    """

    model_config = {"frozen": True}

    busy_policy: BusyPolicy = "queue"
