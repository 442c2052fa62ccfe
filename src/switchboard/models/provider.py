"""Abstract completion gateway and the gateway factory.

``CompletionGateway`` is the boundary to the language-model service:
history plus instructions plus tool specs in, a ``CompletionResult`` out.
``get_gateway()`` builds one from a ``"provider:model_name"`` string.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from switchboard.config import ModelConfig, parse_model_string
from switchboard.registry import Registry
from switchboard.types import CompletionResult, Message

from .types import CompletionError

logger = logging.getLogger(__name__)

gateway_registry: Registry[type[CompletionGateway]] = Registry("provider")
"""Registry mapping provider names to ``CompletionGateway`` subclasses."""


class CompletionGateway(ABC):
    """Stateless boundary to a chat-completion service.

    Implementations must not keep session state between calls; the same
    gateway is called repeatedly with a growing history.
    """

    @abstractmethod
    async def complete(
        self,
        history: list[Message],
        instructions: str,
        tools: list[dict[str, Any]],
    ) -> CompletionResult:
        """Request the next step for an agent.

        Args:
            history: Full visible thread history, oldest first.
            instructions: The active agent's system prompt.
            tools: Function-calling schemas the agent may use.

        Returns:
            A text reply or one or more tool call requests.

        Raises:
            CompletionError: If the service call fails.
        """


def get_gateway(
    model: str, *, api_key: str | None = None, base_url: str | None = None, **kwargs: Any
) -> CompletionGateway:
    """Instantiate the gateway registered for the provider in *model*.

    ``"gpt-4o-mini"`` and ``"openai:gpt-4o-mini"`` are equivalent. Keyword
    arguments other than *api_key* and *base_url* become ``ModelConfig``
    fields (``timeout``, ``temperature`` ...).

    Raises:
        CompletionError: If no gateway is registered for the provider.
    """
    provider_name, model_name = parse_model_string(model)
    if provider_name not in gateway_registry:
        raise CompletionError(
            f"Provider '{provider_name}' not registered. Available: {gateway_registry.names()}",
            model=model,
        )
    gateway_cls = gateway_registry.get(provider_name)
    config = ModelConfig(
        provider=provider_name, model_name=model_name, api_key=api_key, base_url=base_url, **kwargs
    )
    logger.debug("gateway %s for model %s", gateway_cls.__name__, model_name)
    return gateway_cls(config)  # type: ignore[call-arg]
