"""Switchboard models: completion gateway abstractions."""

# Import gateways to trigger registration with gateway_registry.
from .openai import OpenAIGateway
from .provider import CompletionGateway, gateway_registry, get_gateway
from .types import CompletionError, CompletionTimeoutError

__all__ = [
    "CompletionError",
    "CompletionGateway",
    "CompletionTimeoutError",
    "OpenAIGateway",
    "gateway_registry",
    "get_gateway",
]
