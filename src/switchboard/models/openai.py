"""OpenAI completion gateway.

Wraps the ``openai`` SDK to implement ``CompletionGateway.complete()``,
translating thread history into chat messages and chat responses into
``CompletionResult`` values.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from switchboard.config import ModelConfig
from switchboard.types import (
    CompletionResult,
    Message,
    Role,
    TextCompletion,
    ToolCallRequest,
    ToolCallsCompletion,
)

from .provider import CompletionGateway, gateway_registry
from .types import CompletionError, CompletionTimeoutError

_log = logging.getLogger(__name__)

_RAW_ARGS_KEY = "_raw"


# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------


def _encode_args(call: ToolCallRequest) -> str:
    if set(call.args) == {_RAW_ARGS_KEY}:
        return str(call.args[_RAW_ARGS_KEY])
    return json.dumps(call.args, ensure_ascii=False)


def _tool_call_entry(call: ToolCallRequest) -> dict[str, Any]:
    return {
        "id": call.correlation_id,
        "type": "function",
        "function": {"name": call.name, "arguments": _encode_args(call)},
    }


def _handoff_target(history: list[Message], index: int) -> str | None:
    """Return the agent that took over after the handoff note at *index*."""
    source = history[index].agent
    for later in history[index + 1 :]:
        if later.role is Role.USER:
            return None
        if later.agent != source:
            return later.agent
    return None


def _to_openai_messages(instructions: str, history: list[Message]) -> list[dict[str, Any]]:
    """Convert thread history to OpenAI chat message dicts.

    Handoff notes become an assistant tool call answered by a synthetic
    tool reply; tool messages become the assistant call they answer
    followed by the tool reply, so every call id is always answered.

    Args:
        instructions: The active agent's system prompt.
        history: Thread history, oldest first.

    Returns:
        List of dicts suitable for the OpenAI ``messages`` parameter.
    """
    result: list[dict[str, Any]] = [{"role": "system", "content": instructions}]
    for i, msg in enumerate(history):
        if msg.role is Role.USER:
            result.append({"role": "user", "content": msg.content})
        elif msg.role is Role.TOOL:
            result.append(
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [_tool_call_entry(c) for c in msg.tool_calls],
                }
            )
            result.append(
                {"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content}
            )
        elif msg.tool_calls:
            result.append(
                {
                    "role": "assistant",
                    "content": msg.content or None,
                    "tool_calls": [_tool_call_entry(c) for c in msg.tool_calls],
                }
            )
            target = _handoff_target(history, i)
            note = f"Transferred to {target}." if target else "Transfer acknowledged."
            for call in msg.tool_calls:
                result.append(
                    {"role": "tool", "tool_call_id": call.correlation_id, "content": note}
                )
        else:
            result.append({"role": "assistant", "content": msg.content})
    return result


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_args(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        _log.warning("tool call arguments are not valid JSON: %.80s", raw)
        return {_RAW_ARGS_KEY: raw}
    if not isinstance(parsed, dict):
        return {_RAW_ARGS_KEY: raw}
    return parsed


def _parse_response(raw: Any) -> CompletionResult:
    """Convert an OpenAI ChatCompletion to a ``CompletionResult``.

    Text that accompanies tool calls is dropped; the calls decide the step.
    """
    message = raw.choices[0].message
    if message.tool_calls:
        calls = tuple(
            ToolCallRequest(
                name=tc.function.name,
                args=_parse_args(tc.function.arguments),
                correlation_id=tc.id,
            )
            for tc in message.tool_calls
        )
        return ToolCallsCompletion(calls=calls)
    return TextCompletion(content=message.content or "")


# ---------------------------------------------------------------------------
# Gateway class
# ---------------------------------------------------------------------------


class OpenAIGateway(CompletionGateway):
    """OpenAI chat-completions gateway.

    Args:
        config: Connection configuration. ``api_key=None`` lets the SDK
            read ``OPENAI_API_KEY`` from the environment.

    Raises:
        CompletionError: If the SDK client cannot be created (no API key).
    """

    def __init__(self, config: ModelConfig) -> None:
        self.config = config
        try:
            self._client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                max_retries=config.max_retries,
                timeout=config.timeout,
            )
        except openai.OpenAIError as exc:
            raise CompletionError(str(exc), model=self.model) from exc

    @property
    def model(self) -> str:
        return f"openai:{self.config.model_name}"

    async def complete(
        self,
        history: list[Message],
        instructions: str,
        tools: list[dict[str, Any]],
    ) -> CompletionResult:
        """Send a chat completion request to OpenAI.

        Raises:
            CompletionTimeoutError: If the request times out.
            CompletionError: If the API call fails otherwise.
        """
        kwargs: dict[str, Any] = {
            "model": self.config.model_name,
            "messages": _to_openai_messages(instructions, history),
        }
        if tools:
            kwargs["tools"] = tools
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        _log.debug(
            "openai complete: model=%s, messages=%d, tools=%d",
            self.config.model_name,
            len(history),
            len(tools),
        )
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            _log.error("openai complete timed out: model=%s", self.config.model_name)
            raise CompletionTimeoutError(str(exc), model=self.model) from exc
        except openai.APIError as exc:
            _log.error(
                "openai complete failed: model=%s, error=%s",
                self.config.model_name,
                exc,
                exc_info=True,
            )
            raise CompletionError(str(exc), model=self.model) from exc
        return _parse_response(response)


gateway_registry.register("openai", OpenAIGateway)
