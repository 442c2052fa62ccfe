"""Core message and result types for Switchboard."""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator


class SwitchboardError(Exception):
    """Base exception for all Switchboard errors."""


def _new_correlation_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


# ---------------------------------------------------------------------------
# Tool calls
# ---------------------------------------------------------------------------


class ToolCallRequest(BaseModel):
    """A request from the model to invoke a tool.

    Args:
        name: Name of the tool to invoke.
        args: Parsed keyword arguments for the tool.
        correlation_id: Identifier used to match the resulting ``ToolResult``.
    """

    model_config = {"frozen": True}

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    correlation_id: str = Field(default_factory=_new_correlation_id)


class ToolResult(BaseModel):
    """The outcome of executing one tool call.

    Args:
        correlation_id: The id of the ``ToolCallRequest`` this answers.
        tool_name: Name of the tool that was executed.
        content: Text result (an error description when the tool failed).
        error: Error message if the tool failed.
    """

    model_config = {"frozen": True}

    correlation_id: str
    tool_name: str
    content: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_message(self, agent: str, request: ToolCallRequest) -> Message:
        """Wrap this result as a ``tool`` message attributed to *agent*."""
        return Message.tool(agent, request, self.content, is_error=not self.ok)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class Role(StrEnum):
    """Who produced a message."""

    USER = "user"
    AGENT = "agent"
    TOOL = "tool"


class Message(BaseModel):
    """One entry in a thread's history.

    A single tagged variant covers every role. Tool messages carry the
    request they answer in ``tool_calls`` so a history can be replayed to a
    provider without looking anything up elsewhere.

    Args:
        role: Who produced the message.
        agent: Originating agent (``None`` for user messages).
        content: Text content, possibly empty.
        tool_calls: Tool calls requested (agent) or answered (tool).
        tool_call_id: Correlation id answered by a tool message.
        is_error: Whether a tool message carries a failure.
    """

    model_config = {"frozen": True}

    role: Role
    agent: str | None = None
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: str | None = None
    is_error: bool = False

    @model_validator(mode="after")
    def _check_shape(self) -> Message:
        if self.role is Role.USER:
            if self.agent is not None or self.tool_calls:
                raise ValueError("user messages carry no agent and no tool calls")
        elif self.agent is None:
            raise ValueError(f"{self.role.value} messages require an originating agent")
        if self.role is Role.TOOL:
            if self.tool_call_id is None:
                raise ValueError("tool messages require a tool_call_id")
            if len(self.tool_calls) != 1 or self.tool_calls[0].correlation_id != self.tool_call_id:
                raise ValueError("tool messages must carry exactly the request they answer")
        elif self.tool_call_id is not None:
            raise ValueError("only tool messages may set tool_call_id")
        return self

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def agent_reply(cls, agent: str, content: str) -> Message:
        return cls(role=Role.AGENT, agent=agent, content=content)

    @classmethod
    def handoff(cls, agent: str, call: ToolCallRequest) -> Message:
        """Record *agent*'s decision to hand off via *call*."""
        return cls(role=Role.AGENT, agent=agent, content="", tool_calls=(call,))

    @classmethod
    def tool(
        cls, agent: str, request: ToolCallRequest, content: str, *, is_error: bool = False
    ) -> Message:
        return cls(
            role=Role.TOOL,
            agent=agent,
            content=content,
            tool_calls=(request,),
            tool_call_id=request.correlation_id,
            is_error=is_error,
        )


# ---------------------------------------------------------------------------
# Completion results
# ---------------------------------------------------------------------------


class TextCompletion(BaseModel):
    """A final textual reply from the model."""

    model_config = {"frozen": True}

    kind: Literal["text"] = "text"
    content: str = ""


class ToolCallsCompletion(BaseModel):
    """One or more tool invocation requests from the model."""

    model_config = {"frozen": True}

    kind: Literal["tool_calls"] = "tool_calls"
    calls: tuple[ToolCallRequest, ...] = Field(min_length=1)


CompletionResult = Annotated[TextCompletion | ToolCallsCompletion, Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Routing results
# ---------------------------------------------------------------------------


class RouterState(StrEnum):
    """States of the handoff turn loop."""

    RUNNING = "running"
    AWAITING_TOOL_RESULTS = "awaiting_tool_results"
    HANDOFF = "handoff"
    DONE = "done"


class RoutingWarning(BaseModel):
    """A non-fatal anomaly recorded while routing a turn.

    Args:
        agent: Agent whose response triggered the warning.
        tool_name: Tool call the warning is about.
        correlation_id: Correlation id of that call.
        message: Human-readable description.
    """

    model_config = {"frozen": True}

    agent: str
    tool_name: str
    correlation_id: str
    message: str


class RouteOutcome(BaseModel):
    """Result of ``HandoffRouter.run()`` for one turn.

    Args:
        reply: Final agent reply text.
        active_agent: Agent active when the turn finished.
        messages: Messages produced by the turn, in order.
        warnings: Non-fatal anomalies recorded along the way.
        iterations: Number of gateway calls made.
        path: Agents that held control, in order.
        state: Terminal router state.
    """

    model_config = {"frozen": True}

    reply: str
    active_agent: str
    messages: tuple[Message, ...] = ()
    warnings: tuple[RoutingWarning, ...] = ()
    iterations: int = Field(default=0, ge=0)
    path: tuple[str, ...] = ()
    state: RouterState = RouterState.DONE


class Thread(BaseModel):
    """Immutable snapshot of a conversation thread."""

    model_config = {"frozen": True}

    thread_id: str
    active_agent: str
    messages: tuple[Message, ...] = ()


class SendResult(BaseModel):
    """Return value of ``ConversationSession.send()``.

    Args:
        reply: Final agent reply text.
        active_agent: Agent that will receive the next user message.
        thread_id: The thread the turn ran on.
        warnings: Routing warnings recorded during the turn.
    """

    model_config = {"frozen": True}

    reply: str
    active_agent: str
    thread_id: str = ""
    warnings: tuple[RoutingWarning, ...] = ()
