"""Tests for switchboard.types — messages, tool calls and completion results."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from switchboard.types import (
    CompletionResult,
    Message,
    Role,
    SwitchboardError,
    TextCompletion,
    Thread,
    ToolCallRequest,
    ToolCallsCompletion,
    ToolResult,
)


class TestToolCallRequest:
    def test_correlation_id_generated(self) -> None:
        a = ToolCallRequest(name="x")
        b = ToolCallRequest(name="x")
        assert a.correlation_id.startswith("call_")
        assert a.correlation_id != b.correlation_id

    def test_args_default_empty(self) -> None:
        assert ToolCallRequest(name="x").args == {}

    def test_frozen(self) -> None:
        call = ToolCallRequest(name="x")
        with pytest.raises(ValidationError):
            call.name = "y"  # type: ignore[misc]


class TestMessage:
    def test_user(self) -> None:
        msg = Message.user("hi")
        assert msg.role is Role.USER
        assert msg.agent is None
        assert msg.tool_calls == ()

    def test_user_with_agent_rejected(self) -> None:
        with pytest.raises(ValidationError, match="user messages"):
            Message(role=Role.USER, agent="general", content="hi")

    def test_agent_requires_origin(self) -> None:
        with pytest.raises(ValidationError, match="originating agent"):
            Message(role=Role.AGENT, content="hello")

    def test_agent_reply(self) -> None:
        msg = Message.agent_reply("tech", "Fixed.")
        assert msg.role is Role.AGENT
        assert msg.agent == "tech"
        assert msg.content == "Fixed."

    def test_handoff_note(self) -> None:
        call = ToolCallRequest(name="transfer_to_tech")
        msg = Message.handoff("general", call)
        assert msg.role is Role.AGENT
        assert msg.content == ""
        assert msg.tool_calls == (call,)

    def test_tool_message_carries_request(self) -> None:
        call = ToolCallRequest(name="solve_issue", args={"issue": "500"})
        msg = Message.tool("tech", call, "restart it")
        assert msg.tool_call_id == call.correlation_id
        assert msg.tool_calls == (call,)
        assert msg.is_error is False

    def test_tool_message_requires_matching_request(self) -> None:
        call = ToolCallRequest(name="solve_issue")
        with pytest.raises(ValidationError, match="exactly the request"):
            Message(
                role=Role.TOOL,
                agent="tech",
                tool_calls=(call,),
                tool_call_id="call_other",
            )

    def test_tool_call_id_only_on_tool_messages(self) -> None:
        with pytest.raises(ValidationError, match="only tool messages"):
            Message(role=Role.AGENT, agent="tech", tool_call_id="call_1")

    def test_frozen(self) -> None:
        msg = Message.user("hi")
        with pytest.raises(ValidationError):
            msg.content = "changed"  # type: ignore[misc]


class TestToolResult:
    def test_ok(self) -> None:
        result = ToolResult(correlation_id="c1", tool_name="t", content="done")
        assert result.ok

    def test_to_message(self) -> None:
        call = ToolCallRequest(name="t", correlation_id="c1")
        result = ToolResult(correlation_id="c1", tool_name="t", content="Error: x", error="x")
        msg = result.to_message("tech", call)
        assert msg.role is Role.TOOL
        assert msg.is_error
        assert msg.content == "Error: x"


class TestCompletionResult:
    def test_discriminates_text(self) -> None:
        adapter: TypeAdapter[CompletionResult] = TypeAdapter(CompletionResult)
        result = adapter.validate_python({"kind": "text", "content": "hello"})
        assert isinstance(result, TextCompletion)

    def test_discriminates_tool_calls(self) -> None:
        adapter: TypeAdapter[CompletionResult] = TypeAdapter(CompletionResult)
        result = adapter.validate_python(
            {"kind": "tool_calls", "calls": [{"name": "x", "correlation_id": "c1"}]}
        )
        assert isinstance(result, ToolCallsCompletion)
        assert result.calls[0].correlation_id == "c1"

    def test_tool_calls_must_not_be_empty(self) -> None:
        with pytest.raises(ValidationError):
            ToolCallsCompletion(calls=())


class TestThread:
    def test_defaults(self) -> None:
        thread = Thread(thread_id="t1", active_agent="general")
        assert thread.messages == ()


def test_error_base() -> None:
    assert issubclass(SwitchboardError, Exception)
