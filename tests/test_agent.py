"""Tests for switchboard.agent — agent definitions."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from switchboard.agent import AgentDefinition, RouterConfigError, UnknownToolReferenceError
from switchboard.models.provider import CompletionGateway
from switchboard.tool import ToolRegistry, handoff_tool, tool
from switchboard.types import CompletionResult, Message, TextCompletion


@tool
def solve_issue(issue: str) -> str:
    """Suggest a fix."""
    return "restart"


@tool
def check_account(account_id: str) -> str:
    """Look up an account."""
    return "ok"


def _registry() -> ToolRegistry:
    return ToolRegistry([solve_issue, check_account, handoff_tool("general"), handoff_tool("billing")])


class RecordingGateway(CompletionGateway):
    def __init__(self) -> None:
        self.calls: list[tuple[list[Message], str, list[dict[str, Any]]]] = []

    async def complete(
        self, history: list[Message], instructions: str, tools: list[dict[str, Any]]
    ) -> CompletionResult:
        self.calls.append((history, instructions, tools))
        return TextCompletion(content="hello")


class TestAgentDefinition:
    def test_defaults(self) -> None:
        agent = AgentDefinition(name="general", instructions="Triage requests.")
        assert agent.tools == frozenset()
        assert agent.default is False
        assert agent.description == ""

    def test_tools_coerced_to_frozenset(self) -> None:
        agent = AgentDefinition(name="tech", instructions="Fix.", tools=["a", "b", "a"])  # type: ignore[arg-type]
        assert agent.tools == frozenset({"a", "b"})

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AgentDefinition(name="", instructions="x")

    def test_blank_instructions_rejected(self) -> None:
        with pytest.raises(ValidationError, match="instructions"):
            AgentDefinition(name="a", instructions="   ")

    def test_frozen(self) -> None:
        agent = AgentDefinition(name="a", instructions="x")
        with pytest.raises(ValidationError):
            agent.name = "b"  # type: ignore[misc]


class TestAgentTools:
    def test_validate_tools_ok(self) -> None:
        agent = AgentDefinition(name="tech", instructions="x", tools=frozenset({"solve_issue"}))
        agent.validate_tools(_registry())

    def test_validate_tools_names_missing(self) -> None:
        agent = AgentDefinition(
            name="tech", instructions="x", tools=frozenset({"solve_issue", "zap", "reboot"})
        )
        with pytest.raises(UnknownToolReferenceError, match="'tech'.*reboot, zap"):
            agent.validate_tools(_registry())

    def test_unknown_tool_is_config_error(self) -> None:
        assert issubclass(UnknownToolReferenceError, RouterConfigError)

    def test_tool_specs_sorted(self) -> None:
        agent = AgentDefinition(
            name="tech",
            instructions="x",
            tools=frozenset({"transfer_to_general", "solve_issue", "check_account"}),
        )
        names = [s["function"]["name"] for s in agent.tool_specs(_registry())]
        assert names == ["check_account", "solve_issue", "transfer_to_general"]

    def test_handoff_targets(self) -> None:
        agent = AgentDefinition(
            name="tech",
            instructions="x",
            tools=frozenset({"transfer_to_general", "solve_issue", "transfer_to_billing"}),
        )
        assert agent.handoff_targets(_registry()) == ["billing", "general"]


class TestTakeTurn:
    async def test_passes_instructions_history_and_tools(self) -> None:
        gateway = RecordingGateway()
        agent = AgentDefinition(
            name="tech", instructions="You fix things.", tools=frozenset({"solve_issue"})
        )
        history = (Message.user("app broken"),)

        result = await agent.take_turn(gateway, history, _registry())

        assert isinstance(result, TextCompletion)
        sent_history, instructions, tools = gateway.calls[0]
        assert sent_history == list(history)
        assert instructions == "You fix things."
        assert [t["function"]["name"] for t in tools] == ["solve_issue"]

    def test_describe(self) -> None:
        agent = AgentDefinition(
            name="tech", instructions="Fix.", tools=frozenset({"b", "a"}), description="Tech"
        )
        assert agent.describe() == {
            "name": "tech",
            "description": "Tech",
            "default": False,
            "tools": ["a", "b"],
            "instructions": "Fix.",
        }
