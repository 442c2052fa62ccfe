"""Tests for switchboard.pipeline — sequential agent pipelines."""

from __future__ import annotations

from typing import Any

import pytest

from switchboard.agent import AgentDefinition
from switchboard.models.provider import CompletionGateway
from switchboard.pipeline import PipelineError, SequentialPipeline
from switchboard.tool import ToolRegistry, handoff_tool, tool
from switchboard.types import (
    CompletionResult,
    Message,
    Role,
    TextCompletion,
    ToolCallRequest,
    ToolCallsCompletion,
)


class StageGateway(CompletionGateway):
    """Prefixes the last user message with the stage's instructions."""

    def __init__(self) -> None:
        self.inputs: list[tuple[str, str]] = []

    async def complete(
        self, history: list[Message], instructions: str, tools: list[dict[str, Any]]
    ) -> CompletionResult:
        last = history[-1]
        if last.role is Role.USER:
            self.inputs.append((instructions, last.content))
        if tools and last.role is Role.USER:
            return ToolCallsCompletion(calls=(ToolCallRequest(name="word_count", args={"text": last.content}),))
        if last.role is Role.TOOL:
            return TextCompletion(content=f"{history[0].content} ({last.content} words)")
        return TextCompletion(content=f"{instructions}({last.content})")


@tool
def word_count(text: str) -> int:
    """Count the words in a text."""
    return len(text.split())


def _agent(name: str, **kwargs: Any) -> AgentDefinition:
    return AgentDefinition(name=name, instructions=name, **kwargs)


class TestSequentialPipeline:
    async def test_chains_replies(self) -> None:
        gateway = StageGateway()
        pipeline = SequentialPipeline(
            stages=[_agent("research"), _agent("write"), _agent("edit")],
            registry=ToolRegistry(),
            gateway=gateway,
        )

        result = await pipeline.run("agents")

        assert result.output == "edit(write(research(agents)))"
        assert [s.agent for s in result.stages] == ["research", "write", "edit"]
        assert result.stages[1].input == "research(agents)"
        assert gateway.inputs == [
            ("research", "agents"),
            ("write", "research(agents)"),
            ("edit", "write(research(agents))"),
        ]

    async def test_stage_can_use_tools(self) -> None:
        pipeline = SequentialPipeline(
            stages=[_agent("count", tools=frozenset({"word_count"}))],
            registry=ToolRegistry([word_count]),
            gateway=StageGateway(),
        )

        result = await pipeline.run("three little words")

        assert result.output == "three little words (3 words)"
        assert [m.role for m in result.stages[0].messages] == [Role.TOOL, Role.AGENT]

    def test_empty(self) -> None:
        with pytest.raises(PipelineError, match="at least one stage"):
            SequentialPipeline(stages=[], registry=ToolRegistry(), gateway=StageGateway())

    def test_duplicate_stage(self) -> None:
        with pytest.raises(PipelineError, match="Duplicate stage name 'a'"):
            SequentialPipeline(
                stages=[_agent("a"), _agent("a")], registry=ToolRegistry(), gateway=StageGateway()
            )

    def test_handoff_tools_rejected(self) -> None:
        registry = ToolRegistry([handoff_tool("a")])
        with pytest.raises(PipelineError, match="Invalid stage 'a'|may not hold handoff"):
            SequentialPipeline(
                stages=[_agent("a", tools=frozenset({"transfer_to_a"}))],
                registry=registry,
                gateway=StageGateway(),
            )

    def test_unknown_tool_rejected(self) -> None:
        with pytest.raises(PipelineError, match="Invalid stage 'a'"):
            SequentialPipeline(
                stages=[_agent("a", tools=frozenset({"ghost"}))],
                registry=ToolRegistry(),
                gateway=StageGateway(),
            )

    def test_repr(self) -> None:
        pipeline = SequentialPipeline(
            stages=[_agent("a"), _agent("b")], registry=ToolRegistry(), gateway=StageGateway()
        )
        assert repr(pipeline) == "SequentialPipeline(stages=['a', 'b'])"
