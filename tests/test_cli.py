"""Tests for switchboard.cli — config discovery and commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from switchboard import cli
from switchboard.agent import AgentDefinition
from switchboard.cli import CLIError, app, find_config, format_history, resolve_config
from switchboard.models.provider import CompletionGateway
from switchboard.models.types import CompletionError
from switchboard.router import HandoffRouter
from switchboard.tool import ToolRegistry, handoff_tool
from switchboard.types import (
    CompletionResult,
    Message,
    TextCompletion,
    ToolCallRequest,
    ToolCallsCompletion,
)

runner = CliRunner()

YAML_TEXT = """
tools:
  transfer_to_tech:
    handoff: tech
agents:
  general:
    default: true
    instructions: You triage.
    tools: [transfer_to_tech]
  tech:
    instructions: You fix things.
"""


class SupportGateway(CompletionGateway):
    async def complete(
        self, history: list[Message], instructions: str, tools: list[dict[str, Any]]
    ) -> CompletionResult:
        if instructions == "You triage.":
            return ToolCallsCompletion(calls=(ToolCallRequest(name="transfer_to_tech"),))
        return TextCompletion(content=f"Fixed: {history[0].content}")


class FailingGateway(CompletionGateway):
    async def complete(
        self, history: list[Message], instructions: str, tools: list[dict[str, Any]]
    ) -> CompletionResult:
        raise CompletionError("service unavailable")


def _router(gateway: CompletionGateway) -> HandoffRouter:
    return HandoffRouter(
        agents=[
            AgentDefinition(
                name="general",
                instructions="You triage.",
                tools=frozenset({"transfer_to_tech"}),
                default=True,
            ),
            AgentDefinition(name="tech", instructions="You fix things."),
        ],
        registry=ToolRegistry([handoff_tool("tech")]),
        gateway=gateway,
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "support.yaml"
    path.write_text(YAML_TEXT)
    return path


@pytest.fixture
def patched_loader(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_router", lambda path: _router(SupportGateway()))


# ---------------------------------------------------------------------------
# Config discovery
# ---------------------------------------------------------------------------


class TestFindConfig:
    def test_finds_dot_file(self, tmp_path: Path) -> None:
        (tmp_path / ".switchboard.yaml").write_text("agents: {}")
        result = find_config(tmp_path)
        assert result is not None
        assert result.name == ".switchboard.yaml"

    def test_finds_config_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "switchboard.config.yaml").write_text("agents: {}")
        result = find_config(tmp_path)
        assert result is not None
        assert result.name == "switchboard.config.yaml"

    def test_prefers_dot_file(self, tmp_path: Path) -> None:
        (tmp_path / ".switchboard.yaml").write_text("a: 1")
        (tmp_path / "switchboard.config.yaml").write_text("b: 2")
        result = find_config(tmp_path)
        assert result is not None
        assert result.name == ".switchboard.yaml"

    def test_none_found(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None


class TestResolveConfig:
    def test_explicit_path(self, config_file: Path) -> None:
        assert resolve_config(str(config_file)) == config_file

    def test_explicit_missing(self, tmp_path: Path) -> None:
        with pytest.raises(CLIError, match="not found"):
            resolve_config(str(tmp_path / "nope.yaml"))

    def test_auto_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".switchboard.yaml").write_text("agents: {}")
        monkeypatch.chdir(tmp_path)
        assert resolve_config(None).name == ".switchboard.yaml"

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(CLIError, match="No config file found"):
            resolve_config(None)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestDescribe:
    def test_lists_agents(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        result = runner.invoke(app, ["describe", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "general" in result.output
        assert "tech" in result.output
        assert "default agent: general" in result.output

    def test_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["describe", "-c", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tools: {}\n")
        result = runner.invoke(app, ["describe", "-c", str(path)])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestSend:
    def test_prints_reply(self, config_file: Path, patched_loader: None) -> None:
        result = runner.invoke(app, ["send", "-c", str(config_file), "app broken"])
        assert result.exit_code == 0, result.output
        assert "handoff" in result.output
        assert "tech: Fixed: app broken" in result.output

    def test_gateway_failure_exits(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(cli, "load_router", lambda path: _router(FailingGateway()))
        result = runner.invoke(app, ["send", "-c", str(config_file), "hello"])
        assert result.exit_code == 1
        assert "service unavailable" in result.output

    def test_verbose_shows_path(
        self, config_file: Path, patched_loader: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
        result = runner.invoke(app, ["--verbose", "send", "-c", str(config_file), "x"])
        assert result.exit_code == 0, result.output
        assert "2 iterations" in result.output


class TestChat:
    def test_conversation(self, config_file: Path, patched_loader: None) -> None:
        result = runner.invoke(
            app,
            ["chat", "-c", str(config_file), "-t", "customer_123"],
            input="app broken\n/agent\n/history\n/exit\n",
        )
        assert result.exit_code == 0, result.output
        assert "thread customer_123" in result.output
        assert "Fixed: app broken" in result.output
        assert "active agent: tech" in result.output
        assert "History (3 messages)" in result.output

    def test_help_and_eof(self, config_file: Path, patched_loader: None) -> None:
        result = runner.invoke(app, ["chat", "-c", str(config_file)], input="/help\n")
        assert result.exit_code == 0, result.output
        assert "/history" in result.output


class TestFormatHistory:
    def test_row_per_message(self) -> None:
        call = ToolCallRequest(name="transfer_to_tech")
        table = format_history(
            (Message.user("hi"), Message.handoff("general", call), Message.agent_reply("tech", "ok"))
        )
        assert table.row_count == 3
        assert table.title == "History (3 messages)"
