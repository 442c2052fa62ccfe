"""Switchboard CLI: talk to a handoff router from the command line.

Router definitions are YAML files (see :mod:`switchboard.loader`).

Config file search order (first found wins):
    1. ``--config`` / ``-c`` flag (explicit path)
    2. ``.switchboard.yaml`` in current directory
    3. ``switchboard.config.yaml`` in current directory

Usage::

    switchboard describe -c support.yaml
    switchboard send -c support.yaml -t customer_123 "My app is broken"
    switchboard --verbose chat -c support.yaml -t customer_123
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from switchboard.hooks import HookPoint
from switchboard.loader import LoaderError, load_router
from switchboard.observability.logging import configure_logging
from switchboard.router import HandoffRouter
from switchboard.session import ConversationSession
from switchboard.types import (
    Message,
    Role,
    RouteOutcome,
    RoutingWarning,
    SwitchboardError,
    ToolCallRequest,
    ToolResult,
)

_DEFAULT_CONFIG_NAMES = (".switchboard.yaml", "switchboard.config.yaml")


class CLIError(Exception):
    """Raised for CLI-level errors (config not found, load failures)."""


def find_config(directory: str | Path | None = None) -> Path | None:
    """Search *directory* (default: cwd) for a config file."""
    base = Path(directory) if directory else Path.cwd()
    for name in _DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def resolve_config(config_path: str | None) -> Path:
    """Resolve the router definition from an explicit path or auto-discovery.

    Raises:
        CLIError: If no config file is available.
    """
    if config_path:
        p = Path(config_path)
        if not p.is_file():
            raise CLIError(f"Config file not found: {p}")
        return p
    found = find_config()
    if found is None:
        raise CLIError("No config file found. Use --config or create .switchboard.yaml")
    return found


def _build_router(config_path: str | None) -> HandoffRouter:
    try:
        return load_router(resolve_config(config_path))
    except LoaderError as exc:
        raise CLIError(f"Invalid config: {exc}") from exc


# ---------------------------------------------------------------------------
# Transcript rendering
# ---------------------------------------------------------------------------


class Transcript:
    """Renders routing activity to a Rich console via router hooks.

    Args:
        console: Rich console to print to.
        verbose: Also show tool arguments and results.
    """

    def __init__(self, console: Console, *, verbose: bool = False) -> None:
        self._console = console
        self._verbose = verbose

    def attach(self, router: HandoffRouter) -> None:
        router.hooks.add(HookPoint.HANDOFF, self._on_handoff)
        router.hooks.add(HookPoint.PRE_TOOL_CALL, self._on_tool_call)
        router.hooks.add(HookPoint.POST_TOOL_CALL, self._on_tool_result)
        router.hooks.add(HookPoint.WARNING, self._on_warning)
        router.hooks.add(HookPoint.TURN_END, self._on_turn_end)

    async def _on_handoff(self, *, source: str, target: str, call: ToolCallRequest) -> None:
        self._console.print(f"[yellow]handoff[/yellow] {source} → [bold]{target}[/bold]")

    async def _on_tool_call(self, *, agent: str, call: ToolCallRequest) -> None:
        args = f" {json.dumps(call.args, ensure_ascii=False)}" if self._verbose else ""
        label = escape(f"[{agent}]")
        self._console.print(f"[cyan]tool[/cyan] {label} {call.name}{escape(args)}")

    async def _on_tool_result(
        self, *, agent: str, call: ToolCallRequest, result: ToolResult
    ) -> None:
        if not result.ok:
            error = escape(result.error or "")
            self._console.print(f"[red]tool error[/red] {call.name}: {error}")
        elif self._verbose:
            self._console.print(f"[dim]  → {escape(result.content)}[/dim]")

    async def _on_warning(self, *, warning: RoutingWarning) -> None:
        self._console.print(f"[yellow]warning[/yellow] {warning.message}")

    async def _on_turn_end(self, *, outcome: RouteOutcome) -> None:
        if self._verbose:
            self._console.print(
                f"[dim]path: {' → '.join(outcome.path)} ({outcome.iterations} iterations)[/dim]"
            )


def format_agents_table(router: HandoffRouter) -> Table:
    """Build a Rich table listing the router's agents."""
    table = Table(title="Agents")
    table.add_column("Name", style="magenta")
    table.add_column("Default", style="green")
    table.add_column("Tools", style="cyan")
    table.add_column("Hands off to", style="yellow")
    for name, agent in router.agents.items():
        table.add_row(
            name,
            "✓" if agent.default else "",
            ", ".join(sorted(agent.tools)),
            ", ".join(agent.handoff_targets(router.registry)),
        )
    return table


def format_history(messages: tuple[Message, ...]) -> Table:
    """Build a Rich table showing a thread's messages."""
    table = Table(title=f"History ({len(messages)} messages)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role", style="magenta")
    table.add_column("Agent", style="cyan")
    table.add_column("Content")
    for i, msg in enumerate(messages, 1):
        content = msg.content
        if msg.role is Role.AGENT and msg.tool_calls:
            content = f"[handoff: {msg.tool_calls[0].name}]"
        table.add_row(str(i), msg.role.value, msg.agent or "", escape(content))
    return table


# ---------------------------------------------------------------------------
# Typer CLI app
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="switchboard",
    help="Switchboard: multi-agent handoff router CLI.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    str | None,
    typer.Option("--config", "-c", help="Path to YAML router definition."),
]
ThreadOption = Annotated[
    str,
    typer.Option("--thread", "-t", help="Conversation thread id."),
]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output."),
    ] = False,
) -> None:
    """Switchboard CLI: route conversations between agents."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        configure_logging(level="INFO")


def _load(ctx: typer.Context, config: str | None) -> tuple[HandoffRouter, bool]:
    verbose: bool = ctx.obj.get("verbose", False)
    try:
        router = _build_router(config)
    except CLIError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    return router, verbose


@app.command()
def describe(ctx: typer.Context, config: ConfigOption = None) -> None:
    """Show the agents, tools and handoff edges of a router."""
    router, _ = _load(ctx, config)
    console.print(format_agents_table(router))
    console.print(f"[dim]default agent: {router.default_agent}[/dim]")


@app.command()
def send(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="User message to send.")],
    config: ConfigOption = None,
    thread: ThreadOption = "default",
) -> None:
    """Send one message and print the reply."""
    router, verbose = _load(ctx, config)
    Transcript(console, verbose=verbose).attach(router)
    session = ConversationSession(router)
    try:
        result = asyncio.run(session.send(thread, text))
    except SwitchboardError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"[bold magenta]{result.active_agent}[/bold magenta]: {escape(result.reply)}")


_CHAT_HELP = (
    "[bold]Commands:[/bold]\n"
    "  /help          Show this help message\n"
    "  /exit, /quit   Leave the chat\n"
    "  /history       Show the thread's messages\n"
    "  /agent         Show the active agent"
)


async def _chat_loop(session: ConversationSession, thread: str) -> None:
    console.print(f"[dim]thread {thread}: type /help for commands[/dim]")
    while True:
        try:
            line: str = await asyncio.to_thread(console.input, "[bold green]you>[/bold green] ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped in ("/exit", "/quit"):
            break
        if stripped == "/help":
            console.print(_CHAT_HELP)
            continue
        if stripped == "/history":
            console.print(format_history(await session.history(thread)))
            continue
        if stripped == "/agent":
            console.print(f"active agent: [bold]{await session.active_agent(thread)}[/bold]")
            continue
        try:
            result = await session.send(thread, stripped)
        except SwitchboardError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            continue
        console.print(f"[bold magenta]{result.active_agent}>[/bold magenta] {escape(result.reply)}")


@app.command()
def chat(
    ctx: typer.Context,
    config: ConfigOption = None,
    thread: ThreadOption = "default",
) -> None:
    """Start an interactive conversation on one thread."""
    router, verbose = _load(ctx, config)
    Transcript(console, verbose=verbose).attach(router)
    session = ConversationSession(router)
    asyncio.run(_chat_loop(session, thread))

