"""HandoffRouter: the turn loop that moves control between agents.

One call to ``HandoffRouter.run()`` is one *turn*: the active agent is
asked for its next step, ordinary tool calls are dispatched and their
results appended, handoff calls move control to another agent, and the
loop repeats until some agent answers with plain text.

States::

    running ──text──────────────────────────▶ done
       │
       └─tool calls─▶ awaiting_tool_results ─▶ running (same agent)
                              │
                              └─handoff call─▶ handoff ─▶ running (target)

Usage::

    router = HandoffRouter(agents=[general, tech], registry=tools, gateway=gateway)
    outcome = await router.run([Message.user("app broken")])
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from switchboard.agent import AgentDefinition, RouterConfigError
from switchboard.config import RouterConfig
from switchboard.hooks import HookManager, HookPoint
from switchboard.models.provider import CompletionGateway
from switchboard.models.types import CompletionError, CompletionTimeoutError
from switchboard.observability.logging import LogContext, get_logger
from switchboard.tool import HandoffTool, ToolRegistry
from switchboard.types import (
    CompletionResult,
    Message,
    RouteOutcome,
    RouterState,
    RoutingWarning,
    SwitchboardError,
    TextCompletion,
    ToolCallRequest,
    ToolResult,
)

_log = get_logger(__name__)

_completion_result: TypeAdapter[CompletionResult] = TypeAdapter(CompletionResult)


class DefaultAgentError(RouterConfigError):
    """Raised when a router does not have exactly one default agent."""


class UnknownHandoffTargetError(RouterConfigError):
    """Raised when a handoff tool targets an agent the router does not know."""


class UnknownAgentError(RouterConfigError):
    """Raised when a turn is started for an agent the router does not know."""


class RoutingLoopExceededError(SwitchboardError):
    """Raised when a turn needs more gateway calls than the router allows.

    Args:
        max_iterations: The configured bound.
        path: Agents that held control during the aborted turn.
    """

    def __init__(self, max_iterations: int, path: Sequence[str]) -> None:
        self.max_iterations = max_iterations
        self.path = tuple(path)
        super().__init__(
            f"Turn exceeded {max_iterations} iterations (path: {' -> '.join(self.path)})"
        )


class HandoffRouter:
    """Routes a turn between agents until one of them replies with text.

    Agents, tools and gateway are fixed at construction; all per-thread
    state is passed into ``run()`` and handed back in the ``RouteOutcome``.

    Args:
        agents: Agent definitions; exactly one must be marked default.
        registry: Tool registry shared by every agent.
        gateway: Completion gateway used for every agent.
        config: Iteration bound and per-call timeout.
        hooks: Lifecycle hooks fired during each turn.

    Raises:
        RouterConfigError: If agents, tools or handoff targets are inconsistent.
    """

    def __init__(
        self,
        *,
        agents: Sequence[AgentDefinition],
        registry: ToolRegistry,
        gateway: CompletionGateway,
        config: RouterConfig | None = None,
        hooks: HookManager | None = None,
    ) -> None:
        if not agents:
            raise RouterConfigError("HandoffRouter requires at least one agent")

        self.agents: dict[str, AgentDefinition] = {}
        for agent in agents:
            if agent.name in self.agents:
                _log.error("Duplicate agent name '%s' in router", agent.name)
                raise RouterConfigError(f"Duplicate agent name '{agent.name}' in router")
            self.agents[agent.name] = agent

        defaults = [a.name for a in agents if a.default]
        if len(defaults) != 1:
            raise DefaultAgentError(
                f"Exactly one default agent required, found {len(defaults)}: {defaults}"
            )

        for agent in agents:
            agent.validate_tools(registry)
            for target in agent.handoff_targets(registry):
                if target not in self.agents:
                    raise UnknownHandoffTargetError(
                        f"Agent '{agent.name}' can hand off to unknown agent '{target}'"
                    )

        self.registry = registry
        self.gateway = gateway
        self.config = config if config is not None else RouterConfig()
        self.hooks = hooks if hooks is not None else HookManager()
        self._default = defaults[0]

    @property
    def default_agent(self) -> str:
        return self._default

    async def run(
        self,
        history: Sequence[Message],
        active_agent: str | None = None,
    ) -> RouteOutcome:
        """Run one turn over *history* starting with *active_agent*.

        Args:
            history: Thread history including the new user message.
            active_agent: Agent holding control; defaults to the default agent.

        Returns:
            The final reply, the resulting active agent and every message
            the turn produced. *history* itself is never modified.

        Raises:
            RoutingLoopExceededError: If the iteration bound is hit.
            CompletionError: If the gateway fails or times out.
            UnknownAgentError: If *active_agent* is not a router agent.
        """
        active = active_agent or self._default
        if active not in self.agents:
            raise UnknownAgentError(f"Unknown active agent '{active}'")

        produced: list[Message] = []
        warnings: list[RoutingWarning] = []
        path = [active]
        handed_off = False
        iterations = 0
        state = RouterState.RUNNING

        await self.hooks.run(HookPoint.TURN_START, agent=active, history=list(history))
        try:
            while True:
                if iterations >= self.config.max_iterations:
                    _log.error(
                        "routing loop exceeded %d iterations: %s",
                        self.config.max_iterations,
                        " -> ".join(path),
                    )
                    raise RoutingLoopExceededError(self.config.max_iterations, path)
                iterations += 1
                agent = self.agents[active]
                if handed_off:
                    path.append(active)
                    handed_off = False
                state = RouterState.RUNNING

                with LogContext(agent=active):
                    _log.debug("iteration %d: %s", iterations, state.value)
                    result = await self._complete(agent, [*history, *produced])

                    if isinstance(result, TextCompletion):
                        produced.append(Message.agent_reply(active, result.content))
                        state = RouterState.DONE
                        _log.debug("turn done after %d iterations", iterations)
                        outcome = RouteOutcome(
                            reply=result.content,
                            active_agent=active,
                            messages=tuple(produced),
                            warnings=tuple(warnings),
                            iterations=iterations,
                            path=tuple(path),
                            state=state,
                        )
                        await self.hooks.run(HookPoint.TURN_END, outcome=outcome)
                        return outcome

                    state = RouterState.AWAITING_TOOL_RESULTS
                    handoffs, ordinary = self._partition(agent, result.calls)

                    for call in ordinary:
                        produced.append(await self._dispatch(agent, call))

                    if not handoffs:
                        continue

                    chosen, *discarded = handoffs
                    for call in discarded:
                        warning = RoutingWarning(
                            agent=active,
                            tool_name=call.name,
                            correlation_id=call.correlation_id,
                            message=(
                                f"Discarded extra handoff '{call.name}'; "
                                f"'{chosen.name}' was requested first"
                            ),
                        )
                        warnings.append(warning)
                        _log.warning(warning.message)
                        await self.hooks.run(HookPoint.WARNING, warning=warning)

                    state = RouterState.HANDOFF
                    target = self._target_of(chosen)
                    produced.append(Message.handoff(active, chosen))
                    _log.info("handoff %s -> %s via '%s'", active, target, chosen.name)
                    await self.hooks.run(
                        HookPoint.HANDOFF, source=active, target=target, call=chosen
                    )
                    active = target
                    handed_off = True
        except Exception as exc:
            _log.debug("turn aborted in state %s: %s", state.value, exc)
            try:
                await self.hooks.run(HookPoint.ERROR, error=exc, agent=active)
            except Exception:
                _log.exception("error hook failed while handling %s", type(exc).__name__)
            raise

    def _partition(
        self, agent: AgentDefinition, calls: Sequence[ToolCallRequest]
    ) -> tuple[list[ToolCallRequest], list[ToolCallRequest]]:
        """Split *calls* into (handoffs, ordinary), preserving response order."""
        handoffs: list[ToolCallRequest] = []
        ordinary: list[ToolCallRequest] = []
        for call in calls:
            if call.name in agent.tools and self.registry.is_handoff(call.name):
                handoffs.append(call)
            else:
                ordinary.append(call)
        return handoffs, ordinary

    def _target_of(self, call: ToolCallRequest) -> str:
        t = self.registry.resolve(call.name)
        assert isinstance(t, HandoffTool)
        return t.target

    async def _complete(
        self, agent: AgentDefinition, view: list[Message]
    ) -> CompletionResult:
        """Ask the gateway for *agent*'s next step, normalizing failures."""
        await self.hooks.run(HookPoint.PRE_COMPLETION, agent=agent.name, history=view)
        timeout = self.config.completion_timeout
        try:
            if timeout is None:
                result = await agent.take_turn(self.gateway, view, self.registry)
            else:
                result = await asyncio.wait_for(
                    agent.take_turn(self.gateway, view, self.registry), timeout
                )
        except CompletionError:
            raise
        except TimeoutError as exc:
            raise CompletionTimeoutError(
                f"Gateway did not answer within {timeout}s for agent '{agent.name}'"
            ) from exc
        except Exception as exc:
            raise CompletionError(f"Gateway failed for agent '{agent.name}': {exc}") from exc
        try:
            result = _completion_result.validate_python(result)
        except ValidationError as exc:
            raise CompletionError(
                f"Gateway returned an invalid result for agent '{agent.name}': {exc}"
            ) from exc
        await self.hooks.run(HookPoint.POST_COMPLETION, agent=agent.name, result=result)
        return result

    async def _dispatch(self, agent: AgentDefinition, call: ToolCallRequest) -> Message:
        """Execute an ordinary tool call and wrap its result as a message."""
        if call.name not in agent.tools or call.name not in self.registry:
            error = f"tool '{call.name}' is not available to agent '{agent.name}'"
            _log.warning(error)
            result = ToolResult(
                correlation_id=call.correlation_id,
                tool_name=call.name,
                content=f"Error: {error}",
                error=error,
            )
        else:
            await self.hooks.run(HookPoint.PRE_TOOL_CALL, agent=agent.name, call=call)
            result = await self.registry.invoke(
                call.name, call.args, correlation_id=call.correlation_id
            )
            await self.hooks.run(
                HookPoint.POST_TOOL_CALL, agent=agent.name, call=call, result=result
            )
        return result.to_message(agent.name, call)

    def describe(self) -> dict[str, Any]:
        """Return a summary of agents, tools and handoff edges."""
        return {
            "default_agent": self._default,
            "max_iterations": self.config.max_iterations,
            "agents": {name: agent.describe() for name, agent in self.agents.items()},
            "handoffs": {
                name: agent.handoff_targets(self.registry) for name, agent in self.agents.items()
            },
            "tools": self.registry.names(),
        }

    def __repr__(self) -> str:
        return f"HandoffRouter(agents={list(self.agents)}, default={self._default!r})"
