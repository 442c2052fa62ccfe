"""Lifecycle hooks fired by the router during a turn.

Hooks are async callables taking keyword arguments only; each point
documents what it passes::

    TURN_START       agent, history
    PRE_COMPLETION   agent, history
    POST_COMPLETION  agent, result
    PRE_TOOL_CALL    agent, call
    POST_TOOL_CALL   agent, call, result
    HANDOFF          source, target, call
    WARNING          warning
    TURN_END         outcome
    ERROR            error, agent
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Coroutine
from typing import Any

Hook = Callable[..., Coroutine[Any, Any, None]]


class HookPoint(enum.Enum):
    TURN_START = "turn_start"
    PRE_COMPLETION = "pre_completion"
    POST_COMPLETION = "post_completion"
    PRE_TOOL_CALL = "pre_tool_call"
    POST_TOOL_CALL = "post_tool_call"
    HANDOFF = "handoff"
    WARNING = "warning"
    TURN_END = "turn_end"
    ERROR = "error"


class HookManager:
    """Ordered hook lists per ``HookPoint``.

    A hook that raises aborts the turn it was fired from.
    """

    def __init__(self) -> None:
        self._hooks: dict[HookPoint, list[Hook]] = {point: [] for point in HookPoint}

    def add(self, point: HookPoint, hook: Hook) -> Hook:
        self._hooks[point].append(hook)
        return hook

    def on(self, point: HookPoint) -> Callable[[Hook], Hook]:
        """Decorator form of ``add``."""
        return lambda hook: self.add(point, hook)

    def remove(self, point: HookPoint, hook: Hook) -> None:
        """Drop the first registration of *hook* at *point*, if any."""
        hooks = self._hooks[point]
        if hook in hooks:
            hooks.remove(hook)

    async def run(self, point: HookPoint, **data: Any) -> None:
        for hook in list(self._hooks[point]):
            await hook(**data)

    def has_hooks(self, point: HookPoint) -> bool:
        return bool(self._hooks[point])

    def clear(self) -> None:
        for hooks in self._hooks.values():
            hooks.clear()
