"""Sequential pipeline: agents run one after another, output feeding input.

Each stage runs as a single-agent turn (so it can still use its own
tools) and its reply becomes the next stage's user message, e.g. a
researcher gathering facts, a writer drafting from them and an editor
polishing the draft.

Usage::

    pipeline = SequentialPipeline(
        stages=[researcher, writer, editor], registry=tools, gateway=gateway
    )
    result = await pipeline.run("Write about multi-agent systems")
    print(result.output)
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel

from switchboard.agent import AgentDefinition, RouterConfigError
from switchboard.config import RouterConfig
from switchboard.hooks import HookManager
from switchboard.models.provider import CompletionGateway
from switchboard.observability.logging import get_logger
from switchboard.router import HandoffRouter
from switchboard.tool import ToolRegistry
from switchboard.types import Message, SwitchboardError

_log = get_logger(__name__)


class PipelineError(SwitchboardError):
    """Raised for invalid pipeline definitions."""


class StageResult(BaseModel):
    """Output of one pipeline stage."""

    model_config = {"frozen": True}

    agent: str
    input: str
    reply: str
    messages: tuple[Message, ...] = ()


class PipelineResult(BaseModel):
    """Output of a full pipeline run; ``output`` is the last stage's reply."""

    model_config = {"frozen": True}

    output: str
    stages: tuple[StageResult, ...] = ()


class SequentialPipeline:
    """Runs agents in a fixed order, chaining reply to input.

    Args:
        stages: Agents in execution order; names must be unique and none
            may hold handoff tools.
        registry: Tool registry shared by all stages.
        gateway: Completion gateway for every stage.
        config: Per-stage iteration bound and timeout.
        hooks: Lifecycle hooks shared by every stage's router.

    Raises:
        PipelineError: If the stage list is empty or invalid.
    """

    def __init__(
        self,
        *,
        stages: Sequence[AgentDefinition],
        registry: ToolRegistry,
        gateway: CompletionGateway,
        config: RouterConfig | None = None,
        hooks: HookManager | None = None,
    ) -> None:
        if not stages:
            raise PipelineError("Pipeline requires at least one stage")

        self._routers: list[HandoffRouter] = []
        seen: set[str] = set()
        for stage in stages:
            if stage.name in seen:
                raise PipelineError(f"Duplicate stage name '{stage.name}' in pipeline")
            seen.add(stage.name)
            single = stage if stage.default else stage.model_copy(update={"default": True})
            try:
                router = HandoffRouter(
                    agents=[single], registry=registry, gateway=gateway, config=config, hooks=hooks
                )
            except RouterConfigError as exc:
                raise PipelineError(f"Invalid stage '{stage.name}': {exc}") from exc
            if single.handoff_targets(registry):
                raise PipelineError(f"Stage '{stage.name}' may not hold handoff tools")
            self._routers.append(router)

        self.order = [s.name for s in stages]

    async def run(self, input: str) -> PipelineResult:
        """Run every stage in order starting from *input*."""
        current = input
        results: list[StageResult] = []
        for name, router in zip(self.order, self._routers, strict=True):
            _log.info("pipeline stage '%s' starting", name)
            outcome = await router.run([Message.user(current)])
            results.append(
                StageResult(agent=name, input=current, reply=outcome.reply, messages=outcome.messages)
            )
            current = outcome.reply
        return PipelineResult(output=current, stages=tuple(results))

    def __repr__(self) -> str:
        return f"SequentialPipeline(stages={self.order})"
