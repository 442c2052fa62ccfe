"""Agent definitions: named personas with instructions and a tool subset."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from switchboard.tool import HandoffTool, ToolRegistry
from switchboard.types import CompletionResult, Message, SwitchboardError

if TYPE_CHECKING:
    from switchboard.models.provider import CompletionGateway


class RouterConfigError(SwitchboardError):
    """Raised when a router's agents or tools are inconsistent."""


class UnknownToolReferenceError(RouterConfigError):
    """Raised when an agent references a tool missing from the registry."""


class AgentDefinition(BaseModel):
    """An immutable agent persona.

    An agent's turn is a pure function of its instructions, its tool subset
    and the visible history; all conversation state lives in thread memory.

    Args:
        name: Agent id, unique within a router.
        instructions: System prompt for the agent.
        tools: Names of the registry tools the agent may invoke.
        default: Whether this is the router's entry agent.
        description: Short human-readable summary.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    instructions: str
    tools: frozenset[str] = frozenset()
    default: bool = False
    description: str = ""

    @field_validator("instructions")
    @classmethod
    def _instructions_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("instructions must be a non-empty string")
        return value

    def validate_tools(self, registry: ToolRegistry) -> None:
        """Check every referenced tool exists in *registry*.

        Raises:
            UnknownToolReferenceError: Naming the agent and missing tools.
        """
        missing = sorted(name for name in self.tools if name not in registry)
        if missing:
            raise UnknownToolReferenceError(
                f"Agent '{self.name}' references unknown tools: {', '.join(missing)}"
            )

    def tool_specs(self, registry: ToolRegistry) -> list[dict[str, Any]]:
        """Return function-calling schemas for this agent's tools, sorted by name."""
        return registry.specs(sorted(self.tools))

    def handoff_targets(self, registry: ToolRegistry) -> list[str]:
        """Return the agents this one can hand off to."""
        targets: list[str] = []
        for name in sorted(self.tools):
            t = registry.resolve(name)
            if isinstance(t, HandoffTool):
                targets.append(t.target)
        return targets

    async def take_turn(
        self,
        gateway: CompletionGateway,
        history: Sequence[Message],
        registry: ToolRegistry,
    ) -> CompletionResult:
        """Ask *gateway* for this agent's next step over *history*."""
        return await gateway.complete(list(history), self.instructions, self.tool_specs(registry))

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "default": self.default,
            "tools": sorted(self.tools),
            "instructions": self.instructions,
        }
