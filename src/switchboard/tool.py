"""Tool system: ABC, decorator, schema generation, handoff tools and the registry."""

from __future__ import annotations

import asyncio
import functools
import inspect
import json
import re
import types
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, Union, get_args, get_origin, get_type_hints, overload

from switchboard.observability.logging import get_logger
from switchboard.registry import Registry, RegistryError
from switchboard.types import SwitchboardError, ToolResult

_log = get_logger(__name__)


class ToolError(SwitchboardError):
    """Raised when a tool execution fails."""


class DuplicateToolError(RegistryError):
    """Raised when a tool name is registered twice."""


class UnknownToolError(RegistryError):
    """Raised when resolving a tool name that was never registered."""


# ---------------------------------------------------------------------------
# Function-calling schema from signatures and docstrings
# ---------------------------------------------------------------------------

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}
_SECTION_RE = re.compile(r"^([A-Z][A-Za-z ]*):\s*$")
_ARG_RE = re.compile(r"^(\w+)\s*(?:\([^)]*\))?\s*:\s*(.*)$")


def _json_type(annotation: Any) -> dict[str, Any]:
    """Map a type annotation to a JSON Schema fragment; anything unknown is a string."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        return _json_type(members[0]) if members else {"type": "string"}
    if origin is list:
        args = get_args(annotation)
        return {"type": "array", "items": _json_type(args[0]) if args else {"type": "string"}}
    if origin is dict:
        return {"type": "object"}
    try:
        return {"type": _JSON_TYPES.get(annotation, "string")}
    except TypeError:
        return {"type": "string"}


def _docstring_parts(fn: Callable[..., Any]) -> tuple[str, dict[str, str]]:
    """Split a Google-style docstring into its summary line and ``Args:`` entries."""
    lines = (inspect.getdoc(fn) or "").splitlines()
    summary = next((line.strip() for line in lines if line.strip()), "")

    args: dict[str, list[str]] = {}
    section: str | None = None
    current: str | None = None
    for line in lines:
        stripped = line.strip()
        header = _SECTION_RE.match(line)
        if header:
            section, current = header.group(1), None
            continue
        if section != "Args" or not stripped:
            continue
        # Entries sit one level in; deeper lines continue the previous entry
        match = _ARG_RE.match(stripped)
        if match and not line.startswith(" " * 8):
            current = match.group(1)
            args[current] = [match.group(2)]
        elif current is not None:
            args[current].append(stripped)
    return summary, {name: " ".join(p for p in parts if p) for name, parts in args.items()}


def _parameters_schema(fn: Callable[..., Any]) -> dict[str, Any]:
    """Build the JSON Schema ``parameters`` object for *fn*'s keyword arguments."""
    try:
        hints = get_type_hints(fn)
    except (AttributeError, NameError, TypeError):
        hints = {}
    _, arg_docs = _docstring_parts(fn)

    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, param in inspect.signature(fn).parameters.items():
        if name in ("self", "cls") or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop = _json_type(hints.get(name, Any))
        if arg_docs.get(name):
            prop["description"] = arg_docs[name]
        properties[name] = prop
        if param.default is param.empty:
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


# ---------------------------------------------------------------------------
# Tool ABC, FunctionTool and HandoffTool
# ---------------------------------------------------------------------------


class Tool(ABC):
    """Something an agent can call by name.

    ``name``, ``description`` and ``parameters`` (a JSON Schema object) are
    what the model sees; ``execute()`` receives the call's arguments as
    keywords.
    """

    name: str
    description: str
    parameters: dict[str, Any]

    @abstractmethod
    async def execute(self, **kwargs: Any) -> Any: ...

    def to_schema(self) -> dict[str, Any]:
        """Describe the tool in OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionTool(Tool):
    """Tool backed by a plain function, sync or async.

    Name, description and parameter schema come from the function itself
    unless overridden. Sync functions run in a worker thread.

    Args:
        fn: Handler to call.
        name: Tool name; defaults to ``fn.__name__``.
        description: Defaults to the docstring's summary line.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> None:
        summary, _ = _docstring_parts(fn)
        self.fn = fn
        self.name = name or fn.__name__
        self.description = description or summary
        self.parameters = _parameters_schema(fn)

    async def execute(self, **kwargs: Any) -> Any:
        """Call the handler.

        Raises:
            ToolError: Wrapping whatever the handler raised.
        """
        try:
            if inspect.iscoroutinefunction(self.fn):
                return await self.fn(**kwargs)
            return await asyncio.to_thread(self.fn, **kwargs)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolError(f"Tool '{self.name}' failed: {exc}") from exc


class HandoffTool(Tool):
    """A tool whose invocation transfers control to another agent.

    The router intercepts handoff calls before dispatch, so ``execute()``
    is never reached in normal operation.

    Args:
        name: Tool name exposed to the model.
        target: Name of the agent that takes over.
        description: Human-readable description for the model.
    """

    def __init__(self, name: str, target: str, description: str = "") -> None:
        if not target:
            raise ToolError(f"Handoff tool '{name}' needs a target agent")
        self.name = name
        self.target = target
        self.description = description or f"Transfer the conversation to '{target}'."
        self.parameters = {"type": "object", "properties": {}}

    async def execute(self, **kwargs: Any) -> Any:
        raise ToolError(f"Handoff tool '{self.name}' cannot be executed directly")

    def __repr__(self) -> str:
        return f"HandoffTool(name={self.name!r}, target={self.target!r})"


def handoff_tool(
    target: str, *, name: str | None = None, description: str | None = None
) -> HandoffTool:
    """Build a ``HandoffTool`` for *target*, named ``transfer_to_<target>`` by default."""
    return HandoffTool(name or f"transfer_to_{target}", target, description or "")


# ---------------------------------------------------------------------------
# @tool decorator
# ---------------------------------------------------------------------------


@overload
def tool(fn: Callable[..., Any], /) -> FunctionTool: ...


@overload
def tool(
    *, name: str | None = None, description: str | None = None
) -> Callable[[Callable[..., Any]], FunctionTool]: ...


def tool(
    fn: Callable[..., Any] | None = None,
    /,
    *,
    name: str | None = None,
    description: str | None = None,
) -> FunctionTool | Callable[[Callable[..., Any]], FunctionTool]:
    """Wrap a function as a ``FunctionTool``: ``@tool``, ``@tool()`` or ``@tool(name=...)``."""
    wrap = functools.partial(FunctionTool, name=name, description=description)
    return wrap(fn) if fn is not None else wrap


# ---------------------------------------------------------------------------
# ToolRegistry
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


class ToolRegistry(Registry[Tool]):
    """Global tool catalogue shared by every agent of a router.

    Args:
        tools: Tools to register up front, in order.
    """

    duplicate_error = DuplicateToolError
    missing_error = UnknownToolError

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        super().__init__("tool")
        for t in tools:
            self.register(t)

    def register(self, tool: Tool) -> Tool:  # type: ignore[override]
        """Register *tool* under its own name.

        Raises:
            DuplicateToolError: If a tool with that name exists.
        """
        return self._set(tool.name, tool)

    def resolve(self, name: str) -> Tool:
        """Return the tool called *name*.

        Raises:
            UnknownToolError: If no such tool is registered.
        """
        return self.get(name)

    def is_handoff(self, name: str) -> bool:
        return isinstance(self._items.get(name), HandoffTool)

    def specs(self, names: Iterable[str]) -> list[dict[str, Any]]:
        """Return function-calling schemas for *names* in the given order."""
        return [self.resolve(n).to_schema() for n in names]

    async def invoke(
        self, name: str, args: dict[str, Any], *, correlation_id: str
    ) -> ToolResult:
        """Run a registered tool and capture its outcome as a ``ToolResult``.

        Handler failures never propagate; they come back as a result whose
        ``error`` is set and whose content describes the failure.

        Raises:
            UnknownToolError: If *name* is not registered.
            ToolError: If *name* is a handoff tool.
        """
        t = self.resolve(name)
        if isinstance(t, HandoffTool):
            raise ToolError(f"Handoff tool '{name}' is routed, not invoked")
        try:
            value = await t.execute(**args)
        except Exception as exc:
            _log.warning("tool '%s' failed (call %s): %s", name, correlation_id, exc)
            error = str(exc)
            return ToolResult(
                correlation_id=correlation_id,
                tool_name=name,
                content=f"Error: {error}",
                error=error,
            )
        _log.debug("tool '%s' succeeded (call %s)", name, correlation_id)
        return ToolResult(correlation_id=correlation_id, tool_name=name, content=_stringify(value))
