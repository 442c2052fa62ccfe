"""YAML router loader with variable substitution.

Load a complete router definition (tools, agents, limits and model) from a
YAML file, supporting ``${ENV_VAR}`` (environment) and ``${vars.KEY}``
(internal) variable substitution.

Document layout::

    vars:
      model: openai:gpt-4o-mini
    model: ${vars.model}
    router:
      max_iterations: 10
    tools:
      solve_tech_issue:
        function: support_tools.py:solve_tech_issue   # or package.module:attr
      transfer_to_tech:
        handoff: tech_support
        description: Hand over to technical support.
    agents:
      general_support:
        default: true
        instructions: You triage customer requests.
        tools: [transfer_to_tech]

Usage::

    router = load_router("support.yaml")
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import os
import re
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from switchboard.agent import AgentDefinition, RouterConfigError
from switchboard.config import RouterConfig
from switchboard.models import CompletionError, CompletionGateway, get_gateway
from switchboard.router import HandoffRouter
from switchboard.tool import FunctionTool, HandoffTool, Tool, ToolRegistry
from switchboard.types import SwitchboardError

_VAR_RE = re.compile(r"\$\{([^}]+)\}")
_DEFAULT_MODEL = "openai:gpt-4o-mini"


class LoaderError(SwitchboardError):
    """Raised for YAML loading or validation errors."""


# ---------------------------------------------------------------------------
# Variable substitution
# ---------------------------------------------------------------------------


def _resolve_ref(ref: str, env: dict[str, Any], vars_: dict[str, Any]) -> Any:
    """Value for one ``${ref}``; an unknown reference stays as written."""
    source, key = (vars_, ref[len("vars."):]) if ref.startswith("vars.") else (env, ref)
    value = source.get(key)
    return f"${{{ref}}}" if value is None else value


def _substitute(value: Any, env: dict[str, Any], vars_: dict[str, Any]) -> Any:
    """Replace ``${ENV_VAR}`` and ``${vars.KEY}`` throughout strings, lists and dicts.

    A string that is exactly one reference takes the referenced value as is,
    so ``${vars.limit}`` can yield an int.
    """
    if isinstance(value, dict):
        return {key: _substitute(item, env, vars_) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute(item, env, vars_) for item in value]
    if not isinstance(value, str):
        return value
    whole = _VAR_RE.fullmatch(value)
    if whole is not None:
        return _resolve_ref(whole.group(1), env, vars_)
    return _VAR_RE.sub(lambda m: str(_resolve_ref(m.group(1), env, vars_)), value)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read *path* and return its mapping with the ``vars`` block applied and removed.

    Raises:
        LoaderError: If the file is missing, unparsable or not a mapping.
    """
    source = Path(path)
    if not source.is_file():
        raise LoaderError(f"YAML file not found: {source}")
    try:
        document = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise LoaderError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(document, dict):
        raise LoaderError(f"Expected YAML dict at top level of {source}, got {type(document).__name__}")
    vars_ = document.pop("vars", None) or {}
    return _substitute(document, dict(os.environ), vars_)


# ---------------------------------------------------------------------------
# Import helpers
# ---------------------------------------------------------------------------


def _load_module_file(path: Path) -> Any:
    # One module per resolved file path
    digest = hashlib.sha1(str(path.resolve()).encode()).hexdigest()[:10]
    module_name = f"_switchboard_tools_{path.stem}_{digest}"
    if module_name in sys.modules:
        return sys.modules[module_name]
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise LoaderError(f"Cannot create module spec for {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        del sys.modules[module_name]
        raise LoaderError(f"Error executing {path}: {exc}") from exc
    return module


def import_object(ref: str, *, base_dir: Path | None = None) -> Any:
    """Import ``"module:attr"`` or ``"file.py:attr"`` (relative to *base_dir*).

    Raises:
        LoaderError: If the reference is malformed or cannot be imported.
    """
    module_ref, sep, attr = ref.partition(":")
    if not sep or not module_ref or not attr:
        raise LoaderError(f"Expected 'module:attr' reference, got {ref!r}")
    if module_ref.endswith(".py"):
        file_path = Path(module_ref)
        if not file_path.is_absolute() and base_dir is not None:
            file_path = base_dir / file_path
        if not file_path.is_file():
            raise LoaderError(f"Tool module not found: {file_path}")
        module = _load_module_file(file_path)
    else:
        try:
            module = importlib.import_module(module_ref)
        except ImportError as exc:
            raise LoaderError(f"Cannot import module '{module_ref}': {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError:
        raise LoaderError(f"Module '{module_ref}' has no attribute '{attr}'") from None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _build_tool(name: str, spec: dict[str, Any], base_dir: Path | None) -> Tool:
    """Build one tool from its YAML spec."""
    description = spec.get("description")
    if "handoff" in spec:
        return HandoffTool(name, str(spec["handoff"]), description or "")
    if "function" not in spec:
        raise LoaderError(f"Tool '{name}' needs either 'function' or 'handoff'")
    obj = import_object(str(spec["function"]), base_dir=base_dir)
    if isinstance(obj, FunctionTool):
        obj = obj.fn
    elif isinstance(obj, Tool):
        if obj.name != name:
            raise LoaderError(f"Tool '{name}' resolves to a tool named '{obj.name}'")
        return obj
    if not callable(obj):
        raise LoaderError(f"Tool '{name}' does not reference a callable")
    return FunctionTool(obj, name=name, description=description)


def build_registry(tools_spec: dict[str, Any], *, base_dir: Path | None = None) -> ToolRegistry:
    """Build a ``ToolRegistry`` from the ``tools`` section."""
    registry = ToolRegistry()
    for name, spec in tools_spec.items():
        if not isinstance(spec, dict):
            raise LoaderError(f"Tool '{name}' must be a mapping")
        registry.register(_build_tool(name, spec, base_dir))
    return registry


def build_agents(agents_spec: dict[str, Any]) -> list[AgentDefinition]:
    """Build ``AgentDefinition`` objects from the ``agents`` section."""
    agents: list[AgentDefinition] = []
    for name, spec in agents_spec.items():
        if not isinstance(spec, dict):
            raise LoaderError(f"Agent '{name}' must be a mapping")
        try:
            agents.append(
                AgentDefinition(
                    name=name,
                    instructions=spec.get("instructions", ""),
                    tools=frozenset(spec.get("tools", []) or []),
                    default=bool(spec.get("default", False)),
                    description=spec.get("description", ""),
                )
            )
        except ValidationError as exc:
            raise LoaderError(f"Invalid agent '{name}': {exc}") from exc
    return agents


def load_router(
    path: str | Path,
    *,
    gateway: CompletionGateway | None = None,
) -> HandoffRouter:
    """Load a ``HandoffRouter`` from a YAML file.

    Args:
        path: YAML document path.
        gateway: Gateway to use; when omitted one is built from the
            document's ``model`` key (default ``openai:gpt-4o-mini``).

    Raises:
        LoaderError: For malformed documents or inconsistent routers.
    """
    p = Path(path)
    data = load_yaml(p)
    agents_spec: dict[str, Any] = data.get("agents") or {}
    if not agents_spec:
        raise LoaderError("No 'agents' section in YAML")

    registry = build_registry(data.get("tools") or {}, base_dir=p.parent)
    agents = build_agents(agents_spec)
    if len(agents) == 1 and not agents[0].default:
        agents = [agents[0].model_copy(update={"default": True})]

    try:
        config = RouterConfig(**(data.get("router") or {}))
    except ValidationError as exc:
        raise LoaderError(f"Invalid router settings: {exc}") from exc

    if gateway is None:
        try:
            gateway = get_gateway(str(data.get("model") or _DEFAULT_MODEL))
        except CompletionError as exc:
            raise LoaderError(f"Invalid model: {exc}") from exc

    try:
        return HandoffRouter(agents=agents, registry=registry, gateway=gateway, config=config)
    except RouterConfigError as exc:
        raise LoaderError(str(exc)) from exc
