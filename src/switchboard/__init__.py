"""Switchboard: multi-agent handoff router with per-thread conversation memory."""

__version__ = "0.1.0"

from switchboard.agent import AgentDefinition, RouterConfigError, UnknownToolReferenceError
from switchboard.config import ModelConfig, RouterConfig, SessionConfig
from switchboard.hooks import HookManager, HookPoint
from switchboard.memory import ThreadMemory
from switchboard.models import CompletionError, CompletionGateway, CompletionTimeoutError
from switchboard.observability.logging import configure_logging as configure
from switchboard.observability.logging import get_logger
from switchboard.pipeline import SequentialPipeline
from switchboard.router import HandoffRouter, RoutingLoopExceededError
from switchboard.session import ConversationSession, ThreadBusyError
from switchboard.tool import (
    DuplicateToolError,
    FunctionTool,
    HandoffTool,
    Tool,
    ToolRegistry,
    UnknownToolError,
    handoff_tool,
    tool,
)
from switchboard.types import Message, Role, SwitchboardError, ToolCallRequest, ToolResult

__all__ = [
    "AgentDefinition",
    "CompletionError",
    "CompletionGateway",
    "CompletionTimeoutError",
    "ConversationSession",
    "DuplicateToolError",
    "FunctionTool",
    "HandoffRouter",
    "HandoffTool",
    "HookManager",
    "HookPoint",
    "Message",
    "ModelConfig",
    "Role",
    "RouterConfig",
    "RouterConfigError",
    "RoutingLoopExceededError",
    "SequentialPipeline",
    "SessionConfig",
    "SwitchboardError",
    "ThreadBusyError",
    "ThreadMemory",
    "Tool",
    "ToolCallRequest",
    "ToolRegistry",
    "ToolResult",
    "UnknownToolError",
    "UnknownToolReferenceError",
    "configure",
    "get_logger",
    "handoff_tool",
    "tool",
]
