"""Basic agent: one agent, two local tools.

A single-agent router is the smallest useful setup: the agent answers
directly or calls its tools until it can. The calculator evaluates
arithmetic through ``ast`` rather than ``eval``.

Usage:
    export OPENAI_API_KEY=sk-...
    python examples/basic_agent.py
"""

import ast
import asyncio
import operator
from datetime import datetime

from switchboard import (
    AgentDefinition,
    ConversationSession,
    HandoffRouter,
    ToolRegistry,
    tool,
)
from switchboard.models import get_gateway

_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def _evaluate(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, int | float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.operand))
    raise ValueError(f"unsupported expression element: {type(node).__name__}")


@tool
def calculator(expression: str) -> str:
    """Evaluate an arithmetic expression.

    Args:
        expression: Expression using + - * / ** and parentheses, e.g. "10 + 5 * (8 / 4)".
    """
    return f"Result: {_evaluate(ast.parse(expression, mode='eval'))}"


@tool
def current_time() -> str:
    """Return the current local time."""
    return f"Current time: {datetime.now().astimezone():%H:%M:%S %Z}"


assistant = AgentDefinition(
    name="assistant",
    instructions="You are a helpful assistant. Use your tools for time and arithmetic.",
    tools=frozenset({"calculator", "current_time"}),
    default=True,
)

router = HandoffRouter(
    agents=[assistant],
    registry=ToolRegistry([calculator, current_time]),
    gateway=get_gateway("openai:gpt-4o"),
)


async def main() -> None:
    session = ConversationSession(router)
    result = await session.send("demo", "What time is it? And what is 25 * 37?")
    print(result.reply)


if __name__ == "__main__":
    asyncio.run(main())
