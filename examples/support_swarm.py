"""Customer-support swarm with per-thread memory.

Loads three agents from ``support_swarm.yaml`` and holds a four-turn
conversation on one thread. Whoever answered last keeps the customer,
so a follow-up goes straight to the specialist that handled the
previous turn.

Usage:
    export OPENAI_API_KEY=sk-...
    python examples/support_swarm.py
"""

import asyncio
from pathlib import Path

from switchboard import ConversationSession, HookPoint, ToolCallRequest
from switchboard.loader import load_router

YAML_PATH = Path(__file__).parent / "support_swarm.yaml"
THREAD_ID = "customer_123"

TURNS = [
    "Hi! My app keeps crashing when I open it.",
    "Thanks. Also, could you check the balance on account ACC-42?",
    "And the app still shows an error after the restart.",
    "That's all, thank you!",
]

router = load_router(YAML_PATH)


async def on_handoff(*, source: str, target: str, call: ToolCallRequest) -> None:
    print(f"  handoff: {source} -> {target} ({call.name})")


async def main() -> None:
    info = router.describe()
    print("Agents:")
    for name, agent in info["agents"].items():
        print(f"  {name:16} {agent['description']}")
    print("Handoffs:")
    for name, targets in info["handoffs"].items():
        print(f"  {name:16} -> {', '.join(targets)}")

    router.hooks.add(HookPoint.HANDOFF, on_handoff)
    session = ConversationSession(router)

    for turn, text in enumerate(TURNS, 1):
        before = await session.active_agent(THREAD_ID)
        print(f"\n=== turn {turn} ({before}) ===")
        print(f"customer: {text}")
        result = await session.send(THREAD_ID, text)
        print(f"{result.active_agent}: {result.reply}")

    history = await session.history(THREAD_ID)
    print(f"\n{len(history)} messages on {THREAD_ID}")


if __name__ == "__main__":
    asyncio.run(main())
