"""Sequential agents: research -> write -> edit.

Each stage's reply becomes the next stage's input, so the editor only
ever sees the writer's draft.

Usage:
    export OPENAI_API_KEY=sk-...
    python examples/sequential_agents.py
"""

import asyncio

from switchboard import AgentDefinition, SequentialPipeline, ToolRegistry
from switchboard.models import get_gateway

researcher = AgentDefinition(
    name="researcher",
    instructions="You research a topic and return 3 key bullet points.",
)

writer = AgentDefinition(
    name="writer",
    instructions="You turn bullet-point research into a short, clear paragraph.",
)

editor = AgentDefinition(
    name="editor",
    instructions="You edit text for clarity and concision and return only the final version.",
)

pipeline = SequentialPipeline(
    stages=[researcher, writer, editor],
    registry=ToolRegistry(),
    gateway=get_gateway("openai:gpt-4o-mini"),
)


async def main() -> None:
    result = await pipeline.run("Why do multi-agent systems hand work off between agents?")
    for stage in result.stages:
        print(f"--- {stage.agent} ---")
        print(stage.reply)
    print("\n=== final ===")
    print(result.output)


if __name__ == "__main__":
    asyncio.run(main())
