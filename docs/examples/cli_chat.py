import asyncio
import os
import sys
from typing import List

from dotenv import load_dotenv
from openai import AsyncOpenAI

from mcp_agent_bridge import OpenAIReasoningLoop, RunSession, load_settings
from mcp_agent_bridge.bridge_core import ToolConnectionError, setup_logging

# Load environment variables
load_dotenv()


class PrintSink:
    """Prints every stream record as it arrives."""

    async def push(self, payload: str) -> None:
        print(f"  > {payload}")

    async def close(self) -> None:
        pass


async def main(categories: List[str]) -> None:
    """
    Runs objectives typed on the command line against the configured MCP servers.
    """
    print("Welcome to the MCP agent CLI!")

    if not os.getenv("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY not found in environment variables.")
        return

    settings = load_settings()
    client = AsyncOpenAI()
    print(f"Enabled tool categories: {', '.join(categories)}")

    print("\nType an objective, or 'exit' / 'quit' to stop.")
    while True:
        objective = input("\nObjective: ").strip()
        if objective.lower() in ["exit", "quit"]:
            print("Goodbye!")
            break

        if not objective:
            continue

        loop = OpenAIReasoningLoop(client=client, model_name=settings.openai_model)
        session = RunSession(settings, loop, sink=PrintSink())
        try:
            result = await session.run(objective, categories)
            print(f"Agent: {result}")
        except ToolConnectionError as e:
            print(f"Tool servers unavailable: {e}")
        except Exception as e:
            print(f"An error occurred: {e}")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main(sys.argv[1:] or ["calculator"]))
