"""Example: Simple Chat Agent

This is a minimal example showing how to build and run an agent using agent_loop.
Fork this file as a starting point for your own agents.

Usage:
    python examples/simple_chat_agent.py
"""

import asyncio
import logging
from datetime import datetime

# Ensure OpenAI API key is set
# export OPENAI_API_KEY="your-key"

from pydantic import BaseModel

from agent_loop import (
    Agent,
    AgentConfig,
    ConversationSession,
    OpenAIChatProvider,
    ProviderSettings,
    chat,
    get_tool_registry,
    register_tool,
)
from agent_loop.tools import CalculatorTool


# =============================================================================
# Step 1: Define Tools
# =============================================================================

class NoParams(BaseModel):
    pass


@register_tool(
    name="get_current_time",
    description="Get the current date and time",
    params=NoParams,
)
async def get_current_time(params: NoParams) -> dict:
    """Get the current time in ISO format."""
    return {
        "current_time": datetime.now().isoformat(),
        "timezone": "local"
    }


get_tool_registry().register(CalculatorTool())


# =============================================================================
# Step 2: Define Agent
# =============================================================================

assistant_config = AgentConfig(
    name="assistant",
    preamble="""You are a friendly and helpful AI assistant.

You can:
- Tell the current time using the get_current_time tool
- Perform calculations using the calculator tool

Always be concise and helpful.""",
    temperature=0.8,
    max_tokens=1000,
    tools=("get_current_time", "calculator"),
)


# =============================================================================
# Step 3: Run the Agent
# =============================================================================

async def main():
    logging.basicConfig(level=logging.INFO)

    provider = OpenAIChatProvider(settings=ProviderSettings.from_env())
    agent = Agent(provider=provider, config=assistant_config)

    session = ConversationSession(session_id="demo-session")

    print("\n" + "=" * 60)
    print("Simple Chat Agent Demo")
    print("=" * 60)
    print("Type 'quit' to exit\n")

    while True:
        user_input = input("You: ").strip()

        if user_input.lower() in ("quit", "exit", "q"):
            print("Goodbye!")
            break

        if not user_input:
            continue

        result = await chat(user_input, agent=agent, session=session)

        if result["success"]:
            print(f"\nAssistant: {result['response']}")
            if result.get("tools_called"):
                print(f"  (tools: {', '.join(result['tools_called'])})")
            print()
        else:
            print(f"\nError: {result['error']}\n")


if __name__ == "__main__":
    asyncio.run(main())
