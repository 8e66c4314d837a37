"""Example: Provider fallback and streaming

Shows how to:
1. Put a primary and a cheaper fallback agent behind a FallbackOrchestrator
2. Stream an answer chunk by chunk
3. Continue a stream after the model calls a tool

Usage:
    export OPENAI_API_KEY="your-key"
    python examples/fallback_and_streaming.py
"""

import asyncio
import logging

from agent_loop import (
    Agent,
    AgentConfig,
    FallbackOrchestrator,
    OpenAIChatProvider,
    ProviderSettings,
    ToolRegistry,
)
from agent_loop.tools import CalculatorTool, HttpRequestTool


def build_orchestrator() -> FallbackOrchestrator:
    settings = ProviderSettings.from_env()
    registry = ToolRegistry([CalculatorTool(), HttpRequestTool(max_chars=4000)])

    config = AgentConfig(
        name="primary",
        preamble="You are a precise assistant. Use the calculator for any arithmetic.",
        tools=("calculator", "http_request"),
        max_rounds=4,
    )

    primary = Agent(OpenAIChatProvider("gpt-4o", settings=settings), config, registry)
    fallback = Agent(
        OpenAIChatProvider("gpt-4o-mini", settings=settings),
        config.replace(name="fallback"),
        registry,
    )
    return FallbackOrchestrator([primary, fallback])


def print_event(event):
    if event.event_type in ("tool_call", "tool_result", "fallback"):
        print(f"\n  [{event.event_type}] {event.to_dict()}")


async def main():
    logging.basicConfig(level=logging.WARNING)
    orchestrator = build_orchestrator()

    # Non-streaming, with a deadline covering every attempt
    answer = await orchestrator.prompt(
        "What is (17 * 23) + sqrt(144)?", timeout=60, on_event=print_event
    )
    print(f"Answer: {answer}\n")

    # Streaming: the stream stops when the model calls a tool; resume() goes on
    session = await orchestrator.stream("Explain 2 ** 16 and compute it.", on_event=print_event)
    while True:
        async with session:
            async for text in session:
                print(text, end="", flush=True)
        if not session.interrupted:
            break
        session = session.resume()
    print()
    print(f"Tool rounds: {session.rounds}, tools: {session.tools_called}")


if __name__ == "__main__":
    asyncio.run(main())
