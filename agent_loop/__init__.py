"""Agent Loop - tool-augmented LLM agents with provider fallback.

This package provides the orchestration core for conversational agents that
call tools: an agent sends a conversation to a completion provider, runs
the tools the model asks for, feeds the results back, and repeats until the
model answers (within a bounded number of rounds).

Core Components:
- Agent: Completion loop over one provider, with streaming support
- ToolRegistry: Named tools with pydantic-validated parameters
- FallbackOrchestrator: Ordered list of agents tried in turn
- ConversationSession: Conversation history for multi-turn chat
- OpenAIChatProvider: Chat Completions backend

Quick Start:
    from agent_loop import Agent, AgentConfig, OpenAIChatProvider, ToolRegistry
    from agent_loop.tools import CalculatorTool

    registry = ToolRegistry([CalculatorTool()])
    agent = Agent(
        provider=OpenAIChatProvider("gpt-4o"),
        config=AgentConfig(
            preamble="You are a helpful assistant.",
            tools=("calculator",),
        ),
        registry=registry,
    )
    answer = await agent.prompt("What is 12 * 7?")
"""

from .core import Agent, StreamingSession
from .errors import (
    AgentLoopError,
    AllProvidersExhaustedError,
    CancelledError,
    ConfigurationError,
    ConversationError,
    DuplicateToolError,
    ProviderError,
    SchemaValidationError,
    ToolInvocationError,
    ToolLoopExceededError,
    ToolTimeoutError,
    UnknownToolError,
)
from .models import (
    AgentConfig,
    AgentRun,
    ChatResponse,
    CompletionResponse,
    Conversation,
    Message,
    Role,
    StreamChunk,
    ToolError,
    ToolInvocationRequest,
    ToolResult,
)
from .providers import CompletionProvider, OpenAIChatProvider, ProviderSettings
from .registry import (
    FunctionTool,
    Tool,
    ToolDefinition,
    ToolRegistry,
    get_tool_registry,
    register_tool,
)
from .services import chat, chat_streamed
from .session import ConversationSession

from .orchestrator import FallbackOrchestrator

__all__ = [
    # Core
    "Agent",
    "StreamingSession",
    "FallbackOrchestrator",
    # Models
    "AgentConfig",
    "AgentRun",
    "ChatResponse",
    "CompletionResponse",
    "Conversation",
    "Message",
    "Role",
    "StreamChunk",
    "ToolError",
    "ToolInvocationRequest",
    "ToolResult",
    # Providers
    "CompletionProvider",
    "OpenAIChatProvider",
    "ProviderSettings",
    # Registry
    "FunctionTool",
    "Tool",
    "ToolDefinition",
    "ToolRegistry",
    "get_tool_registry",
    "register_tool",
    # Session / services
    "ConversationSession",
    "chat",
    "chat_streamed",
    # Errors
    "AgentLoopError",
    "AllProvidersExhaustedError",
    "CancelledError",
    "ConfigurationError",
    "ConversationError",
    "DuplicateToolError",
    "ProviderError",
    "SchemaValidationError",
    "ToolInvocationError",
    "ToolLoopExceededError",
    "ToolTimeoutError",
    "UnknownToolError",
]
