"""Models package - Data models for agent system."""

from .messages import (
    ChunkKind,
    CompletionResponse,
    Conversation,
    Message,
    Role,
    StreamChunk,
    ToolError,
    ToolInvocationRequest,
    ToolOutcome,
    ToolResult,
)
from .config import AgentConfig, CompletionSettings
from .outputs import AgentRun, AgentState, ChatResponse, usage_to_dict

__all__ = [
    "ChunkKind",
    "CompletionResponse",
    "Conversation",
    "Message",
    "Role",
    "StreamChunk",
    "ToolError",
    "ToolInvocationRequest",
    "ToolOutcome",
    "ToolResult",
    "AgentConfig",
    "CompletionSettings",
    "AgentRun",
    "AgentState",
    "ChatResponse",
    "usage_to_dict",
]
