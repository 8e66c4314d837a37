"""Services for agent execution and streaming.

Public API::

    # Chat functions
    from agent_loop.services import chat, chat_streamed

    # Event types + emitter (used by agents, streams and the orchestrator)
    from agent_loop.services import EventEmitter, ToolCallEvent, ...
"""

from .events import (
    EventEmitter,
    BaseEvent,
    RoundStartEvent,
    ToolCallEvent,
    ToolResultEvent,
    StreamingTextEvent,
    AnswerEvent,
    ErrorEvent,
    FallbackEvent,
)
from .chat import chat, chat_streamed

__all__ = [
    # Chat
    "chat",
    "chat_streamed",
    # Events
    "EventEmitter",
    "BaseEvent",
    "RoundStartEvent",
    "ToolCallEvent",
    "ToolResultEvent",
    "StreamingTextEvent",
    "AnswerEvent",
    "ErrorEvent",
    "FallbackEvent",
]
