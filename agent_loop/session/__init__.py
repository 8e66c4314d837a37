"""Session package - Session management for agents."""

from .agent_session import ConversationSession

__all__ = [
    "ConversationSession",
]
