"""Conversation session - in-memory history for multi-turn chat.

Implements the OpenAI Agents SDK ``SessionABC`` interface over ``Message``
objects, so the same history can be handed to an ``Agent`` (as a
``Conversation``) or to anything that speaks the SDK's session protocol.
"""

from typing import Any, Dict, List, Optional

from agents.items import TResponseInputItem
from agents.memory.session import SessionABC

from ..models.messages import Conversation, Message, MessageLike


class ConversationSession(SessionABC):
    """In-memory session holding one conversation thread.

    The session stores user, assistant and tool messages only; the agent's
    preamble is added per request and never stored here.

    Usage:
        session = ConversationSession(session_id="user-42")

        await session.add_items([
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi there!"}
        ])

        answer = await agent.chat(session.conversation())
    """

    def __init__(
        self,
        session_id: str = "default",
        initial_history: Optional[List[MessageLike]] = None,
        max_items: int = 50,
    ):
        """Initialize session.

        Args:
            session_id: Unique identifier for this session
            initial_history: Optional existing messages (``Message`` or dicts)
            max_items: Message count above which ``needs_summarization()``
                reports True
        """
        self.session_id = session_id
        self.messages: List[Message] = []
        self.max_items = max_items
        self.metadata: Dict[str, Any] = {}
        if initial_history:
            self.add_messages(initial_history)

    async def get_items(self, limit: Optional[int] = None) -> List[TResponseInputItem]:
        """Retrieve conversation history as list of dicts.

        Args:
            limit: Optional limit on number of items to return (from end)
        """
        items = [message.to_dict() for message in self.messages]
        if limit:
            return items[-limit:]
        return items

    async def add_items(self, items: List[TResponseInputItem]) -> None:
        """Add new messages to conversation history.

        Empty messages are skipped unless they carry tool calls.
        """
        self.add_messages(items)

    def add_messages(self, items: List[MessageLike]) -> None:
        for item in items:
            message = item if isinstance(item, Message) else Message.from_dict(item)
            if not message.content.strip() and not message.tool_calls:
                continue
            self.messages.append(message)

    async def pop_item(self) -> Optional[TResponseInputItem]:
        """Remove and return the most recent message, or None if empty."""
        if self.messages:
            return self.messages.pop().to_dict()
        return None

    async def clear_session(self) -> None:
        """Clear all messages from history."""
        self.messages.clear()

    def conversation(self) -> Conversation:
        """Snapshot of the history as an immutable ``Conversation``.

        Raises:
            ConversationError: If the stored messages break ordering rules.
        """
        return Conversation(self.messages)

    def needs_summarization(self) -> bool:
        return len(self.messages) > self.max_items

    def get_message_count(self) -> int:
        return len(self.messages)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)
