"""Chat functions for API endpoints.

Two flavours of chat:

- ``chat()``          - non-streaming, returns a dict
- ``chat_streamed()`` - yields SSE-style dicts with text deltas and tool
  notifications

Both thread the conversation through a ``ConversationSession``, catch every
failure and report it as a structured result so your API layer stays thin.
The session is only updated when the turn succeeds; a failed turn leaves it
exactly as it was.

``agent`` may be an ``Agent`` or a ``FallbackOrchestrator``.

Usage:
    from agent_loop.services.chat import chat, chat_streamed
    from agent_loop import ConversationSession

    session = ConversationSession(session_id="user-123")

    result = await chat("Hello!", agent=my_agent, session=session)

    async for event in chat_streamed("Hello!", agent=my_agent, session=session):
        print(event)
"""

import inspect
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from ..models.messages import Message
from ..models.outputs import ChatResponse, usage_to_dict
from ..session import ConversationSession
from .events import BaseEvent, ToolCallEvent, ToolResultEvent

logger = logging.getLogger(__name__)


async def chat(
    message: str,
    agent: Any,
    session: Optional[ConversationSession] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Run a single chat turn (non-streaming).

    Args:
        message: User message text.
        agent: ``Agent`` or ``FallbackOrchestrator`` that answers.
        session: ``ConversationSession`` that tracks conversation history.
            A fresh session is used when omitted.
        timeout: Optional seconds for the whole turn.

    Returns:
        ``{"success": True, "response": str, "session_id": str, "tools_called": list, "usage": dict}``
        or ``{"success": False, "error": str, "error_type": str, "session_id": str}`` on failure.
    """
    session = session if session is not None else ConversationSession()
    try:
        user_message = Message.user(message)
        history = session.conversation().append(user_message)

        run = await agent.run(history, timeout=timeout)

        await session.add_items([user_message, Message.assistant(run.answer)])

        return ChatResponse(
            success=True,
            response=run.answer,
            session_id=session.session_id,
            tools_called=run.tools_called,
            usage=usage_to_dict(run.usage),
        ).to_dict()
    except Exception as e:
        logger.error("Chat error: %s", e, exc_info=True)
        return ChatResponse(
            success=False,
            session_id=session.session_id,
            error=str(e),
            error_type=type(e).__name__,
        ).to_dict()


async def chat_streamed(
    message: str,
    agent: Any,
    session: Optional[ConversationSession] = None,
    timeout: Optional[float] = None,
) -> AsyncGenerator[Dict[str, Any], None]:
    """Chat with token-level streaming.

    Tool rounds interrupt the text stream; this function runs them, reports
    them, and resumes streaming until the model gives its final answer.

    Yields:
        Event dicts::

            {"event": "text_delta",  "data": {"delta": "..."}}
            {"event": "tool_call",   "data": {"tool": "...", "message": "..."}}
            {"event": "tool_output", "data": {"tool": "...", "output": "...", "is_error": bool}}
            {"event": "answer",      "data": {"response": "...", "tools_called": [...], "usage": {...}}}
            {"event": "error",       "data": {"error": "...", "error_type": "..."}}
    """
    session = session if session is not None else ConversationSession()
    pending: List[BaseEvent] = []
    stream = None

    try:
        user_message = Message.user(message)
        history = session.conversation().append(user_message)

        opened = agent.stream_chat(history, timeout=timeout, on_event=pending.append)
        stream = await opened if inspect.isawaitable(opened) else opened

        while True:
            async for delta in stream:
                yield {"event": "text_delta", "data": {"delta": delta}}
            for event in _drain(pending):
                yield event
            if not stream.interrupted:
                break
            previous, stream = stream, stream.resume()
            await previous.aclose()

        response = stream.text
        await session.add_items([user_message, Message.assistant(response)])

        yield {
            "event": "answer",
            "data": {
                "response": response,
                "tools_called": list(stream.tools_called),
                "usage": usage_to_dict(stream.usage),
            },
        }
    except Exception as e:
        logger.error("Streaming error: %s", e, exc_info=True)
        yield {"event": "error", "data": {"error": str(e), "error_type": type(e).__name__}}
    finally:
        if stream is not None:
            await stream.aclose()


def _drain(pending: List[BaseEvent]) -> List[Dict[str, Any]]:
    """Convert buffered tool events to stream dicts and clear the buffer."""
    events = []
    for event in pending:
        if isinstance(event, ToolCallEvent):
            events.append({
                "event": "tool_call",
                "data": {
                    "tool": event.tool_name,
                    "message": f"Calling {event.tool_name.replace('_', ' ')}...",
                },
            })
        elif isinstance(event, ToolResultEvent):
            events.append({
                "event": "tool_output",
                "data": {
                    "tool": event.tool_name,
                    "output": event.output[:500],
                    "is_error": event.is_error,
                },
            })
    pending.clear()
    return events
