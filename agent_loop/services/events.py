"""Agent lifecycle events and event emitter.

Event dataclasses for real-time agent notifications. Agents, streaming
sessions and the fallback orchestrator report progress through an
``EventEmitter``; pass any sync callable as ``on_event`` to receive them, or
use the dataclasses directly with your own transport (SSE, WebSocket, etc.).

Usage:
    from agent_loop.services.events import EventEmitter

    emitter = EventEmitter(event_callback=lambda e: print(e.to_dict()))
    emitter.emit_round_start("assistant", round_number=1)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


# -- Event dataclasses -------------------------------------------------------


@dataclass
class BaseEvent:
    """Base for all agent events."""

    event_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type}


@dataclass
class RoundStartEvent(BaseEvent):
    """Emitted before each provider round."""

    event_type: str = field(default="round_start", init=False)
    agent_name: str = ""
    round_number: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "agent_name": self.agent_name,
            "round_number": self.round_number,
        }


@dataclass
class ToolCallEvent(BaseEvent):
    """Emitted when the model requests a tool."""

    event_type: str = field(default="tool_call", init=False)
    tool_name: str = ""
    arguments: Any = field(default_factory=dict)
    call_id: Optional[str] = None
    agent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "tool_name": self.tool_name,
            "arguments": self.arguments,
            "call_id": self.call_id,
            "agent_name": self.agent_name,
        }


@dataclass
class ToolResultEvent(BaseEvent):
    """Emitted when a tool invocation settles."""

    event_type: str = field(default="tool_result", init=False)
    tool_name: str = ""
    output: str = ""
    is_error: bool = False
    call_id: Optional[str] = None
    agent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "tool_name": self.tool_name,
            "output": self.output,
            "is_error": self.is_error,
            "call_id": self.call_id,
            "agent_name": self.agent_name,
        }


@dataclass
class StreamingTextEvent(BaseEvent):
    """Emitted for each streamed text chunk."""

    event_type: str = field(default="text_delta", init=False)
    text: str = ""
    agent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "text": self.text,
            "agent_name": self.agent_name,
        }


@dataclass
class AnswerEvent(BaseEvent):
    """Emitted when the final answer is ready."""

    event_type: str = field(default="answer", init=False)
    answer: str = ""
    tools_called: List[str] = field(default_factory=list)
    agent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "answer": self.answer,
            "tools_called": self.tools_called,
            "agent_name": self.agent_name,
        }


@dataclass
class ErrorEvent(BaseEvent):
    """Emitted when a request fails."""

    event_type: str = field(default="error", init=False)
    error: str = ""
    error_type: Optional[str] = None
    agent_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "error": self.error,
            "error_type": self.error_type,
            "agent_name": self.agent_name,
        }


@dataclass
class FallbackEvent(BaseEvent):
    """Emitted when the orchestrator moves on to the next agent."""

    event_type: str = field(default="fallback", init=False)
    from_agent: str = ""
    to_agent: str = ""
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "from_agent": self.from_agent,
            "to_agent": self.to_agent,
            "error": self.error,
        }


# -- Event emitter -----------------------------------------------------------


class EventEmitter:
    """Emit agent events through a callback.

    Pass any callable (sync) as ``event_callback``; it receives a single
    event dataclass instance. A failing callback is logged and never breaks
    the request that emitted the event.

    Usage:
        def on_event(event):
            print(event.to_dict())

        emitter = EventEmitter(event_callback=on_event)
        emitter.emit_tool_call("calculator", {"expression": "1+1"})
    """

    def __init__(self, event_callback: Optional[Callable[[BaseEvent], Any]] = None):
        self.event_callback = event_callback

    def emit(self, event: BaseEvent) -> None:
        if not self.event_callback:
            return
        try:
            self.event_callback(event)
        except Exception as e:
            logger.warning(f"Event callback failed on '{event.event_type}': {e}")

    def emit_round_start(self, agent_name: str, round_number: int = 1) -> None:
        self.emit(RoundStartEvent(agent_name=agent_name, round_number=round_number))

    def emit_tool_call(
        self,
        tool_name: str,
        arguments: Any,
        call_id: Optional[str] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self.emit(
            ToolCallEvent(
                tool_name=tool_name, arguments=arguments, call_id=call_id, agent_name=agent_name
            )
        )

    def emit_tool_result(
        self,
        tool_name: str,
        output: str,
        is_error: bool = False,
        call_id: Optional[str] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self.emit(
            ToolResultEvent(
                tool_name=tool_name,
                output=output,
                is_error=is_error,
                call_id=call_id,
                agent_name=agent_name,
            )
        )

    def emit_text(self, text: str, agent_name: Optional[str] = None) -> None:
        self.emit(StreamingTextEvent(text=text, agent_name=agent_name))

    def emit_answer(
        self,
        answer: str,
        tools_called: Optional[List[str]] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self.emit(AnswerEvent(answer=answer, tools_called=tools_called or [], agent_name=agent_name))

    def emit_error(self, error: BaseException, agent_name: Optional[str] = None) -> None:
        self.emit(
            ErrorEvent(error=str(error), error_type=type(error).__name__, agent_name=agent_name)
        )

    def emit_fallback(self, from_agent: str, to_agent: str, error: BaseException) -> None:
        self.emit(FallbackEvent(from_agent=from_agent, to_agent=to_agent, error=str(error)))
