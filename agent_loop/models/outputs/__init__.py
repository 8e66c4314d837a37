"""Standard output models for agent responses.

Provides reusable dataclasses for:
- AgentRun: Full result of one agent request (answer, transcript, usage)
- ChatResponse: Standard chat response with tool tracking
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from agents import Usage

from ..messages import Conversation


class AgentState(str, Enum):
    """States of the agent orchestration loop."""

    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOLS = "awaiting_tools"
    DONE = "done"
    FAILED = "failed"


def usage_to_dict(usage: Usage) -> Dict[str, Any]:
    """Flatten an ``agents.Usage`` into a JSON-friendly dict."""
    input_details = getattr(usage, "input_tokens_details", None)
    output_details = getattr(usage, "output_tokens_details", None)
    return {
        "requests": usage.requests,
        "input_tokens": usage.input_tokens,
        "output_tokens": usage.output_tokens,
        "total_tokens": usage.total_tokens,
        "input_tokens_details": {
            "cached_tokens": getattr(input_details, "cached_tokens", 0) or 0,
        },
        "output_tokens_details": {
            "reasoning_tokens": getattr(output_details, "reasoning_tokens", 0) or 0,
        },
    }


@dataclass
class AgentRun:
    """Result of a completed agent request.

    Attributes:
        answer: Final answer text
        conversation: Full transcript, including tool requests and results
        rounds: Number of tool rounds executed
        tools_called: Tool names in the order they were requested
        usage: Token usage summed over every provider round
        state: Terminal loop state (always DONE for a returned run)
    """
    answer: str
    conversation: Conversation
    rounds: int = 0
    tools_called: List[str] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    state: AgentState = AgentState.DONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "rounds": self.rounds,
            "tools_called": list(self.tools_called),
            "usage": usage_to_dict(self.usage),
            "state": self.state.value,
        }


@dataclass
class ChatResponse:
    """Standard response format for chat interactions.

    Attributes:
        success: Whether the chat completed successfully
        response: The assistant's text response
        session_id: Session ID for conversation continuity
        tools_called: List of tool names that were invoked
        error: Error message if success is False
        error_type: Exception class name if success is False
        usage: Token usage dict with requests, input_tokens, output_tokens,
            total_tokens, input_tokens_details, output_tokens_details
    """
    success: bool
    response: str = ""
    session_id: str = "default"
    tools_called: List[str] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "response": self.response,
            "session_id": self.session_id,
        }
        if self.tools_called:
            result["tools_called"] = self.tools_called
        if self.error:
            result["error"] = self.error
        if self.error_type:
            result["error_type"] = self.error_type
        if self.usage:
            result["usage"] = self.usage
        return result


__all__ = [
    "AgentRun",
    "AgentState",
    "ChatResponse",
    "usage_to_dict",
]
