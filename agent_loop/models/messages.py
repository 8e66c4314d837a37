"""Conversation messages and the values exchanged with providers and tools.

Everything here is immutable. A ``Conversation`` is replayed verbatim to the
provider on every round, so appending returns a new conversation and the
caller's copy is never touched.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from agents import Usage

from ..errors import ConversationError, ProviderError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolInvocationRequest:
    """A tool call requested by the model.

    ``arguments`` is whatever the provider decoded: normally a mapping, or
    the raw JSON text when decoding failed (validation rejects it later).
    """

    id: str
    tool_name: str
    arguments: Union[Mapping[str, Any], str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        arguments = self.arguments if isinstance(self.arguments, str) else dict(self.arguments)
        return {"id": self.id, "tool_name": self.tool_name, "arguments": arguments}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToolInvocationRequest":
        return cls(id=data["id"], tool_name=data["tool_name"], arguments=data.get("arguments", {}))


@dataclass(frozen=True)
class Message:
    """One conversation turn."""

    role: Role
    content: str
    tool_call_id: Optional[str] = None
    tool_calls: Tuple[ToolInvocationRequest, ...] = ()
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        if self.role is Role.TOOL and not self.tool_call_id:
            raise ConversationError("Tool messages require a tool_call_id")
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ConversationError("Only assistant messages can carry tool calls")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: Iterable[ToolInvocationRequest] = ()
    ) -> "Message":
        return cls(Role.ASSISTANT, content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: Optional[str] = None) -> "Message":
        return cls(Role.TOOL, content, tool_call_id=tool_call_id, name=name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain ``{"role", "content", ...}`` item."""
        item: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_call_id:
            item["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            item["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.name:
            item["name"] = self.name
        return item

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "Message":
        return cls(
            role=Role(item["role"]),
            content=str(item.get("content") or ""),
            tool_call_id=item.get("tool_call_id"),
            tool_calls=tuple(
                call if isinstance(call, ToolInvocationRequest)
                else ToolInvocationRequest.from_dict(call)
                for call in item.get("tool_calls") or ()
            ),
            name=item.get("name"),
        )


MessageLike = Union[Message, Mapping[str, Any]]


def _coerce(message: MessageLike) -> Message:
    if isinstance(message, Message):
        return message
    return Message.from_dict(message)


class Conversation:
    """Immutable, ordered sequence of messages.

    Invariants (checked on construction):
    - a system message, if any, is unique and first;
    - every tool message answers a request made by an earlier assistant
      message in the same conversation.
    """

    __slots__ = ("_messages",)

    def __init__(self, messages: Iterable[MessageLike] = ()):
        self._messages: Tuple[Message, ...] = tuple(_coerce(m) for m in messages)
        self._validate()

    def _validate(self) -> None:
        requested = set()
        for index, message in enumerate(self._messages):
            if message.role is Role.SYSTEM and index != 0:
                raise ConversationError(
                    f"System message at position {index}; it must be unique and first"
                )
            if message.role is Role.ASSISTANT:
                requested.update(call.id for call in message.tool_calls)
            elif message.role is Role.TOOL and message.tool_call_id not in requested:
                raise ConversationError(
                    f"Tool message references unknown tool_call_id '{message.tool_call_id}'"
                )

    @classmethod
    def coerce(cls, history: Union["Conversation", Iterable[MessageLike]]) -> "Conversation":
        if isinstance(history, Conversation):
            return history
        return cls(history)

    def append(self, *messages: MessageLike) -> "Conversation":
        """Return a new conversation with ``messages`` added at the end."""
        return Conversation(self._messages + tuple(_coerce(m) for m in messages))

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._messages

    @property
    def system_message(self) -> Optional[Message]:
        if self._messages and self._messages[0].role is Role.SYSTEM:
            return self._messages[0]
        return None

    @property
    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def to_list_dict(self) -> list:
        return [m.to_dict() for m in self._messages]

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index):
        return self._messages[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Conversation):
            return self._messages == other._messages
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._messages)

    def __repr__(self) -> str:
        return f"Conversation({len(self._messages)} messages)"


def _encode_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    try:
        return json.dumps(output, default=str)
    except (TypeError, ValueError):
        return str(output)


@dataclass(frozen=True)
class ToolResult:
    """Successful tool outcome."""

    tool_name: str
    output: Any
    tool_call_id: Optional[str] = None

    is_error = False

    def to_message(self) -> Message:
        return Message.tool(_encode_output(self.output), self.tool_call_id, name=self.tool_name)


@dataclass(frozen=True)
class ToolError:
    """Failed tool outcome, fed back to the model so it can react."""

    tool_name: str
    message: str
    tool_call_id: Optional[str] = None

    is_error = True

    def to_message(self) -> Message:
        return Message.tool(f"Error: {self.message}", self.tool_call_id, name=self.tool_name)


ToolOutcome = Union[ToolResult, ToolError]


@dataclass(frozen=True)
class CompletionResponse:
    """Result of one provider round: a final answer or tool requests."""

    text: str = ""
    tool_calls: Tuple[ToolInvocationRequest, ...] = ()
    usage: Usage = field(default_factory=Usage)

    def __post_init__(self):
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    def to_message(self) -> Message:
        return Message.assistant(self.text or "", self.tool_calls)


class ChunkKind(str, Enum):
    TEXT = "text"
    TOOL_CALLS = "tool_calls"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class StreamChunk:
    """One element of a provider stream. Everything but TEXT is terminal."""

    kind: ChunkKind
    text: str = ""
    tool_calls: Tuple[ToolInvocationRequest, ...] = ()
    error: Optional[ProviderError] = None
    usage: Optional[Usage] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind is not ChunkKind.TEXT

    @classmethod
    def of_text(cls, text: str) -> "StreamChunk":
        return cls(ChunkKind.TEXT, text=text)

    @classmethod
    def of_tool_calls(
        cls, tool_calls: Iterable[ToolInvocationRequest], text: str = "", usage: Optional[Usage] = None
    ) -> "StreamChunk":
        return cls(ChunkKind.TOOL_CALLS, text=text, tool_calls=tuple(tool_calls), usage=usage)

    @classmethod
    def of_error(cls, error: ProviderError) -> "StreamChunk":
        return cls(ChunkKind.ERROR, error=error)

    @classmethod
    def done(cls, usage: Optional[Usage] = None) -> "StreamChunk":
        return cls(ChunkKind.DONE, usage=usage)
