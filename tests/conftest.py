"""Shared fixtures for agent_loop tests."""

import asyncio
import re
from typing import List

import pytest
from agents import Usage
from pydantic import BaseModel

from agent_loop.errors import ProviderError
from agent_loop.models.config import AgentConfig
from agent_loop.models.messages import CompletionResponse, StreamChunk, ToolInvocationRequest
from agent_loop.providers.base import CompletionProvider
from agent_loop.registry.tool_registry import ToolDefinition, ToolRegistry
from agent_loop.session.agent_session import ConversationSession


def usage(input_tokens=10, output_tokens=5):
    return Usage(
        requests=1,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )


def answer(text):
    return CompletionResponse(text=text, usage=usage())


def tool_calls(*calls, text=""):
    """Build a tool-call response from ``(id, name, arguments)`` tuples."""
    return CompletionResponse(
        text=text,
        tool_calls=tuple(ToolInvocationRequest(*call) for call in calls),
        usage=usage(),
    )


class ScriptedProvider(CompletionProvider):
    """Provider returning a fixed sequence of responses.

    Items may be ``CompletionResponse`` objects or exceptions to raise.
    Each call records the conversation it received.
    """

    def __init__(self, script, name="scripted"):
        self.script = list(script)
        self.name = name
        self.calls: List = []
        self.streams_closed = 0

    def _next(self, conversation):
        self.calls.append(conversation)
        if not self.script:
            raise AssertionError(f"Provider '{self.name}' called more often than scripted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def complete(self, conversation, settings):
        return self._next(conversation)

    async def stream(self, conversation, settings):
        try:
            try:
                item = self._next(conversation)
            except ProviderError as e:
                yield StreamChunk.of_error(e)
                return
            for word in _words(item.text):
                yield StreamChunk.of_text(word)
            if item.is_final:
                yield StreamChunk.done(item.usage)
            else:
                yield StreamChunk.of_tool_calls(item.tool_calls, item.text, item.usage)
        finally:
            self.streams_closed += 1


class AlwaysToolProvider(CompletionProvider):
    """Provider that requests the same tool on every round."""

    def __init__(self, tool_name="echo", name="looping"):
        self.tool_name = tool_name
        self.name = name
        self.calls: List = []

    async def complete(self, conversation, settings):
        self.calls.append(conversation)
        n = len(self.calls)
        return tool_calls((f"call-{n}", self.tool_name, {"text": f"round {n}"}))

    async def stream(self, conversation, settings):
        response = await self.complete(conversation, settings)
        yield StreamChunk.of_tool_calls(response.tool_calls, usage=response.usage)


def _words(text):
    return re.findall(r"\S+\s*", text)


class AddParams(BaseModel):
    a: int
    b: int


class EchoParams(BaseModel):
    text: str


class SlowParams(BaseModel):
    seconds: float = 10.0


class SlowTool:
    """Records starts and cancellations so tests can check cleanup."""

    def __init__(self):
        self.started = 0
        self.cancelled = 0
        self.finished = 0

    async def __call__(self, params: SlowParams):
        self.started += 1
        try:
            await asyncio.sleep(params.seconds)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        self.finished += 1
        return f"slept {params.seconds}"


@pytest.fixture
def slow_tool():
    return SlowTool()


@pytest.fixture
def registry(slow_tool):
    """Registry with add, echo, fail and slow tools."""
    reg = ToolRegistry()

    async def add(params: AddParams):
        return params.a + params.b

    def echo(params: EchoParams):
        return params.text

    def fail(params: EchoParams):
        raise RuntimeError(f"cannot handle {params.text}")

    reg.register_function(ToolDefinition("add", "Add two integers", AddParams), add)
    reg.register_function(ToolDefinition("echo", "Echo text back", EchoParams), echo)
    reg.register_function(ToolDefinition("fail", "Always fails", EchoParams), fail)
    reg.register_function(ToolDefinition("slow", "Sleeps", SlowParams), slow_tool)
    return reg


@pytest.fixture
def config():
    return AgentConfig(
        name="tester",
        preamble="You are a test assistant.",
        tools=("add", "echo", "fail", "slow"),
        max_rounds=3,
    )


@pytest.fixture
def session():
    """Create a fresh ConversationSession."""
    return ConversationSession(session_id="test-session")


@pytest.fixture
def sample_usage():
    """Create a real Usage object from the SDK."""
    return Usage(
        requests=1,
        input_tokens=100,
        output_tokens=50,
        total_tokens=150,
    )
