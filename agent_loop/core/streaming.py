"""Streaming session - incremental text for one model turn.

A ``StreamingSession`` yields text fragments as the provider produces them.
It never interleaves tool handling with text: when the provider ends a turn
with tool calls, the session stops, runs that tool round through the
agent's non-streaming path, and marks itself ``interrupted``. The caller
then decides whether to continue with ``resume()``, which streams the next
model turn over the augmented conversation.

Usage:
    async with agent.stream("What is 2 ** 10?") as session:
        async for text in session:
            print(text, end="")

    while session.interrupted:
        session = session.resume()
        async for text in session:
            print(text, end="")
"""

import asyncio
import logging
from typing import TYPE_CHECKING, AsyncIterator, Callable, List, Optional

from agents import Usage

from ..errors import CancelledError, ToolLoopExceededError
from ..models.messages import ChunkKind, CompletionResponse, Conversation, Message, StreamChunk
from ..services.events import EventEmitter
from .cancellation import deadline_after, remaining, run_cancellable

if TYPE_CHECKING:
    from .agent import Agent

logger = logging.getLogger(__name__)


class StreamingSession:
    """Lazy, non-restartable stream of text chunks for one model turn.

    Attributes:
        conversation: Transcript so far. After the stream ends it includes
            the assistant turn (and, when interrupted, the tool results).
        interrupted: True if the turn ended with tool calls that were run.
        finished: True once the provider stream reached a terminal chunk.
        rounds: Tool rounds executed in this request, across resumes.
        tools_called: Tool names requested in this request, across resumes.
        usage: Token usage accumulated across resumes.
        error: The ``ProviderError`` that ended the stream, if any.
    """

    def __init__(
        self,
        agent: "Agent",
        conversation: Conversation,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
        rounds: int = 0,
        tools_called: Optional[List[str]] = None,
        usage: Optional[Usage] = None,
        deadline: Optional[float] = None,
    ):
        self.agent = agent
        self.conversation = conversation
        self.rounds = rounds
        self.tools_called: List[str] = list(tools_called or [])
        self.usage = usage if usage is not None else Usage()
        self.interrupted = False
        self.finished = False
        self.error = None

        self._timeout = timeout
        self._deadline = deadline
        self._cancel = cancel
        self._events = EventEmitter(on_event)
        self._parts: List[str] = []
        self._chunks: Optional[AsyncIterator[StreamChunk]] = None
        self._primed: Optional[StreamChunk] = None
        self._iterator = None
        self._consumed = False
        self._closed = False

    @property
    def text(self) -> str:
        """Text received so far in this turn."""
        return "".join(self._parts)

    # ------------------------------------------------------------------ #
    # Iteration
    # ------------------------------------------------------------------ #

    def __aiter__(self):
        if self._consumed:
            raise RuntimeError("StreamingSession is not restartable; use resume() for the next turn")
        self._consumed = True
        self._iterator = self._iterate()
        return self._iterator

    async def __aenter__(self) -> "StreamingSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def start(self) -> "StreamingSession":
        """Open the provider stream and wait for its first chunk.

        Raises the stream's error here (instead of during iteration) when the
        provider fails before producing anything.
        """
        if self._primed is None and not self._consumed:
            chunk = await self._next_chunk()
            if chunk.kind is ChunkKind.ERROR:
                await self._close_stream()
                self._consumed = True
                self.finished = True
                self.error = chunk.error
                raise chunk.error
            self._primed = chunk
        return self

    async def collect(self) -> str:
        """Consume the rest of this turn and return its full text."""
        async for _ in self:
            pass
        return self.text

    def resume(self) -> "StreamingSession":
        """Stream the model turn that follows the executed tool round."""
        if not self.interrupted:
            raise RuntimeError("Stream was not interrupted by a tool call; nothing to resume")
        return StreamingSession(
            agent=self.agent,
            conversation=self.conversation,
            cancel=self._cancel,
            on_event=self._events.event_callback,
            rounds=self.rounds,
            tools_called=self.tools_called,
            usage=self.usage,
            deadline=self._deadline,
        )

    async def aclose(self) -> None:
        """Release the provider stream. Safe to call more than once."""
        self._consumed = True
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._close_stream()
        self._closed = True

    async def _iterate(self):
        try:
            while True:
                chunk = await self._next_chunk()

                if chunk.kind is ChunkKind.TEXT:
                    if chunk.text:
                        self._parts.append(chunk.text)
                        self._events.emit_text(chunk.text, agent_name=self.agent.name)
                        yield chunk.text
                    continue

                await self._close_stream()
                if chunk.usage is not None:
                    self.usage.add(chunk.usage)

                if chunk.kind is ChunkKind.ERROR:
                    self.finished = True
                    self.error = chunk.error
                    logger.warning(f"Stream for agent '{self.agent.name}' failed: {chunk.error}")
                    self._events.emit_error(chunk.error, agent_name=self.agent.name)
                    raise chunk.error

                if chunk.kind is ChunkKind.TOOL_CALLS:
                    await self._run_tool_round(chunk)
                    return

                self.finished = True
                self.conversation = self.conversation.append(Message.assistant(self.text))
                self._events.emit_answer(self.text, self.tools_called, agent_name=self.agent.name)
                return
        finally:
            await self._close_stream()

    async def _run_tool_round(self, chunk: StreamChunk) -> None:
        config = self.agent.config
        if self.rounds >= config.max_rounds:
            self.finished = True
            raise ToolLoopExceededError(config.max_rounds, self.agent.name)

        response = CompletionResponse(text=chunk.text or self.text, tool_calls=chunk.tool_calls)
        self.tools_called.extend(call.tool_name for call in response.tool_calls)
        logger.debug(
            f"Stream for agent '{self.agent.name}' interrupted by "
            f"{len(response.tool_calls)} tool call(s)"
        )
        self.conversation = await self._guard(
            self.agent.run_tool_round(self.conversation, response, self._events)
        )
        self.rounds += 1
        self.finished = True
        self.interrupted = True

    # ------------------------------------------------------------------ #
    # Provider stream handling
    # ------------------------------------------------------------------ #

    async def _next_chunk(self) -> StreamChunk:
        if self._primed is not None:
            chunk, self._primed = self._primed, None
            return chunk
        if self._closed:
            raise RuntimeError("StreamingSession is closed")
        if self._chunks is None:
            if self._deadline is None:
                self._deadline = deadline_after(self._timeout)
            self._events.emit_round_start(self.agent.name, self.rounds + 1)
            self._chunks = self.agent.provider.stream(self.conversation, self.agent.settings)
        try:
            return await self._guard(self._chunks.__anext__())
        except StopAsyncIteration:
            # A provider that ends without a terminal chunk finished normally.
            return StreamChunk.done()

    async def _guard(self, awaitable):
        try:
            return await run_cancellable(
                awaitable, timeout=remaining(self._deadline), cancel=self._cancel
            )
        except CancelledError:
            await self._close_stream()
            self._events.emit_error(CancelledError("Stream cancelled"), agent_name=self.agent.name)
            raise

    async def _close_stream(self) -> None:
        chunks, self._chunks = self._chunks, None
        if chunks is None:
            return
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
