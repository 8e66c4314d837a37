"""Agent - tool-augmented completion loop.

An ``Agent`` combines an immutable ``AgentConfig``, a ``ToolRegistry`` and a
``CompletionProvider``. Each request runs a small state machine::

    AwaitingModel -> AwaitingTools -> AwaitingModel -> ... -> Done | Failed

The conversation starts as the preamble (system message) followed by the
caller's history. When the provider asks for tools, every requested call is
dispatched concurrently, results are appended in request order, and the
augmented conversation goes back to the provider. ``config.max_rounds``
bounds the number of tool rounds.

Usage:
    agent = Agent(
        provider=OpenAIChatProvider("gpt-4o"),
        config=AgentConfig(preamble="You are a helpful assistant.", tools=("calculator",)),
        registry=registry,
    )
    answer = await agent.prompt("What is 12 * 7?")
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Union

from agents import Usage

from ..errors import (
    ConversationError,
    SchemaValidationError,
    ToolLoopExceededError,
    ToolTimeoutError,
    UnknownToolError,
)
from ..models.config import AgentConfig, CompletionSettings
from ..models.messages import (
    CompletionResponse,
    Conversation,
    Message,
    MessageLike,
    ToolError,
    ToolInvocationRequest,
    ToolOutcome,
)
from ..models.outputs import AgentRun, AgentState
from ..providers.base import CompletionProvider
from ..registry.tool_registry import ToolRegistry, get_tool_registry
from ..services.events import EventEmitter
from .cancellation import run_cancellable
from .streaming import StreamingSession

logger = logging.getLogger(__name__)

History = Union[Conversation, Iterable[MessageLike]]


class Agent:
    """A configured conversational entity that can call tools.

    The agent holds no per-request state, so one instance can serve many
    concurrent requests. Provider and registry are shared read-only.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        config: Optional[AgentConfig] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        """
        Args:
            provider: Backend used for every round.
            config: Agent configuration (defaults to ``AgentConfig()``).
            registry: Tool registry; defaults to the global registry.

        Raises:
            UnknownToolError: If ``config.tools`` names a tool that is not
                registered.
        """
        self.provider = provider
        self.config = config or AgentConfig()
        self.registry = registry if registry is not None else get_tool_registry()

        self.tool_definitions = tuple(self.registry.definitions(self.config.tools))
        self.settings = CompletionSettings.from_config(self.config, self.tool_definitions)

        logger.info(
            f"Created agent: {self.name} (provider: {getattr(provider, 'name', provider)}, "
            f"tools: {list(self.config.tools)})"
        )

    @property
    def name(self) -> str:
        return self.config.name

    def __repr__(self) -> str:
        return f"Agent({self.name!r})"

    # ------------------------------------------------------------------ #
    # Public entry points
    # ------------------------------------------------------------------ #

    async def prompt(
        self,
        text: str,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> str:
        """Answer a single user message."""
        run = await self.run([Message.user(text)], timeout=timeout, cancel=cancel, on_event=on_event)
        return run.answer

    async def chat(
        self,
        history: History,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> str:
        """Answer the last turn of ``history`` (user/assistant/tool messages)."""
        run = await self.run(history, timeout=timeout, cancel=cancel, on_event=on_event)
        return run.answer

    async def run(
        self,
        history: History,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> AgentRun:
        """Run the full tool loop and return the complete result.

        Args:
            history: Conversation without a system message; never mutated.
            timeout: Seconds for the whole request, tool rounds included.
            cancel: Cancellation token; setting it aborts the request.
            on_event: Callback receiving lifecycle events.

        Returns:
            ``AgentRun`` with the answer, transcript, rounds and usage.

        Raises:
            ProviderError: Backend failure (transient or not), unchanged.
            UnknownToolError: The model requested a tool this agent lacks.
            ToolLoopExceededError: More than ``config.max_rounds`` tool rounds.
            CancelledError: Timeout elapsed or ``cancel`` was set.
        """
        conversation = self.build_conversation(history)
        events = EventEmitter(on_event)
        logger.info(f"Running agent: {self.name}")

        try:
            run = await run_cancellable(
                self._run_loop(conversation, events), timeout=timeout, cancel=cancel
            )
        except Exception as e:
            logger.warning(f"Agent '{self.name}' failed: {type(e).__name__}: {e}")
            events.emit_error(e, agent_name=self.name)
            raise

        logger.info(f"Agent '{self.name}' completed successfully after {run.rounds} tool rounds")
        return run

    def stream(
        self,
        text: str,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> StreamingSession:
        """Stream the answer to a single user message.

        Returns a ``StreamingSession``; iterate it with ``async for``. If the
        model requests tools the session stops, runs the tool round and sets
        ``interrupted``; call ``resume()`` to stream the next turn.
        """
        return self.stream_chat([Message.user(text)], timeout=timeout, cancel=cancel, on_event=on_event)

    def stream_chat(
        self,
        history: History,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> StreamingSession:
        """Stream the answer to the last turn of ``history``."""
        return StreamingSession(
            agent=self,
            conversation=self.build_conversation(history),
            timeout=timeout,
            cancel=cancel,
            on_event=on_event,
        )

    # ------------------------------------------------------------------ #
    # Conversation and loop
    # ------------------------------------------------------------------ #

    def build_conversation(self, history: History) -> Conversation:
        """Prefix ``history`` with the preamble as the system message.

        Raises:
            ConversationError: If ``history`` already has a system message.
        """
        history = Conversation.coerce(history)
        if history.system_message is not None:
            raise ConversationError(
                f"History passed to agent '{self.name}' must not contain a system message; "
                f"the agent's preamble is the system message"
            )
        if not self.config.preamble:
            return history
        return Conversation([Message.system(self.config.preamble), *history])

    async def _run_loop(self, conversation: Conversation, events: EventEmitter) -> AgentRun:
        usage = Usage()
        tools_called: List[str] = []
        rounds = 0
        state = AgentState.AWAITING_MODEL

        while True:
            events.emit_round_start(self.name, rounds + 1)
            response = await self.provider.complete(conversation, self.settings)
            usage.add(response.usage)

            if response.is_final:
                state = self._transition(state, AgentState.DONE)
                conversation = conversation.append(Message.assistant(response.text))
                events.emit_answer(response.text, tools_called, agent_name=self.name)
                return AgentRun(
                    answer=response.text,
                    conversation=conversation,
                    rounds=rounds,
                    tools_called=tools_called,
                    usage=usage,
                    state=state,
                )

            if rounds >= self.config.max_rounds:
                self._transition(state, AgentState.FAILED)
                raise ToolLoopExceededError(self.config.max_rounds, self.name)

            state = self._transition(state, AgentState.AWAITING_TOOLS)
            tools_called.extend(call.tool_name for call in response.tool_calls)
            conversation = await self.run_tool_round(conversation, response, events)
            rounds += 1
            state = self._transition(state, AgentState.AWAITING_MODEL)

    def _transition(self, current: AgentState, new: AgentState) -> AgentState:
        logger.debug(f"Agent '{self.name}': {current.value} -> {new.value}")
        return new

    async def run_tool_round(
        self,
        conversation: Conversation,
        response: CompletionResponse,
        events: Optional[EventEmitter] = None,
    ) -> Conversation:
        """Execute every tool call in ``response`` and return the augmented conversation.

        Calls run concurrently; the round waits for all of them to settle.
        Tool messages are appended in the order the calls were requested.

        Raises:
            UnknownToolError: A call names a tool outside ``config.tools``.
                Nothing is dispatched in that case.
        """
        events = events or EventEmitter()
        calls = response.tool_calls
        for call in calls:
            if call.tool_name not in self.config.tools:
                raise UnknownToolError(call.tool_name, list(self.config.tools))

        conversation = conversation.append(response.to_message())
        for call in calls:
            events.emit_tool_call(call.tool_name, call.arguments, call.id, agent_name=self.name)

        tasks = [asyncio.ensure_future(self._invoke_tool(call)) for call in calls]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        messages = []
        for outcome in outcomes:
            message = outcome.to_message()
            events.emit_tool_result(
                outcome.tool_name,
                message.content,
                is_error=outcome.is_error,
                call_id=outcome.tool_call_id,
                agent_name=self.name,
            )
            messages.append(message)
        return conversation.append(*messages)

    async def _invoke_tool(self, call: ToolInvocationRequest) -> ToolOutcome:
        """Invoke one tool; recoverable failures become ``ToolError`` outcomes."""
        attempts = self.config.tool_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.registry.invoke(call, timeout=self.config.tool_timeout)
            except ToolTimeoutError as e:
                if attempt < attempts:
                    logger.warning(f"{e}; retrying ({attempt}/{self.config.tool_retries})")
                    continue
                logger.warning(f"Agent '{self.name}': {e}")
                return ToolError(call.tool_name, str(e), call.id)
            except SchemaValidationError as e:
                logger.warning(f"Agent '{self.name}': {e}")
                return ToolError(call.tool_name, str(e), call.id)
