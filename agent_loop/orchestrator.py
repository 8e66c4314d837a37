"""Fallback orchestrator - ordered list of agents tried in turn.

Each request goes to the primary agent first. If it fails with a
recoverable error (a transient ``ProviderError`` or a
``ToolLoopExceededError``) the next agent gets the same request. Any other
failure is returned to the caller immediately. When every agent fails,
``AllProvidersExhaustedError`` carries each attempt's error.

Usage:
    orchestrator = FallbackOrchestrator([
        Agent(OpenAIChatProvider("gpt-4o"), config),
        Agent(OpenAIChatProvider("gpt-4o-mini"), config),
    ])
    answer = await orchestrator.prompt("Summarize the report")
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from .core import Agent, StreamingSession
from .core.agent import History
from .core.cancellation import deadline_after, remaining
from .errors import (
    AllProvidersExhaustedError,
    CancelledError,
    ConfigurationError,
    ProviderError,
    ToolLoopExceededError,
)
from .models.messages import Message
from .models.outputs import AgentRun
from .services.events import EventEmitter

logger = logging.getLogger(__name__)


def is_recoverable(error: BaseException) -> bool:
    """Whether the next agent should get a chance after ``error``."""
    if isinstance(error, ProviderError):
        return error.transient
    return isinstance(error, ToolLoopExceededError)


class FallbackOrchestrator:
    """Try agents in order until one answers.

    The agents may use different providers, models or configurations. A
    request's ``timeout`` is a single deadline shared by every attempt.
    """

    def __init__(self, agents: Sequence[Agent]):
        if not agents:
            raise ConfigurationError("FallbackOrchestrator needs at least one agent")
        self.agents: List[Agent] = list(agents)
        logger.info(f"Created fallback orchestrator: {[agent.name for agent in self.agents]}")

    async def prompt(
        self,
        text: str,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> str:
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
        """Run ``history`` through the agents until one succeeds.

        Raises:
            AllProvidersExhaustedError: Every agent failed recoverably.
            Exception: The first non-recoverable error, unchanged.
        """
        history = list(history)
        deadline = deadline_after(timeout)
        events = EventEmitter(on_event)
        errors: List[BaseException] = []

        for index, agent in enumerate(self.agents):
            try:
                return await agent.run(
                    history,
                    timeout=self._time_left(deadline),
                    cancel=cancel,
                    on_event=on_event,
                )
            except Exception as e:
                if not is_recoverable(e):
                    raise
                errors.append(e)
                self._log_fallback(index, e, events)

        raise AllProvidersExhaustedError(errors) from errors[-1]

    async def stream(
        self,
        text: str,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> StreamingSession:
        return await self.stream_chat(
            [Message.user(text)], timeout=timeout, cancel=cancel, on_event=on_event
        )

    async def stream_chat(
        self,
        history: History,
        *,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
        on_event: Optional[Callable] = None,
    ) -> StreamingSession:
        """Return the first agent's stream that starts successfully.

        Fallback only happens before the first chunk. Once text has been
        handed to the caller, a failure surfaces from the session itself.
        """
        history = list(history)
        deadline = deadline_after(timeout)
        events = EventEmitter(on_event)
        errors: List[BaseException] = []

        for index, agent in enumerate(self.agents):
            session = StreamingSession(
                agent=agent,
                conversation=agent.build_conversation(history),
                cancel=cancel,
                on_event=on_event,
                deadline=deadline,
            )
            try:
                return await session.start()
            except Exception as e:
                await session.aclose()
                if not is_recoverable(e):
                    raise
                errors.append(e)
                self._log_fallback(index, e, events)

        raise AllProvidersExhaustedError(errors) from errors[-1]

    @staticmethod
    def _time_left(deadline: Optional[float]) -> Optional[float]:
        left = remaining(deadline)
        if left is not None and left <= 0:
            raise CancelledError("Request deadline passed before the next attempt")
        return left

    def _log_fallback(self, index: int, error: BaseException, events: EventEmitter) -> None:
        failed = self.agents[index].name
        if index + 1 < len(self.agents):
            following = self.agents[index + 1].name
            logger.warning(
                f"Agent '{failed}' failed recoverably ({type(error).__name__}: {error}). "
                f"Falling back to '{following}'."
            )
            events.emit_fallback(failed, following, error)
        else:
            logger.error(f"Agent '{failed}' failed recoverably and no fallback remains: {error}")
