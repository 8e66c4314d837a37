"""Completion provider capability interface.

A ``CompletionProvider`` is the only seam between the agent core and a
concrete model backend. The core hands it an immutable ``Conversation`` and
``CompletionSettings`` and gets back either a final answer or tool requests.
Backends map their own failures onto ``ProviderError`` with the
``transient`` flag set according to whether retrying makes sense.
"""

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional

from ..errors import ConfigurationError, ToolLoopExceededError
from ..models.config import DEFAULT_MAX_ROUNDS, CompletionSettings
from ..models.messages import CompletionResponse, Conversation, StreamChunk

logger = logging.getLogger(__name__)

ToolRunner = Callable[[Conversation, CompletionResponse], Awaitable[Conversation]]


class CompletionProvider(ABC):
    """Capability interface wrapping a model backend.

    Implementations must be safe to share between concurrent requests:
    nothing about a request may be stored on the provider instance.
    """

    name: str = "provider"

    @abstractmethod
    async def complete(
        self, conversation: Conversation, settings: CompletionSettings
    ) -> CompletionResponse:
        """Run a single round.

        Raises:
            ProviderError: On any backend failure.
        """

    @abstractmethod
    def stream(
        self, conversation: Conversation, settings: CompletionSettings
    ) -> AsyncIterator[StreamChunk]:
        """Stream a single round as chunks, ending with a terminal chunk.

        Failures are delivered as an ``error`` chunk rather than raised.
        Closing the iterator early must release the underlying transport.
        """

    async def chat(
        self,
        conversation: Conversation,
        settings: CompletionSettings,
        tool_runner: Optional[ToolRunner] = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
    ) -> str:
        """Repeat ``complete`` until the model stops requesting tools.

        Args:
            conversation: Conversation to send.
            settings: Sampling parameters and tool schemas.
            tool_runner: Executes one tool round and returns the augmented
                conversation. Required if the model may request tools.
            max_rounds: Maximum number of tool rounds.

        Returns:
            The final answer text.
        """
        rounds = 0
        while True:
            response = await self.complete(conversation, settings)
            if response.is_final:
                return response.text
            if tool_runner is None:
                raise ConfigurationError(
                    f"Provider '{self.name}' returned tool calls but no tool runner was supplied"
                )
            if rounds >= max_rounds:
                raise ToolLoopExceededError(max_rounds)
            conversation = await tool_runner(conversation, response)
            rounds += 1
            logger.debug(f"Provider '{self.name}' chat finished tool round {rounds}")
