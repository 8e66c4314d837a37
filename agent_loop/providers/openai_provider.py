"""OpenAI chat-completions provider.

Maps ``Conversation``/``CompletionSettings`` onto the chat-completions wire
format with ``openai.AsyncOpenAI`` and maps responses, streams and errors
back. Works with any OpenAI-compatible endpoint via ``base_url``.

Usage:
    from agent_loop.providers import OpenAIChatProvider, ProviderSettings

    provider = OpenAIChatProvider(settings=ProviderSettings.from_env())
    response = await provider.complete(conversation, settings)
"""

import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Optional

import openai
from agents import Usage
from openai import AsyncOpenAI

from ..errors import ProviderError
from ..models.config import CompletionSettings
from ..models.messages import (
    CompletionResponse,
    Conversation,
    Message,
    Role,
    StreamChunk,
    ToolInvocationRequest,
)
from .base import CompletionProvider
from .settings import ProviderSettings

logger = logging.getLogger(__name__)

# Status codes worth retrying or falling back on.
TRANSIENT_STATUS_CODES = frozenset({408, 409, 429})


class OpenAIChatProvider(CompletionProvider):
    """``CompletionProvider`` backed by the chat-completions API."""

    def __init__(
        self,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        settings: Optional[ProviderSettings] = None,
        name: Optional[str] = None,
    ):
        """
        Args:
            model: Model identifier; defaults to ``settings.model``.
            client: Pre-built client. When omitted one is created lazily
                from ``settings`` on first use.
            settings: Connection settings.
            name: Provider name for logs and errors; defaults to
                ``openai:<model>``.
        """
        self.settings = settings or ProviderSettings()
        self.model = model or self.settings.model
        self.name = name or f"openai:{self.model}"
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.timeout,
                max_retries=self.settings.max_retries,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # CompletionProvider
    # ------------------------------------------------------------------ #

    async def complete(
        self, conversation: Conversation, settings: CompletionSettings
    ) -> CompletionResponse:
        kwargs = self._build_request(conversation, settings)
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise self._classify_error(e) from e

        if not response.choices:
            raise ProviderError(
                f"{self.name}: response contained no choices",
                transient=True,
                provider=self.name,
            )

        message = response.choices[0].message
        tool_calls = tuple(
            self._parse_tool_call(call.id, call.function.name, call.function.arguments)
            for call in (message.tool_calls or ())
        )
        return CompletionResponse(
            text=message.content or "",
            tool_calls=tool_calls,
            usage=self._convert_usage(response.usage),
        )

    async def stream(
        self, conversation: Conversation, settings: CompletionSettings
    ) -> AsyncIterator[StreamChunk]:
        kwargs = self._build_request(conversation, settings)
        kwargs["stream"] = True
        kwargs["stream_options"] = {"include_usage": True}

        try:
            response_stream = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            yield StreamChunk.of_error(self._classify_error(e))
            return

        text_parts = []
        pending_calls: Dict[int, Dict[str, str]] = {}
        usage = None

        try:
            # Leaving the block (including an early aclose()) closes the HTTP response.
            async with response_stream:
                async for chunk in response_stream:
                    if getattr(chunk, "usage", None):
                        usage = self._convert_usage(chunk.usage)
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta

                    if delta.content:
                        text_parts.append(delta.content)
                        yield StreamChunk.of_text(delta.content)

                    for call in delta.tool_calls or ():
                        slot = pending_calls.setdefault(
                            call.index, {"id": "", "name": "", "arguments": ""}
                        )
                        if call.id:
                            slot["id"] = call.id
                        if call.function is not None:
                            if call.function.name:
                                slot["name"] += call.function.name
                            if call.function.arguments:
                                slot["arguments"] += call.function.arguments
        except openai.OpenAIError as e:
            yield StreamChunk.of_error(self._classify_error(e))
            return

        if pending_calls:
            calls = [
                self._parse_tool_call(slot["id"], slot["name"], slot["arguments"])
                for _, slot in sorted(pending_calls.items())
            ]
            yield StreamChunk.of_tool_calls(calls, text="".join(text_parts), usage=usage)
        else:
            yield StreamChunk.done(usage)

    # ------------------------------------------------------------------ #
    # Wire format helpers
    # ------------------------------------------------------------------ #

    def _build_request(
        self, conversation: Conversation, settings: CompletionSettings
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [self._to_wire(message) for message in conversation],
            "temperature": settings.temperature,
        }
        if settings.max_tokens is not None:
            kwargs["max_tokens"] = settings.max_tokens
        if settings.tools:
            kwargs["tools"] = [definition.to_openai_tool() for definition in settings.tools]
        return kwargs

    @staticmethod
    def _to_wire(message: Message) -> Dict[str, Any]:
        if message.role is Role.TOOL:
            return {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.content,
            }
        if message.role is Role.ASSISTANT and message.tool_calls:
            return {
                "role": "assistant",
                "content": message.content or None,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.tool_name,
                            "arguments": (
                                call.arguments
                                if isinstance(call.arguments, str)
                                else json.dumps(dict(call.arguments))
                            ),
                        },
                    }
                    for call in message.tool_calls
                ],
            }
        return {"role": message.role.value, "content": message.content}

    @staticmethod
    def _parse_tool_call(
        call_id: Optional[str], name: str, arguments: Optional[str]
    ) -> ToolInvocationRequest:
        """Decode arguments; keep the raw text if it is not a JSON object."""
        parsed: Any = arguments or ""
        if arguments:
            try:
                decoded = json.loads(arguments)
            except json.JSONDecodeError:
                logger.warning(f"Tool call '{name}' has undecodable arguments: {arguments[:200]}")
            else:
                if isinstance(decoded, dict):
                    parsed = decoded
        else:
            parsed = {}
        return ToolInvocationRequest(
            id=call_id or f"call_{uuid.uuid4().hex[:24]}",
            tool_name=name,
            arguments=parsed,
        )

    @staticmethod
    def _convert_usage(usage: Any) -> Usage:
        if usage is None:
            return Usage(requests=1)
        return Usage(
            requests=1,
            input_tokens=usage.prompt_tokens or 0,
            output_tokens=usage.completion_tokens or 0,
            total_tokens=usage.total_tokens or 0,
        )

    def _classify_error(self, error: Exception) -> ProviderError:
        """Map an OpenAI SDK exception onto ``ProviderError``."""
        if isinstance(error, (openai.APITimeoutError, openai.APIConnectionError)):
            transient = True
        elif isinstance(error, openai.APIStatusError):
            status = error.status_code
            transient = status in TRANSIENT_STATUS_CODES or status >= 500
        else:
            transient = False

        logger.debug(f"{self.name} error classified transient={transient}: {error}")
        return ProviderError(f"{self.name}: {error}", transient=transient, provider=self.name)
