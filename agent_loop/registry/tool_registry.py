"""Tool Registry - Centralized definition of all available tools.

A tool is any object implementing the ``Tool`` capability interface:
``definition()`` describes it (name, description, parameter model) and
``call(params)`` runs it. Dispatch is by name at runtime.

Parameters are declared once as a pydantic model. The JSON schema sent to
the provider is generated from that model and the same model validates the
arguments the provider sends back, so the wire contract and the validation
can never drift apart.
"""

import asyncio
import inspect
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Type, Union

from agents import FunctionTool as SDKFunctionTool
from pydantic import BaseModel, ValidationError

from ..errors import (
    DuplicateToolError,
    SchemaValidationError,
    ToolInvocationError,
    ToolTimeoutError,
    UnknownToolError,
)
from ..models.messages import ToolError, ToolInvocationRequest, ToolOutcome, ToolResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """Schema for a single tool."""
    name: str
    description: str
    params_model: Type[BaseModel]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Tool name must not be empty")
        if not (isinstance(self.params_model, type) and issubclass(self.params_model, BaseModel)):
            raise TypeError(
                f"Tool '{self.name}' params_model must be a pydantic BaseModel subclass"
            )

    @property
    def parameter_schema(self) -> Dict[str, Any]:
        """Object schema (type, properties, required) exposed to the provider."""
        schema = self.params_model.model_json_schema()
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema

    def validate(self, arguments: Union[Mapping[str, Any], str, bytes, None]) -> BaseModel:
        """Validate provider arguments against the parameter model.

        Raises:
            SchemaValidationError: If the arguments do not conform.
        """
        try:
            if arguments is None:
                return self.params_model.model_validate({})
            if isinstance(arguments, (str, bytes)):
                return self.params_model.model_validate_json(arguments or "{}")
            if isinstance(arguments, Mapping) and not isinstance(arguments, dict):
                arguments = dict(arguments)
            return self.params_model.model_validate(arguments)
        except ValidationError as exc:
            raise SchemaValidationError(
                self.name,
                f"Invalid arguments for tool '{self.name}': {exc}",
                exc.errors(include_url=False),
            ) from exc

    def to_openai_tool(self) -> Dict[str, Any]:
        """Chat-completions ``tools`` entry for this definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }


class Tool(ABC):
    """Capability interface for anything the model may call."""

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Describe the tool."""

    @abstractmethod
    async def call(self, params: BaseModel) -> Any:
        """Run the tool with already-validated parameters."""


def _is_async(handler: Callable) -> bool:
    if inspect.iscoroutinefunction(handler):
        return True
    return inspect.iscoroutinefunction(getattr(handler, "__call__", None))


class FunctionTool(Tool):
    """Adapt a plain (sync or async) function into a ``Tool``."""

    def __init__(self, definition: ToolDefinition, handler: Callable[[BaseModel], Any]):
        self._definition = definition
        self.handler = handler

    def definition(self) -> ToolDefinition:
        return self._definition

    async def call(self, params: BaseModel) -> Any:
        if _is_async(self.handler):
            return await self.handler(params)
        # Sync handlers run off the event loop so timeouts and cancellation still fire.
        result = await asyncio.to_thread(self.handler, params)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionTool({self._definition.name!r})"


class ToolRegistry:
    """Central registry of all tools available to agents.

    Registration happens up front; afterwards the registry is only read, so
    one instance can be shared by any number of concurrent agent requests.
    Each invocation gets its own validated parameter instance.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: Dict[str, Tool] = {}
        self._in_flight = 0
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> Tool:
        """Register a new tool.

        Raises:
            DuplicateToolError: If the name is taken. The registry is unchanged.
        """
        definition = tool.definition()
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.name] = tool
        logger.debug(f"Registered tool '{definition.name}'")
        return tool

    def register_function(
        self,
        definition: ToolDefinition,
        handler: Callable[[BaseModel], Union[Any, Awaitable[Any]]],
    ) -> Tool:
        """Register ``handler`` under ``definition``."""
        return self.register(FunctionTool(definition, handler))

    def get(self, name: str) -> Optional[Tool]:
        """Get a specific tool by name."""
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def definitions(self, names: Optional[Iterable[str]] = None) -> List[ToolDefinition]:
        """Definitions for ``names`` (in that order), or for every tool.

        Raises:
            UnknownToolError: If a name is not registered.
        """
        if names is None:
            return [tool.definition() for tool in self._tools.values()]
        result = []
        for name in names:
            tool = self._tools.get(name)
            if tool is None:
                raise UnknownToolError(name, self.names())
            result.append(tool.definition())
        return result

    @property
    def in_flight(self) -> int:
        """Number of handler invocations currently running."""
        return self._in_flight

    async def invoke(
        self,
        request: ToolInvocationRequest,
        timeout: Optional[float] = None,
    ) -> ToolOutcome:
        """Validate and run one tool invocation.

        Returns:
            ``ToolResult`` on success, ``ToolError`` if the handler raised.

        Raises:
            UnknownToolError: The tool is not registered.
            SchemaValidationError: Arguments do not match the schema; the
                handler is never called.
            ToolTimeoutError: The handler exceeded ``timeout`` seconds.
        """
        tool = self._tools.get(request.tool_name)
        if tool is None:
            raise UnknownToolError(request.tool_name, self.names())

        definition = tool.definition()
        params = definition.validate(request.arguments)

        self._in_flight += 1
        try:
            if timeout is None:
                return await self._run_handler(tool, definition, params, request)
            try:
                return await asyncio.wait_for(
                    self._run_handler(tool, definition, params, request), timeout
                )
            except asyncio.TimeoutError:
                raise ToolTimeoutError(definition.name, timeout) from None
        finally:
            self._in_flight -= 1

    async def _run_handler(
        self,
        tool: Tool,
        definition: ToolDefinition,
        params: BaseModel,
        request: ToolInvocationRequest,
    ) -> ToolOutcome:
        logger.debug(f"Invoking tool '{definition.name}' (call {request.id})")
        try:
            output = await tool.call(params)
        except Exception as e:
            logger.warning(f"Tool '{definition.name}' failed: {e}")
            return ToolError(definition.name, str(e) or type(e).__name__, request.id)
        return ToolResult(definition.name, output, request.id)

    def to_function_tools(
        self,
        names: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> List[SDKFunctionTool]:
        """Export tools as OpenAI Agents SDK ``FunctionTool`` objects.

        The exported tools dispatch back through ``invoke`` so validation,
        timeouts and error mapping stay identical when the tools are run by
        the SDK's ``Runner``.
        """
        return [
            SDKFunctionTool(
                name=definition.name,
                description=definition.description,
                params_json_schema=definition.parameter_schema,
                on_invoke_tool=self._sdk_invoker(definition.name, timeout),
                strict_json_schema=False,
            )
            for definition in self.definitions(names)
        ]

    def _sdk_invoker(self, tool_name: str, timeout: Optional[float]):
        async def on_invoke_tool(ctx: Any, input_json: str) -> str:
            call_id = getattr(ctx, "tool_call_id", None) or f"sdk-{uuid.uuid4().hex[:12]}"
            request = ToolInvocationRequest(call_id, tool_name, input_json or "{}")
            try:
                outcome = await self.invoke(request, timeout=timeout)
            except ToolInvocationError as e:
                return f"Error: {e}"
            return outcome.to_message().content

        return on_invoke_tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


# Global tool registry instance
_global_registry = ToolRegistry()


def get_tool_registry() -> ToolRegistry:
    """Get the global tool registry."""
    return _global_registry


def register_tool(
    name: str,
    description: str,
    params: Type[BaseModel],
):
    """Decorator to register a function as a tool in the global registry.

    Usage:
        class WeatherParams(BaseModel):
            city: str

        @register_tool(
            name="get_weather",
            description="Current weather for a city",
            params=WeatherParams,
        )
        async def get_weather(params: WeatherParams) -> dict:
            ...
    """
    def decorator(func):
        _global_registry.register_function(ToolDefinition(name, description, params), func)
        return func
    return decorator
