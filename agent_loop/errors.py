"""Error taxonomy for agent execution.

Every failure raised by the library derives from ``AgentLoopError`` so an
API layer can catch one type. The hierarchy mirrors where a failure comes
from:

- ``ProviderError``: the completion backend failed. ``transient`` tells the
  fallback layer whether trying again (or trying another backend) is safe.
- ``ToolInvocationError``: a single tool call could not be executed
  (``UnknownToolError``, ``SchemaValidationError``, ``ToolTimeoutError``).
- ``DuplicateToolError``: a tool name was registered twice.
- ``ToolLoopExceededError``: the model kept requesting tools past the
  configured iteration bound.
- ``CancelledError``: the caller's timeout or cancellation token fired.
- ``AllProvidersExhaustedError``: every agent behind a fallback orchestrator
  failed.
"""

from typing import Any, List, Optional, Sequence


class AgentLoopError(Exception):
    """Base class for all agent_loop errors."""


class ConfigurationError(AgentLoopError, ValueError):
    """Invalid agent or provider configuration. Never retried."""


class ConversationError(AgentLoopError, ValueError):
    """A conversation violates its ordering or pairing invariants."""


class ProviderError(AgentLoopError):
    """A completion backend failed.

    Attributes:
        transient: True for conditions that are safe to retry or fall back
            on (timeouts, rate limits, 5xx responses). False for caller
            errors (bad request, authentication) that would fail again.
        provider: Name of the provider that raised, when known.
    """

    def __init__(self, message: str, *, transient: bool, provider: Optional[str] = None):
        super().__init__(message)
        self.transient = transient
        self.provider = provider

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, transient={self.transient}, "
            f"provider={self.provider!r})"
        )


class ToolInvocationError(AgentLoopError):
    """Base for failures tied to one tool invocation."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class UnknownToolError(ToolInvocationError):
    """The requested tool is not registered (or not enabled for the agent)."""

    def __init__(self, tool_name: str, available: Optional[Sequence[str]] = None):
        self.available = list(available or [])
        message = f"Tool '{tool_name}' not found."
        if available is not None:
            message += f" Available tools: {self.available}"
        super().__init__(tool_name, message)


class SchemaValidationError(ToolInvocationError):
    """Tool arguments do not conform to the tool's parameter schema.

    Attributes:
        errors: Structured validation errors (pydantic's ``errors()`` list).
    """

    def __init__(self, tool_name: str, message: str, errors: Optional[List[Any]] = None):
        super().__init__(tool_name, message)
        self.errors = errors or []


class ToolTimeoutError(ToolInvocationError):
    """A tool handler did not finish within its timeout."""

    def __init__(self, tool_name: str, timeout: float):
        super().__init__(tool_name, f"Tool '{tool_name}' timed out after {timeout}s")
        self.timeout = timeout


class DuplicateToolError(AgentLoopError):
    """A tool with the same name is already registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' is already registered")
        self.tool_name = tool_name


class ToolLoopExceededError(AgentLoopError):
    """The model requested more tool rounds than the agent allows."""

    def __init__(self, max_rounds: int, agent_name: Optional[str] = None):
        who = f"Agent '{agent_name}'" if agent_name else "Agent"
        super().__init__(f"{who} exceeded the limit of {max_rounds} tool rounds")
        self.max_rounds = max_rounds
        self.agent_name = agent_name


class CancelledError(AgentLoopError):
    """The request was cancelled by its timeout or cancellation token.

    Not to be confused with ``asyncio.CancelledError``, which signals task
    cancellation inside the event loop.
    """


class AllProvidersExhaustedError(AgentLoopError):
    """Every agent behind a fallback orchestrator failed.

    Attributes:
        errors: The error raised by each attempt, in order.
    """

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        last = self.errors[-1] if self.errors else None
        super().__init__(
            f"All {len(self.errors)} providers failed; last error: {last}"
        )

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.errors[-1] if self.errors else None
