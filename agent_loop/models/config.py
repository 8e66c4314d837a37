"""Agent configuration.

``AgentConfig`` replaces step-by-step builder configuration: it is validated
as a whole on construction, so there is never a half-configured agent. To
change anything, build a new config (``config.replace(...)``) and a new
Agent.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Tuple

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..registry.tool_registry import ToolDefinition


DEFAULT_MAX_ROUNDS = 5
DEFAULT_TOOL_TIMEOUT = 30.0


@dataclass(frozen=True)
class AgentConfig:
    """Immutable agent configuration.

    Attributes:
        name: Agent name used in logs, events and errors.
        preamble: System instruction text; sent as the first message.
        temperature: Sampling temperature in [0, 2].
        max_tokens: Optional cap on generated tokens per round.
        tools: Names of registry tools this agent may call.
        max_rounds: Maximum number of tool rounds per request.
        tool_timeout: Per-invocation timeout in seconds (None disables it).
        tool_retries: Extra attempts for a tool invocation that timed out.
    """

    name: str = "agent"
    preamble: str = ""
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    tools: Tuple[str, ...] = field(default_factory=tuple)
    max_rounds: int = DEFAULT_MAX_ROUNDS
    tool_timeout: Optional[float] = DEFAULT_TOOL_TIMEOUT
    tool_retries: int = 0

    def __post_init__(self):
        if isinstance(self.tools, str):
            raise ConfigurationError(f"tools must be a sequence of names, got the string {self.tools!r}")
        # Keep declaration order, drop duplicates.
        object.__setattr__(self, "tools", tuple(dict.fromkeys(self.tools)))

        if not self.name:
            raise ConfigurationError("Agent name must not be empty")
        if isinstance(self.temperature, bool) or not isinstance(self.temperature, (int, float)):
            raise ConfigurationError(f"temperature must be a number, got {self.temperature!r}")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.max_tokens is not None and (
            isinstance(self.max_tokens, bool)
            or not isinstance(self.max_tokens, int)
            or self.max_tokens <= 0
        ):
            raise ConfigurationError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")
        if isinstance(self.max_rounds, bool) or not isinstance(self.max_rounds, int) or self.max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be a positive integer, got {self.max_rounds!r}")
        if self.tool_timeout is not None and self.tool_timeout <= 0:
            raise ConfigurationError(f"tool_timeout must be positive, got {self.tool_timeout}")
        if isinstance(self.tool_retries, bool) or not isinstance(self.tool_retries, int) or self.tool_retries < 0:
            raise ConfigurationError(f"tool_retries must be >= 0, got {self.tool_retries!r}")

    def replace(self, **changes) -> "AgentConfig":
        """Return a new, re-validated config with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class CompletionSettings:
    """What the agent sends to the provider alongside the conversation."""

    temperature: float = 0.7
    max_tokens: Optional[int] = None
    tools: Tuple["ToolDefinition", ...] = ()

    @classmethod
    def from_config(
        cls, config: AgentConfig, tools: Tuple["ToolDefinition", ...] = ()
    ) -> "CompletionSettings":
        return cls(temperature=config.temperature, max_tokens=config.max_tokens, tools=tuple(tools))
