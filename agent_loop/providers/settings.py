"""Provider connection settings.

Credentials and endpoints are configuration owned by the application, not
by the agent core. ``ProviderSettings.from_env`` is the single place that
reads the process environment; everything else receives a settings object
or a ready-made client.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..errors import ConfigurationError

DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class ProviderSettings:
    """Connection settings for an OpenAI-compatible endpoint.

    Attributes:
        api_key: API key; None lets the SDK apply its own lookup.
        base_url: Alternative endpoint (proxies, compatible servers).
        model: Model identifier.
        timeout: Request timeout in seconds.
        max_retries: Retries performed by the SDK client itself.
    """
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    timeout: float = 60.0
    max_retries: int = 2

    def __post_init__(self):
        if not self.model:
            raise ConfigurationError("Provider model must not be empty")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")

    @classmethod
    def from_env(
        cls,
        prefix: str = "OPENAI",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ProviderSettings":
        """Build settings from ``<PREFIX>_API_KEY``, ``_BASE_URL``, ``_MODEL``,
        ``_TIMEOUT`` and ``_MAX_RETRIES``.

        Args:
            prefix: Variable prefix, e.g. "OPENAI" or "GROQ".
            environ: Mapping to read instead of ``os.environ``.
        """
        env = os.environ if environ is None else environ
        try:
            timeout = float(env.get(f"{prefix}_TIMEOUT", cls.timeout))
            max_retries = int(env.get(f"{prefix}_MAX_RETRIES", cls.max_retries))
        except ValueError as e:
            raise ConfigurationError(f"Invalid {prefix} provider setting: {e}") from e
        return cls(
            api_key=env.get(f"{prefix}_API_KEY"),
            base_url=env.get(f"{prefix}_BASE_URL"),
            model=env.get(f"{prefix}_MODEL", DEFAULT_MODEL),
            timeout=timeout,
            max_retries=max_retries,
        )
