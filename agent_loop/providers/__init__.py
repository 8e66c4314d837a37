"""Completion providers.

Public API::

    from agent_loop.providers import CompletionProvider, OpenAIChatProvider, ProviderSettings
"""

from .base import CompletionProvider, ToolRunner
from .openai_provider import OpenAIChatProvider
from .settings import ProviderSettings

__all__ = [
    "CompletionProvider",
    "ToolRunner",
    "OpenAIChatProvider",
    "ProviderSettings",
]
