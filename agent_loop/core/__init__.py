"""Core agent execution components.

This module contains fundamental components for agent execution:
- Agent: Tool-augmented completion loop over one provider
- StreamingSession: Incremental text for one model turn
- run_cancellable: Timeout / cancellation-token guard for requests
"""

from .agent import Agent
from .cancellation import run_cancellable
from .streaming import StreamingSession

__all__ = ["Agent", "StreamingSession", "run_cancellable"]
