"""Tools package.

Built-in tools agents can call. Register them on a ``ToolRegistry`` and list
their names in ``AgentConfig.tools``.

Example:
    from agent_loop.registry import ToolRegistry
    from agent_loop.tools import CalculatorTool, HttpRequestTool

    registry = ToolRegistry([CalculatorTool(), HttpRequestTool()])

Custom tools either subclass ``Tool`` or use the ``register_tool`` decorator:

    from pydantic import BaseModel
    from agent_loop.registry import register_tool

    class EchoParams(BaseModel):
        text: str

    @register_tool(name="echo", description="Repeat the text", params=EchoParams)
    async def echo(params: EchoParams) -> str:
        return params.text
"""

from .calculator import CalculatorError, CalculatorTool, evaluate
from .http import HttpRequestTool, HttpToolError

__all__ = [
    "CalculatorError",
    "CalculatorTool",
    "HttpRequestTool",
    "HttpToolError",
    "evaluate",
]
