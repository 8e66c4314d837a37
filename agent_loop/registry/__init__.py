"""Tool Registry System."""

from .tool_registry import (
    FunctionTool,
    Tool,
    ToolDefinition,
    ToolRegistry,
    get_tool_registry,
    register_tool,
)

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolDefinition",
    "ToolRegistry",
    "get_tool_registry",
    "register_tool",
]
