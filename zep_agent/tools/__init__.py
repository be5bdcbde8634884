"""
Tools package -- the memory tool catalog and its executor.

Exports:
    TOOL_DEFINITIONS: The immutable, ordered tool catalog.
    ToolExecutor: Runs tool invocations against the memory service.
"""

from zep_agent.tools.executor import (
    ToolArgumentError,
    ToolError,
    ToolExecutor,
    ToolInvocation,
    ToolResult,
    UnknownToolError,
    parse_invocation,
    serialize_payload,
)
from zep_agent.tools.registry import (
    TOOL_DEFINITIONS,
    ToolDefinition,
    get_tool,
    tool_names,
    tools_for_api,
)

__all__ = [
    "TOOL_DEFINITIONS",
    "ToolArgumentError",
    "ToolDefinition",
    "ToolError",
    "ToolExecutor",
    "ToolInvocation",
    "ToolResult",
    "UnknownToolError",
    "get_tool",
    "parse_invocation",
    "serialize_payload",
    "tool_names",
    "tools_for_api",
]
