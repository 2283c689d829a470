"""MCP protocol layer: JSON-RPC dispatch and the tool registry."""

from kwilt_mcp.mcp.dispatcher import handle_rpc, parse_request_id
from kwilt_mcp.mcp.tools import TOOLS, ToolName, resolve_tool, tool_catalog

__all__ = [
    "handle_rpc",
    "parse_request_id",
    "TOOLS",
    "ToolName",
    "resolve_tool",
    "tool_catalog",
]
