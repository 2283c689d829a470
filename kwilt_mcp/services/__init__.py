"""Business services behind the MCP tools."""
