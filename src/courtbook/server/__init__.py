"""HTTP and MCP transports for the courtbook tool facade."""

from courtbook.server.http_app import create_app
from courtbook.server.mcp_app import build_tool_server

__all__ = ["build_tool_server", "create_app"]
