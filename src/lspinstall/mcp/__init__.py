"""
MCP tools for lspinstall.
"""

from .mcp_runner import MCPRunner, MCPToolError, main

__all__ = ["MCPRunner", "MCPToolError", "main"]
