"""
MCP server for Calltrace.

Exposes an interactive call-trace session to LLMs via the Model Context Protocol.

Tools:
    - calltrace_load: Load a call-tree XML trace into the session
    - calltrace_view: Show the currently visible call tree
    - calltrace_toggle: Collapse or shallow-expand a node's subtree
    - calltrace_expand_all: Fully expand a node's subtree
    - calltrace_node: Get status and tree metrics for a node

Usage:
    Run: calltrace-mcp
"""

import asyncio

from calltrace.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
