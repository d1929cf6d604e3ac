"""MCP server implementation for Calltrace."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from calltrace.core.exceptions import CallTraceError
from calltrace.core.graph import TraceFilter, VisibilityController, load_from_xml
from calltrace.core.graph.status import DEFAULT_FANOUT_THRESHOLD
from calltrace.core.graph.traversal import iter_visible_tree

logger = logging.getLogger(__name__)

server = Server("calltrace")

_session: dict[str, VisibilityController] = {}

_NODE_ID_SCHEMA = {
    "type": "object",
    "properties": {
        "node_id": {
            "type": "string",
            "description": "Id of the node (as shown by calltrace_view)",
        },
    },
    "required": ["node_id"],
}


def _get_controller() -> VisibilityController:
    """Get the controller for the loaded trace."""
    controller = _session.get("controller")
    if controller is None:
        raise CallTraceError("No trace loaded. Call calltrace_load first.")
    return controller


def _node_summary(node: Any, depth: int | None = None) -> dict[str, Any]:
    """Convert a TraceNode to a compact JSON-serializable dict."""
    result = {
        "id": node.id,
        "label": node.label,
        "collapsed": node.collapsed,
        "status": node.status.to_dict(),
    }
    if depth is not None:
        result["depth"] = depth
    return result


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="calltrace_load",
            description=(
                "Load a call-tree XML trace. Replaces any previously loaded trace. "
                "Nodes are classified (fan-out, entry points, recursion) on load."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path to the call-tree XML file",
                    },
                    "fanout_threshold": {
                        "type": "integer",
                        "description": "Children needed to flag fan-out (default: 4)",
                        "default": DEFAULT_FANOUT_THRESHOLD,
                    },
                    "include_packages": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Only keep classes under these packages (optional)",
                    },
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="calltrace_view",
            description="Show the currently visible call tree in pre-order with depths.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="calltrace_toggle",
            description=(
                "Toggle a node. Collapsing hides every descendant; expanding reveals "
                "only direct children."
            ),
            inputSchema=_NODE_ID_SCHEMA,
        ),
        Tool(
            name="calltrace_expand_all",
            description="Reveal the whole subtree below a node, clearing nested collapses.",
            inputSchema=_NODE_ID_SCHEMA,
        ),
        Tool(
            name="calltrace_node",
            description="Get the status flags and tree metrics for a node.",
            inputSchema=_NODE_ID_SCHEMA,
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "calltrace_load":
            result = _handle_load(
                arguments["path"],
                arguments.get("fanout_threshold", DEFAULT_FANOUT_THRESHOLD),
                arguments.get("include_packages") or [],
            )
        elif name == "calltrace_view":
            result = _handle_view()
        elif name == "calltrace_toggle":
            result = _handle_toggle(arguments["node_id"])
        elif name == "calltrace_expand_all":
            result = _handle_expand_all(arguments["node_id"])
        elif name == "calltrace_node":
            result = _handle_node(arguments["node_id"])
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except CallTraceError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except KeyError as e:
        return [TextContent(type="text", text=json.dumps({"error": f"Missing argument {e}"}))]


def _handle_load(path: str, fanout_threshold: int, include_packages: list[str]) -> dict[str, Any]:
    """Handle calltrace_load tool."""
    trace_filter = TraceFilter(included_packages=tuple(include_packages))
    graph = load_from_xml(Path(path), trace_filter, fanout_threshold=fanout_threshold)
    _session["controller"] = VisibilityController(graph)
    logger.info("Loaded %s: %r", path, graph)
    return {"nodes": graph.num_nodes, "edges": graph.num_edges, "root": graph.root_id}


def _handle_view() -> dict[str, Any]:
    """Handle calltrace_view tool."""
    graph = _get_controller().graph
    return {
        "nodes": [_node_summary(node, depth) for node, depth, _ in iter_visible_tree(graph)],
        "visible_edges": len(graph.visible_edge_ids()),
    }


def _handle_toggle(node_id: str) -> dict[str, Any]:
    """Handle calltrace_toggle tool."""
    controller = _get_controller()
    collapsed = controller.toggle_children(node_id)
    return {"node_id": node_id, "collapsed": collapsed}


def _handle_expand_all(node_id: str) -> dict[str, Any]:
    """Handle calltrace_expand_all tool."""
    expanded = _get_controller().expand_all_descendants(node_id)
    return {"node_id": node_id, "expanded": sorted(expanded)}


def _handle_node(node_id: str) -> dict[str, Any]:
    """Handle calltrace_node tool."""
    node = _get_controller().graph.require_node(node_id)
    return node.to_dict()


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
