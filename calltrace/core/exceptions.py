"""Calltrace custom exceptions."""


class CallTraceError(Exception):
    """Base exception for calltrace errors."""


class NodeNotFoundError(CallTraceError):
    """Node id not present in the graph."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node with ID '{node_id}' not found")
        self.node_id = node_id


class MalformedNodeError(CallTraceError):
    """Node is missing its class or method name."""


class TraceParseError(CallTraceError):
    """Error reading or parsing a trace file."""
