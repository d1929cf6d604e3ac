"""
Core module: data models and exceptions.

Models (models.py):
    - TraceNode: A method invocation in the call trace
    - TraceEdge: A call from a parent invocation to a child invocation
    - NodeStatus: Derived fan-out, entry point and recursion flags
    - TreeMetrics: Size and depth of the subtree below a node

Exceptions (exceptions.py):
    - CallTraceError: Base exception for all calltrace errors
    - NodeNotFoundError: Requested node id doesn't exist
    - MalformedNodeError: Node is missing its class or method name
    - TraceParseError: Trace file could not be read or parsed
"""

from calltrace.core.exceptions import (
    CallTraceError,
    MalformedNodeError,
    NodeNotFoundError,
    TraceParseError,
)
from calltrace.core.models import NodeStatus, TraceEdge, TraceNode, TreeMetrics

__all__ = [
    # Models
    "TraceNode",
    "TraceEdge",
    "NodeStatus",
    "TreeMetrics",
    # Exceptions
    "CallTraceError",
    "NodeNotFoundError",
    "MalformedNodeError",
    "TraceParseError",
]
