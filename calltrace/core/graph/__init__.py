"""
Call-trace graph structures and algorithms.

Data Structures:
    - GraphModel: Adjacency list representation with O(1) lookups
    - AncestorPath: Immutable signature -> node id context for one path

Algorithms:
    - status: Fan-out, entry point and recursion classification
    - metrics: Subtree size/depth with path-scoped cycle guard
    - traversal: BFS descendants, visible tree walk
    - visibility: Collapse/expand state machine

Loading:
    - load_from_xml(): Build, classify and measure a graph from a trace file
"""

from calltrace.core.graph.base import GraphModel
from calltrace.core.graph.loader import TraceFilter, load_from_string, load_from_xml
from calltrace.core.graph.metrics import calculate_all_metrics, calculate_tree_metrics
from calltrace.core.graph.status import AncestorPath, classify_graph, compute_node_status
from calltrace.core.graph.visibility import LayoutTrigger, VisibilityController

__all__ = [
    "GraphModel",
    "AncestorPath",
    "LayoutTrigger",
    "TraceFilter",
    "VisibilityController",
    "calculate_all_metrics",
    "calculate_tree_metrics",
    "classify_graph",
    "compute_node_status",
    "load_from_string",
    "load_from_xml",
]
