"""Core GraphModel class with adjacency list representation."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from calltrace.core.exceptions import NodeNotFoundError
from calltrace.core.models import TraceEdge, TraceNode


class GraphModel:
    """Directed graph of call-trace invocations.

    Uses adjacency lists for O(1) neighbor lookup. Owns all node and edge
    storage; per-node status and visibility fields are mutated in place.
    """

    __slots__ = ("_out", "_in", "_nodes", "_edges", "_root_id")

    def __init__(self) -> None:
        self._out: dict[str, list[tuple[str, TraceEdge]]] = {}
        self._in: dict[str, list[tuple[str, TraceEdge]]] = {}
        self._nodes: dict[str, TraceNode] = {}
        self._edges: dict[str, TraceEdge] = {}
        self._root_id: str | None = None

    def add_node(self, node: TraceNode) -> None:
        """Add a node. O(1)."""
        self._nodes[node.id] = node
        self._out.setdefault(node.id, [])
        self._in.setdefault(node.id, [])
        if node.is_root and self._root_id is None:
            self._root_id = node.id

    def add_edge(self, edge: TraceEdge) -> None:
        """Add a call edge. O(1)."""
        self._edges[edge.id] = edge
        self._out.setdefault(edge.source, []).append((edge.target, edge))
        self._in.setdefault(edge.target, []).append((edge.source, edge))

    def add_call(self, parent_id: str, child_id: str) -> TraceEdge:
        """Record a call: edge parent -> child plus the parent's child order.

        Repeating a call returns the existing edge. O(1).
        """
        parent = self.require_node(parent_id)
        edge = TraceEdge(source=parent_id, target=child_id)
        existing = self.get_edge(edge.id)
        if existing is not None:
            return existing
        self.add_edge(edge)
        parent.children.append(child_id)
        return edge

    def get_node(self, node_id: str) -> TraceNode | None:
        """Get node by ID. O(1)."""
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> TraceNode:
        """Get node by ID, raising NodeNotFoundError if absent."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_edge(self, edge_id: str) -> TraceEdge | None:
        """Get edge by ID. O(1)."""
        return self._edges.get(edge_id)

    def get_children(self, node_id: str) -> list[TraceNode]:
        """Direct children in call order. Unknown child ids are skipped."""
        node = self.require_node(node_id)
        return [self._nodes[cid] for cid in node.children if cid in self._nodes]

    def outgoing(self, node_id: str) -> list[tuple[str, TraceEdge]]:
        """Outgoing (target id, edge) pairs. O(out-degree)."""
        return self._out.get(node_id, [])

    def incoming(self, node_id: str) -> list[tuple[str, TraceEdge]]:
        """Incoming (source id, edge) pairs. O(in-degree)."""
        return self._in.get(node_id, [])

    def incident_edges(self, node_id: str) -> Iterator[TraceEdge]:
        """All edges touching a node, in either direction."""
        for _, edge in self._out.get(node_id, []):
            yield edge
        for _, edge in self._in.get(node_id, []):
            yield edge

    def visible_node_ids(self) -> set[str]:
        return {nid for nid, node in self._nodes.items() if node.visible}

    def visible_edge_ids(self) -> set[str]:
        return {eid for eid, edge in self._edges.items() if edge.visible}

    def clear(self) -> None:
        """Drop every node and edge (whole-graph reload)."""
        self._out.clear()
        self._in.clear()
        self._nodes.clear()
        self._edges.clear()
        self._root_id = None

    def to_elements(self) -> dict[str, list[dict[str, Any]]]:
        """Cytoscape-style elements for rendering collaborators."""
        return {
            "nodes": [{"data": node.to_dict()} for node in self._nodes.values()],
            "edges": [{"data": edge.to_dict()} for edge in self._edges.values()],
        }

    @property
    def root_id(self) -> str | None:
        return self._root_id

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    @property
    def nodes(self) -> dict[str, TraceNode]:
        return self._nodes

    @property
    def edges(self) -> dict[str, TraceEdge]:
        return self._edges

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __repr__(self) -> str:
        return f"GraphModel(nodes={self.num_nodes}, edges={self.num_edges})"
