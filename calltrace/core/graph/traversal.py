"""Graph traversal: descendants by BFS, visible tree walk."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from calltrace.core.graph.base import GraphModel
    from calltrace.core.models import TraceNode

logger = logging.getLogger(__name__)


def get_child_ids(graph: GraphModel, node_id: str) -> list[str]:
    """Direct callees by outgoing edge, in insertion order. O(out-degree)."""
    graph.require_node(node_id)
    return [target for target, _ in graph.outgoing(node_id) if target in graph]


def get_all_descendants(graph: GraphModel, node_id: str) -> set[str]:
    """All nodes reachable from node_id, excluding node_id itself.

    Level-order BFS with a visited set seeded with the start node, so cyclic
    graphs terminate and no node is visited twice. O(V + E).
    """
    graph.require_node(node_id)
    visited: set[str] = {node_id}
    descendants: set[str] = set()
    level = get_child_ids(graph, node_id)

    while level:
        next_level: list[str] = []
        for child_id in level:
            if child_id in visited:
                continue
            visited.add(child_id)
            descendants.add(child_id)
            next_level.extend(
                target for target, _ in graph.outgoing(child_id) if target not in visited
            )
        level = next_level

    logger.debug("Found %d total descendants for node %s", len(descendants), node_id)
    return descendants


def iter_visible_tree(
    graph: GraphModel, root_id: str | None = None
) -> Iterator[tuple[TraceNode, int, str | None]]:
    """Pre-order walk over visible nodes reachable through visible edges.

    Yields (node, depth, parent id). Each node is yielded at most once.
    """
    start_id = root_id if root_id is not None else graph.root_id
    if start_id is None:
        return
    start = graph.require_node(start_id)
    if not start.visible:
        return

    seen: set[str] = set()
    stack: list[tuple[str, int, str | None]] = [(start_id, 0, None)]
    while stack:
        node_id, depth, parent_id = stack.pop()
        if node_id in seen:
            continue
        seen.add(node_id)
        yield graph.nodes[node_id], depth, parent_id

        children = [
            target
            for target, edge in graph.outgoing(node_id)
            if edge.visible and target in graph and graph.nodes[target].visible
        ]
        for child_id in reversed(children):
            if child_id not in seen:
                stack.append((child_id, depth + 1, node_id))
