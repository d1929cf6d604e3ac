"""Subtree metrics with path-scoped recursion detection."""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass
from typing import TYPE_CHECKING

from calltrace.core.models import TraceNode, TreeMetrics

if TYPE_CHECKING:
    from calltrace.core.graph.base import GraphModel


@dataclass
class _Frame:
    children: list[TraceNode]
    visited: frozenset[str]
    index: int = 0
    total: int = 0
    max_depth: int = 0

    def finish(self) -> TreeMetrics:
        return TreeMetrics(
            direct_children_count=len(self.children),
            total_descendants=self.total,
            subtree_depth=self.max_depth + 1 if self.children else 1,
            is_recursive=False,
        )


def _enter(
    graph: GraphModel, node: TraceNode, signature: str, visited: frozenset[str]
) -> TreeMetrics | _Frame:
    children = graph.get_children(node.id)
    if signature in visited:
        # Recursive call: count immediate children only
        return TreeMetrics(
            direct_children_count=len(children),
            total_descendants=len(children),
            subtree_depth=1,
            is_recursive=True,
        )
    return _Frame(children=children, visited=visited | {signature})


def calculate_tree_metrics(
    graph: GraphModel,
    node_id: str,
    signature: str | None = None,
    visited_signatures: Set[str] = frozenset(),
) -> TreeMetrics:
    """Compute direct children, total descendants and depth below a node.

    A node whose signature already appears on the path above it is treated as
    recursive and not descended into. Each child gets its own copy of the
    visited set, so the same method on unrelated branches counts normally.

    Post-order DFS on an explicit stack. O(V * D) worst case.
    """
    root = graph.require_node(node_id)
    entered = _enter(
        graph,
        root,
        signature if signature is not None else root.signature,
        frozenset(visited_signatures),
    )
    if isinstance(entered, TreeMetrics):
        return entered

    stack: list[_Frame] = [entered]
    last: TreeMetrics | None = None

    while True:
        frame = stack[-1]
        if last is not None:
            frame.total += 1 + last.total_descendants
            frame.max_depth = max(frame.max_depth, last.subtree_depth)
            last = None

        if frame.index < len(frame.children):
            child = frame.children[frame.index]
            frame.index += 1
            result = _enter(graph, child, child.signature, frame.visited)
            if isinstance(result, TreeMetrics):
                last = result
            else:
                stack.append(result)
            continue

        stack.pop()
        last = frame.finish()
        if not stack:
            return last


def calculate_all_metrics(graph: GraphModel) -> dict[str, TreeMetrics]:
    """Metrics for every node, each computed from an empty visited set."""
    return {node_id: calculate_tree_metrics(graph, node_id) for node_id in graph.nodes}
