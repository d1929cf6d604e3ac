"""Collapse/expand state machine for call-tree subtrees."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from calltrace.core.graph.traversal import get_all_descendants, get_child_ids

if TYPE_CHECKING:
    from calltrace.core.graph.base import GraphModel

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT = "breadthfirst"


class LayoutTrigger(Protocol):
    """Re-lays-out the graph after its visible set changed."""

    def run_layout(self, graph: GraphModel, layout_name: str, fit: bool) -> object: ...


class VisibilityController:
    """Toggles collapsed state and keeps node/edge display flags consistent.

    Collapsing hides every descendant; expanding with ``toggle_children`` only
    reveals direct children, while ``expand_all_descendants`` unfolds the whole
    subtree regardless of nested collapse state.
    """

    def __init__(
        self,
        graph: GraphModel,
        layout_trigger: LayoutTrigger | None = None,
        *,
        layout_name: str = DEFAULT_LAYOUT,
        fit: bool = False,
    ) -> None:
        self._graph = graph
        self._layout_trigger = layout_trigger
        self.layout_name = layout_name
        self.fit = fit

    @property
    def graph(self) -> GraphModel:
        return self._graph

    def get_all_descendants(self, node_id: str) -> set[str]:
        return get_all_descendants(self._graph, node_id)

    def toggle_children(self, node_id: str) -> bool:
        """Flip a node's collapsed state. Returns the new state."""
        node = self._graph.require_node(node_id)
        node.collapsed = not node.collapsed

        if node.collapsed:
            self._hide_nodes(self.get_all_descendants(node_id))
        elif node.visible:
            self._show_nodes(get_child_ids(self._graph, node_id), parent_id=node_id)
        else:
            logger.debug("Node %s is hidden; its children stay hidden", node_id)

        self._notify_layout()
        return node.collapsed

    def expand_all_descendants(self, node_id: str) -> set[str]:
        """Reveal the full subtree and clear every collapsed flag in it."""
        node = self._graph.require_node(node_id)
        node.collapsed = False

        descendants = self.get_all_descendants(node_id)
        # Under a collapsed ancestor only the flags change
        if node.visible:
            self._show_nodes(descendants)
        for descendant_id in descendants:
            self._graph.nodes[descendant_id].collapsed = False

        self._notify_layout()
        return descendants

    def _hide_nodes(self, node_ids: Iterable[str]) -> None:
        """Hide nodes and their edges; hidden nodes are marked collapsed."""
        count = 0
        for node_id in node_ids:
            node = self._graph.nodes[node_id]
            node.hidden = True
            node.collapsed = True
            for edge in self._graph.incident_edges(node_id):
                edge.hidden = True
            count += 1
        logger.debug("Hiding %d nodes", count)

    def _show_nodes(self, node_ids: Iterable[str], parent_id: str | None = None) -> None:
        """Show nodes, then the edges whose endpoints are both visible.

        With ``parent_id`` only edges from that parent to the shown nodes are
        revealed.
        """
        shown = list(node_ids)
        for node_id in shown:
            self._graph.nodes[node_id].hidden = False

        for node_id in shown:
            if parent_id is not None:
                edges = [
                    edge for source, edge in self._graph.incoming(node_id) if source == parent_id
                ]
            else:
                edges = list(self._graph.incident_edges(node_id))
            for edge in edges:
                if self._endpoints_visible(edge.source, edge.target):
                    edge.hidden = False
        logger.debug("Showing %d nodes", len(shown))

    def _endpoints_visible(self, source: str, target: str) -> bool:
        nodes = self._graph.nodes
        return (
            source in nodes
            and target in nodes
            and nodes[source].visible
            and nodes[target].visible
        )

    def _notify_layout(self) -> None:
        if self._layout_trigger is None:
            return
        # Fire-and-forget: the visible set is already final
        try:
            self._layout_trigger.run_layout(self._graph, self.layout_name, self.fit)
        except Exception:
            logger.exception("Layout %r failed", self.layout_name)
