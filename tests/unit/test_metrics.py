"""Unit tests for subtree metrics."""

import pytest

from calltrace.core.exceptions import NodeNotFoundError
from calltrace.core.graph import GraphModel
from calltrace.core.graph.metrics import calculate_all_metrics, calculate_tree_metrics
from calltrace.core.models import TraceNode, TreeMetrics


def make_graph(nodes: list[tuple[str, str]], calls: list[tuple[str, str]]) -> GraphModel:
    """Create a graph from (id, "Class.method") pairs; the first node is the root."""
    graph = GraphModel()
    for i, (node_id, signature) in enumerate(nodes):
        cls, method = signature.rsplit(".", 1)
        graph.add_node(
            TraceNode(id=node_id, class_name=cls, method_name=method, is_root=i == 0)
        )
    for parent_id, child_id in calls:
        graph.add_call(parent_id, child_id)
    return graph


@pytest.fixture
def recursive_graph() -> GraphModel:
    """Create Root -> A -> B -> A' -> (C, D), where A' repeats A's signature."""
    return make_graph(
        [
            ("1", "Root.main"),
            ("2", "app.A.run"),
            ("3", "app.B.call"),
            ("4", "app.A.run"),
            ("5", "app.C.x"),
            ("6", "app.D.y"),
        ],
        [("1", "2"), ("2", "3"), ("3", "4"), ("4", "5"), ("4", "6")],
    )


class TestTreeMetrics:
    """Tests for calculate_tree_metrics."""

    def test_leaf(self) -> None:
        graph = make_graph([("1", "Root.main")], [])
        assert calculate_tree_metrics(graph, "1") == TreeMetrics(
            direct_children_count=0, total_descendants=0, subtree_depth=1, is_recursive=False
        )

    def test_linear_chain(self) -> None:
        graph = make_graph(
            [(str(i), f"app.C{i}.m") for i in range(1, 6)],
            [(str(i), str(i + 1)) for i in range(1, 5)],
        )
        metrics = calculate_tree_metrics(graph, "1")
        assert metrics.subtree_depth == 5
        assert metrics.total_descendants == 4
        assert metrics.direct_children_count == 1
        assert not metrics.is_recursive

    def test_branching(self) -> None:
        graph = make_graph(
            [("1", "R.r"), ("2", "a.A.x"), ("3", "a.B.x"), ("4", "a.C.x")],
            [("1", "2"), ("1", "3"), ("3", "4")],
        )
        metrics = calculate_tree_metrics(graph, "1")
        assert metrics.direct_children_count == 2
        assert metrics.total_descendants == 3
        assert metrics.subtree_depth == 3

    def test_recursion_stops_descent(self, recursive_graph: GraphModel) -> None:
        metrics = calculate_tree_metrics(recursive_graph, "1")
        # A' counts only its two direct children
        assert metrics.total_descendants == 5
        assert metrics.subtree_depth == 4

        inner = calculate_tree_metrics(recursive_graph, "3")
        assert inner.total_descendants == 3
        assert inner.subtree_depth == 3

    def test_recursive_node(self, recursive_graph: GraphModel) -> None:
        metrics = calculate_tree_metrics(
            recursive_graph, "4", visited_signatures={"app.A.run"}
        )
        assert metrics.is_recursive
        assert metrics.total_descendants == 2
        assert metrics.direct_children_count == 2
        assert metrics.subtree_depth == 1

    def test_explicit_signature(self, recursive_graph: GraphModel) -> None:
        metrics = calculate_tree_metrics(
            recursive_graph, "2", signature="Foo.bar", visited_signatures={"Foo.bar"}
        )
        assert metrics.is_recursive
        assert metrics.total_descendants == 1

    def test_same_method_on_separate_branches(self) -> None:
        graph = make_graph(
            [
                ("1", "R.r"),
                ("2", "app.A.run"),
                ("3", "app.X.y"),
                ("4", "app.A.run"),
                ("5", "app.X.y"),
            ],
            [("1", "2"), ("2", "3"), ("1", "4"), ("4", "5")],
        )
        metrics = calculate_tree_metrics(graph, "1")
        assert metrics.total_descendants == 4
        assert metrics.subtree_depth == 3
        assert not metrics.is_recursive

    def test_visited_not_mutated(self, recursive_graph: GraphModel) -> None:
        visited = {"other.Sig.x"}
        calculate_tree_metrics(recursive_graph, "1", visited_signatures=visited)
        assert visited == {"other.Sig.x"}

    def test_back_edge_terminates(self) -> None:
        graph = make_graph(
            [("1", "app.A.run"), ("2", "app.B.call")],
            [("1", "2"), ("2", "1")],
        )
        metrics = calculate_tree_metrics(graph, "1")
        assert metrics.total_descendants == 3
        assert metrics.subtree_depth == 3

    def test_deep_chain_no_recursion_limit(self) -> None:
        depth = 3000
        graph = make_graph(
            [(str(i), f"app.C{i}.m") for i in range(depth)],
            [(str(i), str(i + 1)) for i in range(depth - 1)],
        )
        metrics = calculate_tree_metrics(graph, "0")
        assert metrics.subtree_depth == depth
        assert metrics.total_descendants == depth - 1

    def test_missing_node(self) -> None:
        with pytest.raises(NodeNotFoundError):
            calculate_tree_metrics(GraphModel(), "1")


class TestAllMetrics:
    """Tests for calculate_all_metrics."""

    def test_every_node(self, recursive_graph: GraphModel) -> None:
        metrics = calculate_all_metrics(recursive_graph)
        assert set(metrics) == set(recursive_graph.nodes)
        assert metrics["5"].subtree_depth == 1
        # Each node starts from an empty visited set
        assert not metrics["4"].is_recursive
        assert metrics["4"].total_descendants == 2
