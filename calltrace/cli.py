"""CLI entry point for Calltrace."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.tree import Tree

from calltrace.core.exceptions import CallTraceError
from calltrace.core.graph import GraphModel, TraceFilter, VisibilityController, load_from_xml
from calltrace.core.graph.loader import DEFAULT_EXCLUDE_METHODS
from calltrace.core.graph.metrics import calculate_tree_metrics
from calltrace.core.graph.status import DEFAULT_FANOUT_THRESHOLD
from calltrace.core.graph.traversal import iter_visible_tree
from calltrace.core.models import TraceNode

app = typer.Typer(
    name="calltrace",
    help="Explore call-trace graphs with collapsible subtrees.",
    no_args_is_help=True,
)
console = Console()

TraceArg = Annotated[Path, typer.Argument(help="Call-tree XML trace file")]
FanoutOpt = Annotated[
    int, typer.Option("--fanout-threshold", help="Children needed to flag fan-out")
]
PackageOpt = Annotated[
    list[str] | None,
    typer.Option("--include-package", "-p", help="Only keep classes under these packages"),
]
ExcludeOpt = Annotated[
    list[str] | None, typer.Option("--exclude-method", "-x", help="Method names to drop")
]
JsonOpt = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Configure logging for all commands."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def load_graph(
    trace: Path,
    fanout_threshold: int,
    include_package: list[str] | None,
    exclude_method: list[str] | None,
) -> GraphModel:
    """Load a trace or exit with an error message."""
    trace_filter = TraceFilter(
        exclude_methods=tuple(exclude_method) if exclude_method else DEFAULT_EXCLUDE_METHODS,
        included_packages=tuple(include_package or ()),
    )
    try:
        return load_from_xml(trace, trace_filter, fanout_threshold=fanout_threshold)
    except CallTraceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e


def format_badges(node: TraceNode) -> str:
    """Format status flags as an annotation string."""
    badges = []
    if node.status.fan_out:
        badges.append("fan-out")
    if node.status.implementation_entry_point:
        badges.append("entry")
    if node.status.recursive_entry_point:
        badges.append("recursive")
    if node.status.chain_start_point:
        badges.append("chain")
    if node.collapsed:
        badges.append("collapsed")

    if badges:
        return f" [yellow]\\[{', '.join(badges)}][/]"
    return ""


@app.command()
def show(
    trace: TraceArg,
    toggle: Annotated[
        list[str] | None, typer.Option("--toggle", "-t", help="Node ids to collapse/expand")
    ] = None,
    expand_all: Annotated[
        list[str] | None, typer.Option("--expand-all", "-e", help="Node ids to fully expand")
    ] = None,
    fanout_threshold: FanoutOpt = DEFAULT_FANOUT_THRESHOLD,
    include_package: PackageOpt = None,
    exclude_method: ExcludeOpt = None,
    output_json: JsonOpt = False,
) -> None:
    """Show the visible call tree after applying toggles (toggles first, then expansions)."""
    graph = load_graph(trace, fanout_threshold, include_package, exclude_method)
    controller = VisibilityController(graph)

    try:
        for node_id in toggle or []:
            controller.toggle_children(node_id)
        for node_id in expand_all or []:
            controller.expand_all_descendants(node_id)
    except CallTraceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    if output_json:
        print(json.dumps(graph.to_elements()))
        return

    if graph.root_id is None:
        console.print("[dim]Empty trace[/]")
        return

    tree: Tree | None = None
    branches: dict[str, Tree] = {}
    for node, _, parent_id in iter_visible_tree(graph):
        text = f"[cyan]{node.label}[/]{format_badges(node)} [dim]#{node.id}[/]"
        if parent_id is None:
            tree = Tree(text)
            branches[node.id] = tree
        else:
            branches[node.id] = branches[parent_id].add(text)

    if tree is not None:
        console.print(tree)
    console.print(
        f"\n[dim]Visible: {len(graph.visible_node_ids())}/{graph.num_nodes} nodes | "
        f"{len(graph.visible_edge_ids())}/{graph.num_edges} edges[/]"
    )


@app.command()
def stats(
    trace: TraceArg,
    node_id: Annotated[str | None, typer.Argument(help="Node id to inspect")] = None,
    fanout_threshold: FanoutOpt = DEFAULT_FANOUT_THRESHOLD,
    include_package: PackageOpt = None,
    exclude_method: ExcludeOpt = None,
    output_json: JsonOpt = False,
) -> None:
    """Show trace statistics, or status and tree metrics for one node."""
    graph = load_graph(trace, fanout_threshold, include_package, exclude_method)

    if node_id is None:
        statuses = [node.status for node in graph.nodes.values()]
        result = {
            "nodes": graph.num_nodes,
            "edges": graph.num_edges,
            "fan_out": sum(s.fan_out for s in statuses),
            "implementation_entry_points": sum(s.implementation_entry_point for s in statuses),
            "recursive_entry_points": sum(s.recursive_entry_point for s in statuses),
        }
        if output_json:
            print(json.dumps(result))
        else:
            console.print(f"Nodes: {result['nodes']}")
            console.print(f"Edges: {result['edges']}")
            console.print(f"Fan-out nodes: {result['fan_out']}")
            console.print(f"Entry points: {result['implementation_entry_points']}")
            console.print(f"Recursive entry points: {result['recursive_entry_points']}")
        return

    try:
        node = graph.require_node(node_id)
        metrics = node.metrics or calculate_tree_metrics(graph, node_id)
    except CallTraceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    if output_json:
        print(json.dumps(node.to_dict()))
        return

    console.print(f"\n[bold cyan]{node.label}[/]{format_badges(node)}")
    console.print(f"  [dim]level {node.level}, time {node.time:g}, self {node.self_time:g}[/]")
    console.print(f"  Direct children: {metrics.direct_children_count}")
    console.print(f"  Total descendants: {metrics.total_descendants}")
    console.print(f"  Subtree depth: {metrics.subtree_depth}")
    if metrics.is_recursive:
        console.print("  [yellow]Recursive call[/]")


if __name__ == "__main__":
    app()
