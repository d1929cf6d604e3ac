"""Load a GraphModel from a profiler call-tree XML trace."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from calltrace.core.exceptions import TraceParseError
from calltrace.core.graph.base import GraphModel
from calltrace.core.graph.metrics import calculate_all_metrics
from calltrace.core.graph.status import DEFAULT_FANOUT_THRESHOLD, classify_graph
from calltrace.core.models import TraceNode

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_METHODS = ("<init>", "<clinit>")

DEFAULT_ALLOWED_METHODS = (
    "java.awt.EventDispatchThread.run()",
    "java.util.concurrent.ThreadPoolExecutor$Worker.run()",
)

_ROOT_TAG = "tree"
_NODE_TAG = "node"
_ROOT_CLASS = "Root"


@dataclass
class TraceFilter:
    """Which trace elements become graph nodes.

    An empty ``included_packages`` disables package filtering.
    ``allowed_methods`` lists ``"pkg.Class.method()"`` entries kept even when
    their package is not included.
    """

    exclude_methods: tuple[str, ...] = DEFAULT_EXCLUDE_METHODS
    allow_excluded_at_root: bool = False
    included_packages: tuple[str, ...] = ()
    allowed_methods: tuple[str, ...] = DEFAULT_ALLOWED_METHODS

    def includes(self, element: ET.Element, is_root_level: bool = False) -> bool:
        if element.tag != _NODE_TAG:
            return False

        method_name = element.get("methodName") or ""
        class_name = element.get("class") or ""

        if method_name in self.exclude_methods and not (
            is_root_level and self.allow_excluded_at_root
        ):
            return False

        if self.included_packages:
            if f"{class_name}.{method_name}()" in self.allowed_methods:
                return True
            return any(class_name.startswith(pkg) for pkg in self.included_packages)

        return True


def _parse_float(element: ET.Element, name: str) -> float:
    raw = element.get(name) or "0"
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r on <%s>; using 0", name, raw, element.tag)
        return 0.0


def _make_node(node_id: str, element: ET.Element, is_root: bool, level: int) -> TraceNode:
    class_name = element.get("class")
    method_name = element.get("methodName")
    if is_root:
        class_name = class_name if class_name is not None else _ROOT_CLASS
        method_name = method_name or ""
        label = "Root"
    else:
        label = f"{class_name or ''}.{method_name or ''}()"

    return TraceNode(
        id=node_id,
        class_name=class_name,
        method_name=method_name,
        is_root=is_root,
        label=label,
        time=_parse_float(element, "time"),
        percent=_parse_float(element, "percent"),
        self_time=_parse_float(element, "selfTime"),
        level=level,
    )


def build_graph(root: ET.Element, trace_filter: TraceFilter | None = None) -> GraphModel:
    """Build the node/edge structure from a ``<tree>`` element.

    Node ids are assigned "1", "2", ... in pre-order.
    """
    trace_filter = trace_filter or TraceFilter()
    graph = GraphModel()
    counter = 0

    # (element, parent id, depth)
    stack: list[tuple[ET.Element, str | None, int]] = [(root, None, 0)]
    while stack:
        element, parent_id, depth = stack.pop()
        is_root = parent_id is None
        counter += 1
        node_id = str(counter)

        graph.add_node(_make_node(node_id, element, is_root, depth))
        if parent_id is not None:
            graph.add_call(parent_id, node_id)

        children = [child for child in element if trace_filter.includes(child, is_root)]
        skipped = len(element) - len(children)
        if skipped:
            logger.debug("Filtered %d child elements of node %s", skipped, node_id)
        for child in reversed(children):
            stack.append((child, node_id, depth + 1))

    return graph


def _find_root(document: ET.Element) -> ET.Element:
    if document.tag == _ROOT_TAG:
        return document
    root = document.find(f".//{_ROOT_TAG}")
    if root is None:
        raise TraceParseError(f"Root '{_ROOT_TAG}' element not found in trace document")
    return root


def load_from_string(
    text: str,
    trace_filter: TraceFilter | None = None,
    *,
    fanout_threshold: int = DEFAULT_FANOUT_THRESHOLD,
) -> GraphModel:
    """Parse trace XML, then classify nodes and attach tree metrics."""
    try:
        document = ET.fromstring(text)
    except ET.ParseError as e:
        raise TraceParseError(f"Invalid XML format: {e}") from e

    graph = build_graph(_find_root(document), trace_filter)
    classify_graph(graph, fanout_threshold=fanout_threshold)
    for node_id, metrics in calculate_all_metrics(graph).items():
        graph.nodes[node_id].metrics = metrics

    logger.debug("Loaded %r", graph)
    return graph


def load_from_xml(
    path: Path,
    trace_filter: TraceFilter | None = None,
    *,
    fanout_threshold: int = DEFAULT_FANOUT_THRESHOLD,
) -> GraphModel:
    """Load a trace file. O(V * D) including metrics."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TraceParseError(f"Cannot read {path}: {e}") from e
    return load_from_string(text, trace_filter, fanout_threshold=fanout_threshold)
