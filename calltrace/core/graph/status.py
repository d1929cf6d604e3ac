"""Node status classification: fan-out, entry points, recursion."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING

from calltrace.core.exceptions import MalformedNodeError
from calltrace.core.models import NodeStatus, TraceNode

if TYPE_CHECKING:
    from calltrace.core.graph.base import GraphModel

logger = logging.getLogger(__name__)

DEFAULT_FANOUT_THRESHOLD = 4

_ACCESSOR_PREFIXES = ("get", "set")
_ENTRY_POINT_PREFIXES = ("start", "init", "execute", "run", "process", "perform")

ChainStartPredicate = Callable[[TraceNode], bool]


class AncestorPath(Mapping[str, str]):
    """Signatures seen on the current path, mapped to the node that introduced them.

    Immutable: ``with_signature`` returns a new context, so every branch of a
    traversal owns its own copy.
    """

    __slots__ = ("_paths",)

    def __init__(self, paths: Mapping[str, str] | None = None) -> None:
        self._paths: dict[str, str] = dict(paths or {})

    def with_signature(self, signature: str, node_id: str) -> AncestorPath:
        """Return a copy with ``signature`` added unless already present."""
        if signature in self._paths:
            return AncestorPath(self._paths)
        return AncestorPath({**self._paths, signature: node_id})

    def __getitem__(self, signature: str) -> str:
        return self._paths[signature]

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"AncestorPath({self._paths!r})"


def has_fanout(children: Sequence[object], threshold: int = DEFAULT_FANOUT_THRESHOLD) -> bool:
    """True if the node calls at least ``threshold`` children."""
    return len(children) >= threshold


def is_method_name_entry_point(method_name: str | None) -> bool:
    """Check whether a method name looks like an entry point.

    Accessors (``get*``/``set*``) are never entry points, even when they also
    match an entry prefix.
    """
    if not method_name:
        return False
    if method_name.startswith(_ACCESSOR_PREFIXES):
        return False
    return method_name.startswith(_ENTRY_POINT_PREFIXES)


def is_implementation_entry_point(
    is_root: bool,
    children: Sequence[object],
    method_name: str | None,
    parent_is_fanout: bool,
) -> bool:
    """Non-root, non-leaf node that is named like an entry or called by a fan-out."""
    if is_root or not children:
        return False
    return is_method_name_entry_point(method_name) or parent_is_fanout


def check_recursive_entry_point(
    class_name: str,
    method_name: str,
    children: Sequence[TraceNode],
    visited_paths: AncestorPath,
) -> tuple[bool, AncestorPath]:
    """Detect the first node on a path that directly calls itself.

    Returns the flag and a copy of ``visited_paths``; the caller's context is
    left untouched.
    """
    signature = f"{class_name}.{method_name}"
    updated = AncestorPath(visited_paths)

    if signature in visited_paths:
        # An ancestor already claimed this recursion
        return False, updated

    is_entry = any(
        (child.class_name or "") == class_name and (child.method_name or "") == method_name
        for child in children
    )
    return is_entry, updated


def is_chain_start_point(node: TraceNode) -> bool:
    """Chain start detection. No rule is defined yet, so nothing qualifies."""
    return False


def _require_names(
    class_name: str | None, method_name: str | None, node_id: str
) -> tuple[str, str]:
    if class_name is None or method_name is None:
        missing = "class" if class_name is None else "methodName"
        raise MalformedNodeError(f"Node {node_id} is missing its {missing} attribute")
    return class_name, method_name


def compute_node_status(
    is_root: bool,
    children: Sequence[TraceNode],
    class_name: str | None,
    method_name: str | None,
    visited_paths: AncestorPath,
    parent_is_fanout: bool,
    node_id: str,
    *,
    fanout_threshold: int = DEFAULT_FANOUT_THRESHOLD,
    chain_start: ChainStartPredicate = is_chain_start_point,
) -> tuple[NodeStatus, AncestorPath]:
    """Compute the status of one node and the context to hand to its children.

    Malformed nodes are classified with an empty class/method name instead of
    failing the traversal.
    """
    try:
        class_name, method_name = _require_names(class_name, method_name, node_id)
    except MalformedNodeError as e:
        logger.warning("%s; using empty signature", e)
        class_name, method_name = class_name or "", method_name or ""

    fan_out = has_fanout(children, fanout_threshold)
    is_recursive_entry, updated = check_recursive_entry_point(
        class_name, method_name, children, visited_paths
    )
    node = TraceNode(
        id=node_id,
        class_name=class_name,
        method_name=method_name,
        is_root=is_root,
        children=[child.id for child in children],
    )

    status = NodeStatus(
        fan_out=fan_out,
        implementation_entry_point=is_implementation_entry_point(
            is_root, children, method_name, parent_is_fanout
        ),
        chain_start_point=chain_start(node),
        is_summarised=False,
        recursive_entry_point=is_recursive_entry,
    )
    return status, updated.with_signature(f"{class_name}.{method_name}", node_id)


def classify_graph(
    graph: GraphModel,
    root_id: str | None = None,
    *,
    fanout_threshold: int = DEFAULT_FANOUT_THRESHOLD,
    chain_start: ChainStartPredicate = is_chain_start_point,
) -> int:
    """Classify every node reachable from the root and store its status.

    Depth-first in call order. Each child receives its parent's updated
    context, so recursion detection is scoped to the current path. Returns the
    number of classified nodes.
    """
    start_id = root_id if root_id is not None else graph.root_id
    if start_id is None:
        return 0
    graph.require_node(start_id)

    classified: set[str] = set()
    stack: list[tuple[str, AncestorPath, bool]] = [(start_id, AncestorPath(), False)]

    while stack:
        node_id, visited_paths, parent_is_fanout = stack.pop()
        if node_id in classified:
            continue
        classified.add(node_id)

        node = graph.nodes[node_id]
        children = graph.get_children(node_id)
        status, child_paths = compute_node_status(
            node.is_root,
            children,
            node.class_name,
            node.method_name,
            visited_paths,
            parent_is_fanout,
            node_id,
            fanout_threshold=fanout_threshold,
            chain_start=chain_start,
        )
        node.status = status

        # Reversed so children pop in call order
        for child in reversed(children):
            if child.id not in classified:
                stack.append((child.id, child_paths, status.fan_out))

    logger.debug("Classified %d nodes from %s", len(classified), start_id)
    return len(classified)
