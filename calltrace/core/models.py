"""Data models for calltrace."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class NodeStatus:
    """Derived semantic flags for a call-tree node."""

    fan_out: bool = False
    implementation_entry_point: bool = False
    chain_start_point: bool = False
    is_summarised: bool = False
    recursive_entry_point: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "fanOut": self.fan_out,
            "implementationEntryPoint": self.implementation_entry_point,
            "chainStartPoint": self.chain_start_point,
            "isSummarised": self.is_summarised,
            "recursiveEntryPoint": self.recursive_entry_point,
        }


@dataclass(frozen=True)
class TreeMetrics:
    """Size and depth of the subtree below a node."""

    direct_children_count: int
    total_descendants: int
    subtree_depth: int
    is_recursive: bool = False


@dataclass
class TraceNode:
    """A method invocation in the call trace."""

    id: str
    class_name: str | None
    method_name: str | None
    is_root: bool = False
    children: list[str] = field(default_factory=list)
    status: NodeStatus = field(default_factory=NodeStatus)
    collapsed: bool = False
    hidden: bool = False
    # Ingestion metadata
    label: str = ""
    time: float = 0.0
    percent: float = 0.0
    self_time: float = 0.0
    level: int = 0
    metrics: TreeMetrics | None = None

    @property
    def signature(self) -> str:
        return f"{self.class_name or ''}.{self.method_name or ''}"

    @property
    def package_name(self) -> str:
        return ".".join((self.class_name or "").split(".")[:-1])

    @property
    def visible(self) -> bool:
        return not self.hidden

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Cytoscape-style node data dict."""
        data: dict[str, Any] = {
            "id": self.id,
            "className": self.class_name or "",
            "methodName": self.method_name or "",
            "label": self.label or self.signature,
            "packageName": self.package_name,
            "isRoot": self.is_root,
            "collapsed": self.collapsed,
            "visible": self.visible,
            "time": self.time,
            "percent": self.percent,
            "selfTime": self.self_time,
            "status": self.status.to_dict(),
        }
        if self.metrics is not None:
            data["treeStats"] = {
                "directChildrenCount": self.metrics.direct_children_count,
                "totalDescendants": self.metrics.total_descendants,
                "subtreeDepth": self.metrics.subtree_depth,
                "level": self.level,
            }
        return data


@dataclass
class TraceEdge:
    """A directed call from a parent invocation to a child invocation."""

    source: str
    target: str
    id: str = ""
    hidden: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"e{self.source}-{self.target}"

    @property
    def visible(self) -> bool:
        return not self.hidden

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        del data["hidden"]
        data["visible"] = self.visible
        return data
