"""
Calltrace: interactive call-trace graphs with derived node status.

Calltrace loads a profiler call tree into an in-memory graph, enabling you to:
- Flag fan-out nodes, implementation entry points and recursion entry points
- Compute subtree size and depth with cycle-safe recursion accounting
- Collapse and expand subtrees while keeping visible nodes and edges consistent

Usage:
    from calltrace.core.graph import VisibilityController, load_from_xml

    graph = load_from_xml(Path("trace.xml"))
    controller = VisibilityController(graph)
    controller.toggle_children("1")
"""

__version__ = "0.1.0"
