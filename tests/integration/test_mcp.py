"""Integration tests for the MCP tool handlers."""

import tempfile
from pathlib import Path

import pytest

from calltrace.core.exceptions import CallTraceError, NodeNotFoundError
from calltrace.mcp import server

TRACE = """<tree>
  <node class="app.Game" methodName="start">
    <node class="app.Board" methodName="render">
      <node class="app.Sprite" methodName="draw"/>
    </node>
    <node class="app.Unit" methodName="update"/>
  </node>
</tree>
"""


@pytest.fixture
def trace_file():
    """Write a small trace to a temporary directory."""
    with tempfile.TemporaryDirectory() as td:
        file_path = Path(td) / "trace.xml"
        file_path.write_text(TRACE)
        yield file_path


@pytest.fixture(autouse=True)
def clean_session():
    server._session.clear()
    yield
    server._session.clear()


class TestHandlers:
    """Tests for the calltrace_* tool handlers."""

    def test_requires_loaded_trace(self) -> None:
        with pytest.raises(CallTraceError):
            server._handle_view()

    def test_load_and_view(self, trace_file: Path) -> None:
        loaded = server._handle_load(str(trace_file), 4, [])
        assert loaded == {"nodes": 5, "edges": 4, "root": "1"}

        view = server._handle_view()
        assert [n["id"] for n in view["nodes"]] == ["1", "2", "3", "4", "5"]
        assert view["nodes"][2]["depth"] == 2
        assert view["visible_edges"] == 4

    def test_toggle_and_expand(self, trace_file: Path) -> None:
        server._handle_load(str(trace_file), 4, [])

        assert server._handle_toggle("2") == {"node_id": "2", "collapsed": True}
        assert [n["id"] for n in server._handle_view()["nodes"]] == ["1", "2"]

        expanded = server._handle_expand_all("2")
        assert expanded == {"node_id": "2", "expanded": ["3", "4", "5"]}
        assert len(server._handle_view()["nodes"]) == 5

    def test_node(self, trace_file: Path) -> None:
        server._handle_load(str(trace_file), 4, [])
        data = server._handle_node("2")
        assert data["label"] == "app.Game.start()"
        assert data["treeStats"]["totalDescendants"] == 3
        assert data["status"]["implementationEntryPoint"] is True

    def test_unknown_node(self, trace_file: Path) -> None:
        server._handle_load(str(trace_file), 4, [])
        with pytest.raises(NodeNotFoundError):
            server._handle_toggle("42")
