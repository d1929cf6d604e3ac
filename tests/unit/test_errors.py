"""Tests for error handling paths."""

import logging
import tempfile
from pathlib import Path

import pytest

from calltrace.core.exceptions import (
    CallTraceError,
    MalformedNodeError,
    NodeNotFoundError,
    TraceParseError,
)
from calltrace.core.graph import GraphModel, VisibilityController
from calltrace.core.graph.loader import load_from_string, load_from_xml


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


class TestExceptionHierarchy:
    """Tests for the exception types."""

    def test_all_derive_from_base(self) -> None:
        for exc in (NodeNotFoundError, MalformedNodeError, TraceParseError):
            assert issubclass(exc, CallTraceError)

    def test_node_not_found_message(self) -> None:
        error = NodeNotFoundError("17")
        assert error.node_id == "17"
        assert "17" in str(error)


class TestLoaderErrors:
    """Tests for trace loading error handling."""

    def test_invalid_xml(self) -> None:
        with pytest.raises(TraceParseError) as exc_info:
            load_from_string("<tree><node class='a' methodName='b'></tree>")
        assert "Invalid XML" in str(exc_info.value)

    def test_missing_tree_element(self) -> None:
        with pytest.raises(TraceParseError) as exc_info:
            load_from_string("<profile><node class='a' methodName='b'/></profile>")
        assert "tree" in str(exc_info.value)

    def test_nested_tree_element(self) -> None:
        graph = load_from_string("<profile><tree><node class='a' methodName='b'/></tree></profile>")
        assert graph.num_nodes == 2

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(TraceParseError) as exc_info:
            load_from_xml(temp_dir / "missing.xml")
        assert "Cannot read" in str(exc_info.value)

    def test_encoding_error(self, temp_dir: Path) -> None:
        file_path = temp_dir / "bad_encoding.xml"
        file_path.write_bytes(b"\xff\xfe <tree> \x80\x81")
        with pytest.raises(TraceParseError):
            load_from_xml(file_path)

    def test_malformed_node_recovered(self, caplog: pytest.LogCaptureFixture) -> None:
        text = """
<tree>
  <node methodName="orphan">
    <node class="app.A" methodName="run"/>
  </node>
  <node class="app.B" methodName="go"/>
</tree>
"""
        with caplog.at_level(logging.WARNING):
            graph = load_from_string(text)

        assert graph.num_nodes == 4
        orphan = graph.nodes["2"]
        assert orphan.class_name is None
        assert orphan.signature == ".orphan"
        # The rest of the trace is still classified
        assert graph.nodes["4"].method_name == "go"
        assert "missing its class" in caplog.text

    def test_invalid_time_attribute(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            graph = load_from_string("<tree><node class='a.B' methodName='c' time='fast'/></tree>")
        assert graph.nodes["2"].time == 0.0
        assert "Invalid time" in caplog.text


class TestGraphErrors:
    """Tests for operations on unknown nodes."""

    def test_toggle_leaves_graph_untouched(self) -> None:
        graph = load_from_string("<tree><node class='a.B' methodName='c'/></tree>")
        controller = VisibilityController(graph)
        with pytest.raises(NodeNotFoundError):
            controller.toggle_children("nope")
        assert all(not node.collapsed for node in graph.nodes.values())
        assert all(edge.visible for edge in graph.edges.values())

    def test_add_call_unknown_parent(self) -> None:
        with pytest.raises(NodeNotFoundError):
            GraphModel().add_call("1", "2")
