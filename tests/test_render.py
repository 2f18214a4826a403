"""Tests for the rich-backed graph view."""

from rich.console import Console

from graphview_cli.render import RichGraphView


def _view(graph, live):
    console = Console(record=True, width=120)
    return RichGraphView(graph, console=console, live=live), console


def test_refresh_is_counted_but_silent_when_not_live(sample_graph):
    view, console = _view(sample_graph, live=False)
    view.update(update_nodes=True, update_relationships=True)
    assert view.update_count == 1
    assert console.export_text() == ""


def test_live_refresh_draws_requested_tables(sample_graph):
    view, console = _view(sample_graph, live=True)
    view.update(update_nodes=False, update_relationships=True)
    text = console.export_text()
    assert "Relationships" in text
    assert "(1)-[:KNOWS]->(2)" in text
    assert "Nodes" not in text


def test_show_marks_pinned_nodes(sample_graph):
    sample_graph.find_node("1").fixed = True
    view, console = _view(sample_graph, live=False)
    view.show()
    text = console.export_text()
    assert "Ada" in text
    assert "📌" in text
