"""Tests for the in-memory Graph model."""

import pytest

from graphview_cli.graph import Graph, GraphIntegrityError
from graphview_cli.mapper import map_nodes, map_relationships


def _nodes(*ids):
    return map_nodes([{"id": i, "labels": ["N"], "properties": {}} for i in ids])


def _rels(graph, *triples):
    return map_relationships(
        [{"id": rid, "startNodeId": s, "endNodeId": t, "type": "R", "properties": {}} for rid, s, t in triples],
        graph,
    )


class TestGraphInsert:

    def test_add_nodes_skips_known_ids(self):
        graph = Graph()
        assert len(graph.add_nodes(_nodes("a", "b"))) == 2
        added = graph.add_nodes(_nodes("b", "c"))
        assert [n.id for n in added] == ["c"]
        assert [n.id for n in graph.nodes()] == ["a", "b", "c"]

    def test_add_relationships_dedupes(self, sample_graph: Graph):
        again = _rels(sample_graph, ("r1", "1", "2"))
        assert sample_graph.add_relationships(again) == []
        assert len(sample_graph.relationships()) == 5

    def test_relationship_with_foreign_endpoint_rejected(self):
        graph = Graph()
        graph.add_nodes(_nodes("a"))
        other = Graph()
        other.add_nodes(_nodes("a", "b"))
        rel = _rels(other, ("x", "a", "b"))
        with pytest.raises(GraphIntegrityError):
            graph.add_relationships(rel)


class TestGraphLookup:

    def test_neighbour_ids(self, sample_graph: Graph):
        assert sample_graph.find_node_neighbour_ids("4") == ["1", "5", "3"]
        assert sample_graph.find_node_neighbour_ids("5") == ["4"]
        assert sample_graph.find_node_neighbour_ids("missing") == []

    def test_neighbour_ids_are_unique(self):
        graph = Graph()
        graph.add_nodes(_nodes("a", "b"))
        graph.add_relationships(_rels(graph, ("x", "a", "b"), ("y", "b", "a")))
        assert graph.find_node_neighbour_ids("a") == ["b"]

    def test_self_loop_reports_own_id(self):
        graph = Graph()
        graph.add_nodes(_nodes("a"))
        graph.add_relationships(_rels(graph, ("x", "a", "a")))
        assert graph.find_node_neighbour_ids("a") == ["a"]


class TestGraphRemove:

    def test_remove_node_requires_relationships_gone(self, sample_graph: Graph):
        node = sample_graph.find_node("5")
        with pytest.raises(GraphIntegrityError):
            sample_graph.remove_node(node)

        removed = sample_graph.remove_connected_relationships(node)
        assert [r.id for r in removed] == ["r4"]
        sample_graph.remove_node(node)
        assert sample_graph.find_node("5") is None

    def test_every_relationship_keeps_endpoints(self, sample_graph: Graph):
        for node_id in ("4", "2"):
            node = sample_graph.find_node(node_id)
            sample_graph.remove_connected_relationships(node)
            sample_graph.remove_node(node)
            for rel in sample_graph.relationships():
                assert sample_graph.has_node(rel.source)
                assert sample_graph.has_node(rel.target)


class TestCollapse:

    def test_collapse_removes_only_expanded_nodes(self):
        graph = Graph()
        graph.add_nodes(_nodes("root", "old"))
        graph.add_relationships(_rels(graph, ("e0", "root", "old")))
        root = graph.find_node("root")

        graph.add_expanded_nodes(root, _nodes("old", "new"))
        graph.add_relationships(_rels(graph, ("e1", "root", "new"), ("e2", "old", "new")))
        assert graph.expanded_from("root") == ["new"]

        graph.collapse_node(root)

        assert [n.id for n in graph.nodes()] == ["root", "old"]
        assert [r.id for r in graph.relationships()] == ["e0"]
        assert graph.expanded_from("root") == []

    def test_collapse_is_recursive(self):
        graph = Graph()
        graph.add_nodes(_nodes("a"))
        a = graph.find_node("a")
        graph.add_expanded_nodes(a, _nodes("b"))
        b = graph.find_node("b")
        graph.add_expanded_nodes(b, _nodes("c"))
        graph.add_relationships(_rels(graph, ("ab", "a", "b"), ("bc", "b", "c")))

        graph.collapse_node(a)

        assert [n.id for n in graph.nodes()] == ["a"]
        assert graph.relationships() == []

    def test_collapse_skips_nodes_closed_meanwhile(self):
        graph = Graph()
        graph.add_nodes(_nodes("a"))
        a = graph.find_node("a")
        graph.add_expanded_nodes(a, _nodes("b", "c"))
        graph.remove_node(graph.find_node("b"))

        graph.collapse_node(a)

        assert [n.id for n in graph.nodes()] == ["a"]

    def test_collapse_unexpanded_is_noop(self, sample_graph: Graph):
        sample_graph.collapse_node(sample_graph.find_node("1"))
        assert len(sample_graph.nodes()) == 5
        assert len(sample_graph.relationships()) == 5
