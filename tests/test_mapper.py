"""Tests for raw payload mapping and graph statistics."""

from graphview_cli.graph import Graph
from graphview_cli.mapper import ALL_KEY, get_graph_stats, map_nodes, map_relationships, property_list


def test_map_nodes(sample_payload):
    nodes = map_nodes(sample_payload["nodes"])
    ada = nodes[0]
    assert ada.id == "1"
    assert ada.labels == ["Person"]
    assert [(p.key, p.value) for p in ada.property_list] == [("born", "1815"), ("name", "Ada")]
    assert ada.property_map == {"name": "Ada", "born": 1815}
    assert not (ada.selected or ada.fixed or ada.expanded)
    assert ada.context_menu is None


def test_map_nodes_does_not_mutate_input():
    raw = [{"id": 7, "labels": ["X"], "properties": {"a": [1, 2]}}]
    nodes = map_nodes(raw)
    nodes[0].property_map["b"] = 1
    nodes[0].labels.append("Y")
    assert raw == [{"id": 7, "labels": ["X"], "properties": {"a": [1, 2]}}]
    assert nodes[0].id == "7"


def test_property_list_renders_values():
    items = property_list({"z": None, "a": True, "m": {"k": 1}, "s": "text"})
    assert [(p.key, p.value) for p in items] == [
        ("a", "true"), ("m", '{"k": 1}'), ("s", "text"), ("z", "null"),
    ]


def test_map_relationships_resolves_endpoints(sample_graph, sample_payload):
    graph = Graph()
    graph.add_nodes(map_nodes(sample_payload["nodes"][:2]))
    rels = map_relationships(sample_payload["relationships"], graph)

    assert [r.id for r in rels] == ["r1"]
    assert rels[0].source is graph.find_node("1")
    assert rels[0].target is graph.find_node("2")


def test_graph_stats(sample_graph):
    stats = get_graph_stats(sample_graph)

    assert stats.node_count == 5
    assert stats.relationship_count == 5
    assert stats.label_stats[ALL_KEY].count == 5
    assert stats.label_stats["Person"].count == 3
    assert stats.label_stats["Person"].properties == {"name": 3, "born": 1}
    assert stats.rel_type_stats["KNOWS"].count == 2
    assert stats.rel_type_stats["WORKS_AT"].count == 2
    assert stats.rel_type_stats[ALL_KEY].properties == {"since": 1}


def test_graph_stats_recomputed(sample_graph):
    before = get_graph_stats(sample_graph)
    node = sample_graph.find_node("5")
    sample_graph.remove_connected_relationships(node)
    sample_graph.remove_node(node)
    after = get_graph_stats(sample_graph)

    assert before.node_count == 5
    assert after.node_count == 4
    assert "City" not in after.label_stats
    assert "LOCATED_IN" not in after.rel_type_stats


def test_empty_graph_stats():
    stats = get_graph_stats(Graph())
    assert (stats.node_count, stats.relationship_count) == (0, 0)
    assert stats.label_stats == {}
