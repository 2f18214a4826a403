"""Map raw query payloads into graph entities and derive aggregate statistics.

Raw payloads use the driver wire shape::

    {"id": "1", "labels": ["Person"], "properties": {"name": "Ada"}}
    {"id": "7", "startNodeId": "1", "endNodeId": "2", "type": "KNOWS", "properties": {}}

Every function here is pure: inputs are read, never mutated.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping

from .graph import Graph
from .models import GraphStats, LabelStat, Node, PropertyItem, Relationship

logger = logging.getLogger(__name__)

ALL_KEY = "*"


def _display_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def property_list(properties: Mapping[str, Any]) -> List[PropertyItem]:
    return [PropertyItem(key=key, value=_display_value(properties[key])) for key in sorted(properties)]


def map_nodes(raw_nodes: Iterable[Mapping[str, Any]]) -> List[Node]:
    nodes: List[Node] = []
    for raw in raw_nodes:
        properties = dict(raw.get("properties") or {})
        nodes.append(
            Node(
                id=str(raw["id"]),
                labels=list(raw.get("labels") or []),
                property_list=property_list(properties),
                property_map=properties,
            )
        )
    return nodes


def map_relationships(raw_relationships: Iterable[Mapping[str, Any]], graph: Graph) -> List[Relationship]:
    """Build relationships whose endpoints are both known to *graph*."""
    relationships: List[Relationship] = []
    for raw in raw_relationships:
        source = graph.find_node(str(raw["startNodeId"]))
        target = graph.find_node(str(raw["endNodeId"]))
        if source is None or target is None:
            logger.debug(
                "Skipping relationship %s: endpoint %s or %s not in graph",
                raw.get("id"), raw.get("startNodeId"), raw.get("endNodeId"),
            )
            continue
        properties = dict(raw.get("properties") or {})
        relationships.append(
            Relationship(
                id=str(raw["id"]),
                type=str(raw["type"]),
                source=source,
                target=target,
                property_list=property_list(properties),
                property_map=properties,
            )
        )
    return relationships


def _tally(stats: Dict[str, LabelStat], key: str, property_keys: Iterable[str]) -> None:
    stat = stats.setdefault(key, LabelStat())
    stat.count += 1
    for prop in property_keys:
        stat.properties[prop] = stat.properties.get(prop, 0) + 1


def get_graph_stats(graph: Graph) -> GraphStats:
    """Recompute statistics from the graph's current contents."""
    nodes = graph.nodes()
    relationships = graph.relationships()

    label_stats: Dict[str, LabelStat] = {}
    for node in nodes:
        _tally(label_stats, ALL_KEY, node.property_map)
        for label in node.labels:
            _tally(label_stats, label, node.property_map)

    rel_type_stats: Dict[str, LabelStat] = {}
    for rel in relationships:
        _tally(rel_type_stats, ALL_KEY, rel.property_map)
        _tally(rel_type_stats, rel.type, rel.property_map)

    return GraphStats(
        node_count=len(nodes),
        relationship_count=len(relationships),
        label_stats=label_stats,
        rel_type_stats=rel_type_stats,
    )
