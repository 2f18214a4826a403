"""In-memory graph model mutated by the event handler.

Nodes and relationships are kept in insertion order.  A relationship may only
be present while both of its endpoints are present; removal paths always drop
incident relationships before the node itself.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .models import Node, Relationship

logger = logging.getLogger(__name__)


class GraphIntegrityError(ValueError):
    """Raised when a mutation would leave a relationship without an endpoint."""


class Graph:
    """Mutable store of nodes and relationships."""

    def __init__(self) -> None:
        self._node_map: Dict[str, Node] = {}
        self._relationship_map: Dict[str, Relationship] = {}
        # node id -> ids of nodes first introduced by expanding that node
        self._expanded_node_map: Dict[str, List[str]] = {}

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def nodes(self) -> List[Node]:
        return list(self._node_map.values())

    def relationships(self) -> List[Relationship]:
        return list(self._relationship_map.values())

    def find_node(self, node_id: str) -> Optional[Node]:
        return self._node_map.get(node_id)

    def find_relationship(self, rel_id: str) -> Optional[Relationship]:
        return self._relationship_map.get(rel_id)

    def has_node(self, node: Node) -> bool:
        return self._node_map.get(node.id) is node

    def find_connected_relationships(self, node_id: str) -> List[Relationship]:
        return [rel for rel in self._relationship_map.values() if rel.touches(node_id)]

    def find_node_neighbour_ids(self, node_id: str) -> List[str]:
        """Ids at the far end of every relationship touching *node_id*."""
        seen: Dict[str, None] = {}
        for rel in self.find_connected_relationships(node_id):
            other = rel.source.id if rel.target.id == node_id else rel.target.id
            seen.setdefault(other, None)
        return list(seen)

    def expanded_from(self, node_id: str) -> List[str]:
        return list(self._expanded_node_map.get(node_id, []))

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def add_nodes(self, nodes: Iterable[Node]) -> List[Node]:
        """Add nodes not already known; returns the ones actually added."""
        added: List[Node] = []
        for node in nodes:
            if node.id in self._node_map:
                continue
            self._node_map[node.id] = node
            added.append(node)
        return added

    def add_expanded_nodes(self, node: Node, nodes: Iterable[Node]) -> List[Node]:
        """Add nodes and remember them as introduced by expanding *node*."""
        added = self.add_nodes(nodes)
        if added:
            self._expanded_node_map.setdefault(node.id, []).extend(n.id for n in added)
        logger.debug("Expanded %s: %d new nodes", node.id, len(added))
        return added

    def add_relationships(self, relationships: Iterable[Relationship]) -> List[Relationship]:
        added: List[Relationship] = []
        for rel in relationships:
            if rel.id in self._relationship_map:
                continue
            for endpoint in (rel.source, rel.target):
                if not self.has_node(endpoint):
                    raise GraphIntegrityError(
                        f"Relationship {rel.id} references unknown node {endpoint.id}"
                    )
            self._relationship_map[rel.id] = rel
            added.append(rel)
        return added

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove_connected_relationships(self, node: Node) -> List[Relationship]:
        removed = self.find_connected_relationships(node.id)
        for rel in removed:
            del self._relationship_map[rel.id]
        return removed

    def remove_node(self, node: Node) -> None:
        if node.id not in self._node_map:
            return
        dangling = self.find_connected_relationships(node.id)
        if dangling:
            raise GraphIntegrityError(
                f"Node {node.id} still has {len(dangling)} connected relationships"
            )
        del self._node_map[node.id]

    def collapse_node(self, node: Node) -> None:
        """Remove everything introduced by expanding *node*, recursively."""
        for child_id in self._expanded_node_map.pop(node.id, []):
            child = self._node_map.get(child_id)
            if child is None:
                # closed by the user after it was expanded in
                self._expanded_node_map.pop(child_id, None)
                continue
            self.collapse_node(child)
            self.remove_connected_relationships(child)
            self.remove_node(child)
        logger.debug("Collapsed %s", node.id)
