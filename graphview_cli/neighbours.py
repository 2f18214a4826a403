"""Neighbour fetch collaborators used by node expansion.

A fetch is any callable ``fetch(node, current_neighbour_ids, on_result)``
that eventually calls ``on_result(NeighbourResult)`` at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .config import DEFAULT_MAX_NEIGHBOURS
from .events import NeighbourCallback, NeighbourFetch, NeighbourResult
from .models import Node
from .storage import GraphStore

logger = logging.getLogger(__name__)


class StoreNeighbourSource:
    """Answer expansions from a :class:`GraphStore`, synchronously.

    Neighbours whose ids are already known to the caller are not returned as
    nodes, but relationships to them are, so that edges between the expanded
    node and existing nodes show up.
    """

    def __init__(self, store: GraphStore, max_neighbours: int = DEFAULT_MAX_NEIGHBOURS) -> None:
        self.store = store
        self.max_neighbours = max_neighbours

    def __call__(self, node: Node, current_neighbour_ids: List[str], on_result: NeighbourCallback) -> None:
        known = set(current_neighbour_ids)
        known.add(node.id)

        incident = self.store.incident_relationships(node.id)
        new_ids: List[str] = []
        for raw in incident:
            other = raw["endNodeId"] if raw["startNodeId"] == node.id else raw["startNodeId"]
            if other in known or other in new_ids:
                continue
            if len(new_ids) >= self.max_neighbours:
                logger.info("Neighbour limit %d reached for %s", self.max_neighbours, node.id)
                break
            new_ids.append(other)

        reachable = known | set(new_ids)
        relationships = [
            raw for raw in incident
            if raw["startNodeId"] in reachable and raw["endNodeId"] in reachable
        ]
        on_result(NeighbourResult(nodes=self.store.get_raw_nodes(new_ids), relationships=relationships))


@dataclass
class PendingFetch:
    node: Node
    current_neighbour_ids: List[str]
    on_result: NeighbourCallback


class DeferredNeighbourFetcher:
    """Queue fetches and deliver them only when asked to.

    Models the gap between issuing a fetch and its callback firing; results
    may be resolved in any order.
    """

    def __init__(self, source: NeighbourFetch) -> None:
        self.source = source
        self._queue: List[PendingFetch] = []

    def __call__(self, node: Node, current_neighbour_ids: List[str], on_result: NeighbourCallback) -> None:
        self._queue.append(PendingFetch(node, list(current_neighbour_ids), on_result))
        logger.debug("Queued neighbour fetch for %s (%d pending)", node.id, len(self._queue))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def pending_node_ids(self) -> List[str]:
        return [p.node.id for p in self._queue]

    def resolve(self, index: int = 0) -> None:
        """Deliver the fetch at *index* in issue order."""
        if not 0 <= index < len(self._queue):
            raise IndexError(f"No pending fetch at position {index} ({len(self._queue)} pending)")
        request = self._queue.pop(index)
        self.source(request.node, request.current_neighbour_ids, request.on_result)

    def resolve_next(self) -> bool:
        if not self._queue:
            return False
        self.resolve(0)
        return True

    def resolve_all(self) -> int:
        count = 0
        while self.resolve_next():
            count += 1
        return count
