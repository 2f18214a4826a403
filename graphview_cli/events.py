"""Interaction coordinator between the graph model and the rendering surface.

:class:`GraphEventHandler` receives raw view events, applies the selection /
hover / expansion rules, mutates the :class:`~graphview_cli.graph.Graph`,
asks the view to refresh, and notifies the host application through three
callbacks:

- ``on_item_mouse_over(VizItem)``: what is under the pointer
- ``on_item_selected(VizItem)``: what is selected (canvas when nothing is)
- ``on_graph_model_change(GraphStats)``: statistics after structural changes

All handlers run to completion on the caller's thread.  The only deferred
step is the neighbour fetch issued by a double-click, whose callback may
arrive after any number of further events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .graph import Graph
from .mapper import get_graph_stats, map_nodes, map_relationships
from .models import GraphStats, Node, Relationship, VizItem
from .view import GraphView, ViewEvent

logger = logging.getLogger(__name__)

STALE_APPLY = "apply"
STALE_DISCARD = "discard"
STALE_POLICIES = (STALE_APPLY, STALE_DISCARD)


class ContractViolation(AssertionError):
    """A view event was dispatched in a state its handler does not accept."""


@dataclass(frozen=True)
class NeighbourResult:
    """Raw payloads returned by a neighbour fetch."""

    nodes: List[Mapping[str, Any]]
    relationships: List[Mapping[str, Any]]


NeighbourCallback = Callable[[NeighbourResult], None]
NeighbourFetch = Callable[[Node, List[str], NeighbourCallback], None]

Selectable = Union[Node, Relationship]


class SelectionKind(str, Enum):
    NONE = "none"
    NODE = "node"
    RELATIONSHIP = "relationship"


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind
    item: Optional[Selectable] = None

    @classmethod
    def empty(cls) -> "Selection":
        return cls(SelectionKind.NONE)

    @classmethod
    def of(cls, item: Selectable) -> "Selection":
        if isinstance(item, Node):
            return cls(SelectionKind.NODE, item)
        return cls(SelectionKind.RELATIONSHIP, item)

    @property
    def is_empty(self) -> bool:
        return self.kind is SelectionKind.NONE


class GraphEventHandler:
    """Owns selection state and drives expansion for one graph view."""

    def __init__(
        self,
        graph: Graph,
        graph_view: GraphView,
        get_node_neighbours: NeighbourFetch,
        on_item_mouse_over: Callable[[VizItem], None],
        on_item_selected: Callable[[VizItem], None],
        on_graph_model_change: Callable[[GraphStats], None],
        stale_expansions: str = STALE_APPLY,
    ) -> None:
        if stale_expansions not in STALE_POLICIES:
            raise ValueError(f"stale_expansions must be one of {STALE_POLICIES}, got {stale_expansions!r}")
        self.graph = graph
        self.graph_view = graph_view
        self.get_node_neighbours = get_node_neighbours
        self.on_item_mouse_over = on_item_mouse_over
        self.on_item_selected = on_item_selected
        self.on_graph_model_change = on_graph_model_change
        self.stale_expansions = stale_expansions
        self.selection = Selection.empty()
        self._expand_generation: Dict[str, int] = {}

    @property
    def selected_item(self) -> Optional[Selectable]:
        return self.selection.item

    def _canvas_item(self) -> VizItem:
        return VizItem.canvas(len(self.graph.nodes()), len(self.graph.relationships()))

    def _refresh(self) -> None:
        self.graph_view.update(update_nodes=True, update_relationships=True)

    def graph_model_changed(self) -> None:
        self.on_graph_model_change(get_graph_stats(self.graph))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_item(self, item: Selectable) -> None:
        if not self.selection.is_empty:
            self.selection.item.selected = False
        self.selection = Selection.of(item)
        item.selected = True
        self._refresh()

    def deselect_item(self) -> None:
        """Clear any selection and re-broadcast canvas counts.

        Safe to call with nothing selected; the canvas notification is sent
        regardless.
        """
        if not self.selection.is_empty:
            self.selection.item.selected = False
            self.selection = Selection.empty()
        self.on_item_selected(self._canvas_item())
        self._refresh()

    def node_clicked(self, node: Optional[Node]) -> None:
        if node is None:
            return
        node.fixed = True
        if not node.selected:
            self.select_item(node)
            self.on_item_selected(VizItem.node(node))
        else:
            self.deselect_item()

    def node_unlock(self, node: Optional[Node]) -> None:
        if node is None:
            return
        node.fixed = False
        self.deselect_item()

    def on_relationship_clicked(self, relationship: Optional[Relationship]) -> None:
        if relationship is None:
            return
        if not relationship.selected:
            self.select_item(relationship)
            self.on_item_selected(VizItem.relationship(relationship))
        else:
            self.deselect_item()

    def on_canvas_clicked(self) -> None:
        self.deselect_item()

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def node_close(self, node: Optional[Node]) -> None:
        if node is None:
            return
        self.graph.remove_connected_relationships(node)
        self.graph.remove_node(node)
        # pending fetches for a closed node are stale
        self._bump_generation(node)
        self.deselect_item()
        self._refresh()
        self.graph_model_changed()

    # ------------------------------------------------------------------
    # Expand / collapse
    # ------------------------------------------------------------------

    def _bump_generation(self, node: Node) -> int:
        generation = self._expand_generation.get(node.id, 0) + 1
        self._expand_generation[node.id] = generation
        return generation

    def _selection_removed(self) -> bool:
        item = self.selection.item
        if self.selection.kind is SelectionKind.NODE:
            return not self.graph.has_node(item)
        if self.selection.kind is SelectionKind.RELATIONSHIP:
            return self.graph.find_relationship(item.id) is not item
        return False

    def node_dbl_clicked(self, node: Optional[Node]) -> None:
        if node is None:
            return
        if node.expanded:
            self.node_collapse(node)
            return
        # set before the fetch so a second double-click collapses instead of refetching
        node.expanded = True
        generation = self._bump_generation(node)
        known_ids = self.graph.find_node_neighbour_ids(node.id)
        logger.debug("Expanding %s (generation %d, %d known neighbours)", node.id, generation, len(known_ids))

        def on_result(result: NeighbourResult) -> None:
            self._apply_expansion(node, generation, result)

        self.get_node_neighbours(node, known_ids, on_result)

    def _apply_expansion(self, node: Node, generation: int, result: NeighbourResult) -> None:
        if self.stale_expansions == STALE_DISCARD and self._expand_generation.get(node.id) != generation:
            logger.info("Discarding stale expansion of %s (generation %d)", node.id, generation)
            return
        self.graph.add_expanded_nodes(node, map_nodes(result.nodes))
        self.graph.add_relationships(map_relationships(result.relationships, self.graph))
        self._refresh()
        self.graph_model_changed()

    def node_collapse(self, node: Node) -> None:
        node.expanded = False
        self._bump_generation(node)
        self.graph.collapse_node(node)
        if self._selection_removed():
            self.deselect_item()
        self._refresh()
        self.graph_model_changed()

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def on_node_mouse_over(self, node: Node) -> None:
        if node.context_menu is None:
            self.on_item_mouse_over(VizItem.node(node))

    def on_menu_mouse_over(self, item_with_menu: Node) -> None:
        if item_with_menu.context_menu is None:
            raise ContractViolation("menuMouseOver triggered without menu")
        self.on_item_mouse_over(VizItem.context_menu(item_with_menu.context_menu))

    def on_relationship_mouse_over(self, relationship: Relationship) -> None:
        self.on_item_mouse_over(VizItem.relationship(relationship))

    def on_item_mouse_out(self, *_: Any) -> None:
        self.on_item_mouse_over(self._canvas_item())

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def bind_event_handlers(self) -> None:
        (
            self.graph_view
            .on(ViewEvent.NODE_MOUSE_OVER, self.on_node_mouse_over)
            .on(ViewEvent.NODE_MOUSE_OUT, self.on_item_mouse_out)
            .on(ViewEvent.MENU_MOUSE_OVER, self.on_menu_mouse_over)
            .on(ViewEvent.MENU_MOUSE_OUT, self.on_item_mouse_out)
            .on(ViewEvent.REL_MOUSE_OVER, self.on_relationship_mouse_over)
            .on(ViewEvent.REL_MOUSE_OUT, self.on_item_mouse_out)
            .on(ViewEvent.RELATIONSHIP_CLICKED, self.on_relationship_clicked)
            .on(ViewEvent.CANVAS_CLICKED, self.on_canvas_clicked)
            .on(ViewEvent.NODE_CLOSE, self.node_close)
            .on(ViewEvent.NODE_CLICKED, self.node_clicked)
            .on(ViewEvent.NODE_DBL_CLICKED, self.node_dbl_clicked)
            .on(ViewEvent.NODE_UNLOCK, self.node_unlock)
        )
        self.on_item_mouse_out()
