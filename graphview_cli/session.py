"""Text-driven exploration session.

An :class:`ExploreSession` stands in for a pointer-driven front end: each
command is translated into the raw view event a real surface would emit, and
every host notification produced by the event handler is recorded.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .events import STALE_APPLY, GraphEventHandler, NeighbourFetch
from .graph import Graph
from .graph_export import export_dot, export_html
from .mapper import get_graph_stats, map_nodes, map_relationships
from .models import ContextMenu, GraphStats, Node, Relationship, VizItem, VizItemType
from .neighbours import DeferredNeighbourFetcher
from .storage import GraphStore
from .view import GraphView, ViewEvent

logger = logging.getLogger(__name__)

HOVER = "hover"
SELECTED = "selected"
STATS = "stats"

Listener = Callable[[str, Any], None]

COMMAND_HELP = {
    "hover <node>": "pointer over a node",
    "hover-rel <rel>": "pointer over a relationship",
    "menu <node>": "pointer over the node's context menu",
    "out": "pointer leaves the node",
    "menu-out": "pointer leaves the context menu",
    "rel-out": "pointer leaves the relationship",
    "click <node>": "click a node (pins it, toggles selection)",
    "rclick <rel>": "click a relationship (toggles selection)",
    "canvas": "click the background",
    "dbl <node>": "double-click: expand or collapse",
    "unlock <node>": "unpin a node and clear selection",
    "close <node>": "remove a node and its relationships",
    "attach-menu <node> <label> [content]": "open a context menu on a node",
    "detach-menu <node>": "close a node's context menu",
    "resolve [all|N]": "deliver pending neighbour fetches (deferred mode)",
    "stats": "print graph statistics",
    "show": "draw the node and relationship tables",
    "export <file.dot|file.html>": "export the current graph",
}


class SessionError(Exception):
    """A command could not be executed (unknown command, id or argument)."""


def seed_graph(graph: Graph, store: GraphStore, node_ids: Sequence[str]) -> None:
    """Load *node_ids* and the relationships among them into *graph*."""
    raw_nodes = store.get_raw_nodes(node_ids)
    missing = set(node_ids) - {raw["id"] for raw in raw_nodes}
    if missing:
        raise SessionError(f"Unknown node ids: {', '.join(sorted(missing))}")
    graph.add_nodes(map_nodes(raw_nodes))
    ids = [n.id for n in graph.nodes()]
    graph.add_relationships(map_relationships(store.relationships_among(ids), graph))


def describe(item: VizItem) -> str:
    """One-line rendering of a VizItem for terminal output."""
    payload = item.item
    if item.type is VizItemType.CANVAS:
        return f"canvas: {payload.node_count} nodes, {payload.relationship_count} relationships"
    if item.type is VizItemType.NODE:
        props = ", ".join(f"{p.key}={p.value}" for p in payload.properties)
        return f"node {payload.id} :{':'.join(payload.labels)} {{{props}}}"
    if item.type is VizItemType.RELATIONSHIP:
        props = ", ".join(f"{p.key}={p.value}" for p in payload.properties)
        return f"relationship {payload.id} :{payload.type} {{{props}}}"
    return f"menu {payload.label}: {payload.content} [{payload.selection}]"


def describe_stats(stats: GraphStats) -> str:
    labels = ", ".join(f"{k}={v.count}" for k, v in stats.label_stats.items())
    types = ", ".join(f"{k}={v.count}" for k, v in stats.rel_type_stats.items())
    return (
        f"{stats.node_count} nodes ({labels or 'none'}); "
        f"{stats.relationship_count} relationships ({types or 'none'})"
    )


class ExploreSession:
    """Bind a :class:`GraphEventHandler` to a view and drive it by commands."""

    def __init__(
        self,
        graph: Graph,
        view: GraphView,
        fetch: NeighbourFetch,
        stale_expansions: str = STALE_APPLY,
        listener: Optional[Listener] = None,
    ) -> None:
        self.graph = graph
        self.view = view
        self.fetch = fetch
        self.listener = listener
        self.log: List[Tuple[str, Any]] = []
        self.hovered: Optional[VizItem] = None
        self.selected: Optional[VizItem] = None
        self.stats: Optional[GraphStats] = None
        self.handler = GraphEventHandler(
            graph,
            view,
            fetch,
            on_item_mouse_over=self._on_hover,
            on_item_selected=self._on_selected,
            on_graph_model_change=self._on_stats,
            stale_expansions=stale_expansions,
        )

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def _record(self, channel: str, payload: Any) -> None:
        self.log.append((channel, payload))
        if self.listener is not None:
            self.listener(channel, payload)

    def _on_hover(self, item: VizItem) -> None:
        self.hovered = item
        self._record(HOVER, item)

    def _on_selected(self, item: VizItem) -> None:
        self.selected = item
        self._record(SELECTED, item)

    def _on_stats(self, stats: GraphStats) -> None:
        self.stats = stats
        self._record(STATS, stats)

    def start(self) -> None:
        self.handler.bind_event_handlers()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _node(self, args: List[str]) -> Node:
        if not args:
            raise SessionError("Missing node id")
        node = self.graph.find_node(args[0])
        if node is None:
            raise SessionError(f"Node '{args[0]}' is not in the graph")
        return node

    def _relationship(self, args: List[str]) -> Relationship:
        if not args:
            raise SessionError("Missing relationship id")
        rel = self.graph.find_relationship(args[0])
        if rel is None:
            raise SessionError(f"Relationship '{args[0]}' is not in the graph")
        return rel

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def run_script(self, lines: Sequence[str], echo: Optional[Callable[[str], None]] = None) -> List[str]:
        """Execute commands in order; blank lines and ``#`` comments are skipped.

        Command output is returned, and also passed to *echo* as it is produced.
        """
        output = []
        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            message = self.execute(stripped)
            if message:
                output.append(message)
                if echo is not None:
                    echo(message)
        return output

    def execute(self, line: str) -> Optional[str]:
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            raise SessionError(str(exc)) from exc
        if not parts:
            return None
        command, args = parts[0].lower(), parts[1:]
        logger.debug("Command %s %s", command, args)

        if command == "hover":
            self.view.trigger(ViewEvent.NODE_MOUSE_OVER, self._node(args))
        elif command == "hover-rel":
            self.view.trigger(ViewEvent.REL_MOUSE_OVER, self._relationship(args))
        elif command == "menu":
            node = self._node(args)
            if node.context_menu is None:
                raise SessionError(f"Node '{node.id}' has no open context menu")
            self.view.trigger(ViewEvent.MENU_MOUSE_OVER, node)
        elif command == "out":
            self.view.trigger(ViewEvent.NODE_MOUSE_OUT)
        elif command == "menu-out":
            self.view.trigger(ViewEvent.MENU_MOUSE_OUT)
        elif command == "rel-out":
            self.view.trigger(ViewEvent.REL_MOUSE_OUT)
        elif command == "click":
            self.view.trigger(ViewEvent.NODE_CLICKED, self._node(args))
        elif command == "rclick":
            self.view.trigger(ViewEvent.RELATIONSHIP_CLICKED, self._relationship(args))
        elif command == "canvas":
            self.view.trigger(ViewEvent.CANVAS_CLICKED)
        elif command == "dbl":
            self.view.trigger(ViewEvent.NODE_DBL_CLICKED, self._node(args))
        elif command == "unlock":
            self.view.trigger(ViewEvent.NODE_UNLOCK, self._node(args))
        elif command == "close":
            self.view.trigger(ViewEvent.NODE_CLOSE, self._node(args))
        elif command == "attach-menu":
            node = self._node(args)
            if len(args) < 2:
                raise SessionError("Usage: attach-menu <node> <label> [content]")
            content = " ".join(args[2:]) or args[1]
            node.context_menu = ContextMenu(label=args[1], menu_content=content, menu_selection=node.id)
        elif command == "detach-menu":
            self._node(args).context_menu = None
        elif command == "resolve":
            return self._resolve(args)
        elif command == "stats":
            return describe_stats(get_graph_stats(self.graph))
        elif command == "show":
            show = getattr(self.view, "show", None)
            if show is None:
                raise SessionError("This view cannot draw tables")
            show()
        elif command == "export":
            return self._export(args)
        else:
            raise SessionError(f"Unknown command '{command}'")
        return None

    def _resolve(self, args: List[str]) -> str:
        if not isinstance(self.fetch, DeferredNeighbourFetcher):
            raise SessionError("Neighbour fetches are resolved immediately in this session")
        if args and args[0] == "all":
            count = self.fetch.resolve_all()
            return f"Resolved {count} pending fetches"
        index = 0
        if args:
            try:
                index = int(args[0])
            except ValueError as exc:
                raise SessionError(f"Expected 'all' or a position, got '{args[0]}'") from exc
        try:
            self.fetch.resolve(index)
        except IndexError as exc:
            raise SessionError(str(exc)) from exc
        return f"Resolved 1 fetch ({self.fetch.pending} pending)"

    def _export(self, args: List[str]) -> str:
        if not args:
            raise SessionError("Usage: export <file.dot|file.html>")
        path = Path(args[0])
        suffix = path.suffix.lower()
        if suffix == ".dot":
            export_dot(self.graph, path)
        elif suffix in {".html", ".htm"}:
            export_html(self.graph, path)
        else:
            raise SessionError("Export format must be .dot or .html")
        return f"Exported graph to {path}"
