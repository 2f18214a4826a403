"""Terminal rendering of the graph with rich tables."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .graph import Graph
from .models import Node, PropertyItem
from .view import GraphView


def _props(items: List[PropertyItem], limit: int = 3) -> str:
    shown = ", ".join(f"{p.key}={p.value}" for p in items[:limit])
    if len(items) > limit:
        shown += f", +{len(items) - limit}"
    return shown


def _node_flags(node: Node) -> str:
    flags = []
    if node.fixed:
        flags.append("📌")
    if node.expanded:
        flags.append("⊕")
    if node.context_menu is not None:
        flags.append("☰")
    return " ".join(flags)


def node_table(graph: Graph) -> Table:
    table = Table(title="Nodes", show_lines=False)
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("labels", style="magenta")
    table.add_column("properties")
    table.add_column("flags", justify="center")
    for node in graph.nodes():
        table.add_row(
            escape(node.id),
            escape(":".join(node.labels)),
            escape(_props(node.property_list)),
            _node_flags(node),
            style="bold reverse" if node.selected else None,
        )
    return table


def relationship_table(graph: Graph) -> Table:
    table = Table(title="Relationships", show_lines=False)
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("path")
    table.add_column("properties")
    for rel in graph.relationships():
        table.add_row(
            escape(rel.id),
            escape(f"({rel.source.id})-[:{rel.type}]->({rel.target.id})"),
            escape(_props(rel.property_list)),
            style="bold reverse" if rel.selected else None,
        )
    return table


class RichGraphView(GraphView):
    """A :class:`GraphView` that prints tables on refresh.

    With ``live=False`` refreshes are only counted; call :meth:`show` to draw.
    """

    def __init__(self, graph: Graph, console: Optional[Console] = None, live: bool = False) -> None:
        super().__init__(graph)
        self.console = console or Console()
        self.live = live

    def render(self, update_nodes: bool, update_relationships: bool) -> None:
        if not self.live:
            return
        self.show(update_nodes, update_relationships)

    def show(self, nodes: bool = True, relationships: bool = True) -> None:
        if nodes:
            self.console.print(node_table(self.graph))
        if relationships:
            self.console.print(relationship_table(self.graph))
