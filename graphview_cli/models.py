"""Core data models shared by the graph model, the view and the event handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


@dataclass
class PropertyItem:
    key: str
    value: str


@dataclass
class ContextMenu:
    label: str
    menu_content: str
    menu_selection: str


@dataclass(eq=False)
class Node:
    id: str
    labels: List[str] = field(default_factory=list)
    property_list: List[PropertyItem] = field(default_factory=list)
    property_map: Dict[str, Any] = field(default_factory=dict)
    selected: bool = False
    fixed: bool = False
    expanded: bool = False
    context_menu: Optional[ContextMenu] = None

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, labels={self.labels!r})"


@dataclass(eq=False)
class Relationship:
    id: str
    type: str
    source: Node
    target: Node
    property_list: List[PropertyItem] = field(default_factory=list)
    property_map: Dict[str, Any] = field(default_factory=dict)
    selected: bool = False

    def __repr__(self) -> str:
        return (
            f"Relationship(id={self.id!r}, type={self.type!r}, "
            f"{self.source.id!r} -> {self.target.id!r})"
        )

    def touches(self, node_id: str) -> bool:
        return self.source.id == node_id or self.target.id == node_id


# ===================================================================
# VizItem: what the host is told is under the pointer / selected
# ===================================================================

class VizItemType(str, Enum):
    CANVAS = "canvas"
    NODE = "node"
    RELATIONSHIP = "relationship"
    CONTEXT_MENU_ITEM = "context-menu-item"


@dataclass(frozen=True)
class CanvasItem:
    node_count: int
    relationship_count: int


@dataclass(frozen=True)
class NodeItem:
    id: str
    labels: List[str]
    properties: List[PropertyItem]


@dataclass(frozen=True)
class RelationshipItem:
    id: str
    type: str
    properties: List[PropertyItem]


@dataclass(frozen=True)
class ContextMenuItem:
    label: str
    content: str
    selection: str


VizPayload = Union[CanvasItem, NodeItem, RelationshipItem, ContextMenuItem]


@dataclass(frozen=True)
class VizItem:
    """Tagged union describing the current interaction target."""

    type: VizItemType
    item: VizPayload

    @classmethod
    def canvas(cls, node_count: int, relationship_count: int) -> "VizItem":
        return cls(VizItemType.CANVAS, CanvasItem(node_count, relationship_count))

    @classmethod
    def node(cls, node: Node) -> "VizItem":
        return cls(
            VizItemType.NODE,
            NodeItem(id=node.id, labels=node.labels, properties=node.property_list),
        )

    @classmethod
    def relationship(cls, relationship: Relationship) -> "VizItem":
        return cls(
            VizItemType.RELATIONSHIP,
            RelationshipItem(
                id=relationship.id,
                type=relationship.type,
                properties=relationship.property_list,
            ),
        )

    @classmethod
    def context_menu(cls, menu: ContextMenu) -> "VizItem":
        return cls(
            VizItemType.CONTEXT_MENU_ITEM,
            ContextMenuItem(
                label=menu.label,
                content=menu.menu_content,
                selection=menu.menu_selection,
            ),
        )


# ===================================================================
# Aggregate statistics
# ===================================================================

@dataclass
class LabelStat:
    count: int = 0
    properties: Dict[str, int] = field(default_factory=dict)


@dataclass
class GraphStats:
    node_count: int
    relationship_count: int
    label_stats: Dict[str, LabelStat] = field(default_factory=dict)
    rel_type_stats: Dict[str, LabelStat] = field(default_factory=dict)
