"""Rendering surface contract: event registration and refresh requests."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .graph import Graph

logger = logging.getLogger(__name__)


class ViewEvent(str, Enum):
    NODE_MOUSE_OVER = "nodeMouseOver"
    NODE_MOUSE_OUT = "nodeMouseOut"
    MENU_MOUSE_OVER = "menuMouseOver"
    MENU_MOUSE_OUT = "menuMouseOut"
    REL_MOUSE_OVER = "relMouseOver"
    REL_MOUSE_OUT = "relMouseOut"
    RELATIONSHIP_CLICKED = "relationshipClicked"
    CANVAS_CLICKED = "canvasClicked"
    NODE_CLOSE = "nodeClose"
    NODE_CLICKED = "nodeClicked"
    NODE_DBL_CLICKED = "nodeDblClicked"
    NODE_UNLOCK = "nodeUnlock"


Handler = Callable[..., Any]


class GraphView:
    """Owns rendering of a :class:`Graph` and is the source of raw events.

    Subclasses draw by overriding :meth:`render`; the base class only keeps the
    handler registry and counts refresh requests.
    """

    def __init__(self, graph: Graph) -> None:
        self.graph = graph
        self._handlers: Dict[ViewEvent, Handler] = {}
        self.update_count = 0
        self.last_update: Optional[Tuple[bool, bool]] = None

    def on(self, event: Union[ViewEvent, str], handler: Handler) -> "GraphView":
        self._handlers[ViewEvent(event)] = handler
        return self

    def handler_for(self, event: Union[ViewEvent, str]) -> Optional[Handler]:
        return self._handlers.get(ViewEvent(event))

    def trigger(self, event: Union[ViewEvent, str], *args: Any) -> Any:
        """Dispatch a raw interaction event to its registered handler."""
        event = ViewEvent(event)
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("No handler bound for %s", event.value)
            return None
        return handler(*args)

    def update(self, update_nodes: bool = False, update_relationships: bool = False) -> None:
        self.update_count += 1
        self.last_update = (update_nodes, update_relationships)
        self.render(update_nodes, update_relationships)

    def render(self, update_nodes: bool, update_relationships: bool) -> None:
        pass
