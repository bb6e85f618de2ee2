from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Set

from domain.models import GraphEdge, GraphNode, JsonValue, NodeKind, Point
from domain.paths import join_index, join_key
from domain.ports.layout import LayoutEngine
from domain.services.pointer_events import (
    PRIMARY_BUTTON,
    DragSubscription,
    Pointer,
    PointerEventHub,
)
from domain.services.render_frame import RenderConfig, RenderFrame, build_render_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragSession:
    target_id: str | None
    pointer_origin: Point
    target_origin: Point

    @property
    def is_node_drag(self) -> bool:
        return self.target_id is not None


class ViewportController:
    """Owns the session-local node positions, the pan offset and drag state.

    Structure (labels, fields, edges, layout positions) is always re-derived
    from the document; positions are a separate overlay the user can move.
    A document change that arrives while a node is being dragged is held back
    and applied when the drag ends.
    """

    def __init__(
        self,
        layout_engine: LayoutEngine,
        render_config: RenderConfig | None = None,
        *,
        preserve_manual_positions: bool = False,
        hub: PointerEventHub | None = None,
    ) -> None:
        self.layout_engine = layout_engine
        self.render_config = render_config or RenderConfig()
        self.preserve_manual_positions = preserve_manual_positions
        self.hub = hub or PointerEventHub()
        self.pan = Point(0.0, 0.0)
        self.edges: List[GraphEdge] = []
        self.height: float = 0.0
        self.session: DragSession | None = None
        self.rebuild_count = 0
        self._layout: Dict[str, GraphNode] = {}
        self._positions: Dict[str, Point] = {}
        self._moved: Set[str] = set()
        self._subscription: DragSubscription | None = None
        self._pending: JsonValue = None
        self._has_pending = False

    @property
    def node_ids(self) -> List[str]:
        return list(self._layout)

    @property
    def is_dragging_node(self) -> bool:
        return self.session is not None and self.session.is_node_drag

    @property
    def has_pending_rebuild(self) -> bool:
        return self._has_pending

    def position_of(self, node_id: str) -> Point:
        if node_id not in self._positions:
            msg = f"Unknown node: {node_id!r}"
            raise KeyError(msg)
        return self._positions[node_id]

    def nodes(self) -> List[GraphNode]:
        return [replace(node, position=self._positions[node_id]) for node_id, node in self._layout.items()]

    def load(self, document: JsonValue) -> None:
        self._rebuild(document)

    def on_document_change(self, document: JsonValue) -> bool:
        if self.is_dragging_node:
            self._pending = document
            self._has_pending = True
            logger.debug("Rebuild deferred until node drag ends.")
            return False
        self._rebuild(document)
        return True

    def begin_drag(self, pointer: Pointer, node_id: str | None = None) -> DragSession | None:
        if pointer.button != PRIMARY_BUTTON:
            logger.debug("Ignoring pointer down for button %s.", pointer.button)
            return None
        if self.session is not None:
            self.end_drag()

        if node_id is None:
            target_origin = self.pan
        elif node_id in self._positions:
            target_origin = self._positions[node_id]
        else:
            logger.debug("Ignoring drag on unknown node %r.", node_id)
            return None

        self.session = DragSession(
            target_id=node_id,
            pointer_origin=Point(pointer.x, pointer.y),
            target_origin=target_origin,
        )
        self._subscription = self.hub.subscribe(self.update_drag, self.end_drag)
        return self.session

    def update_drag(self, pointer: Pointer) -> None:
        session = self.session
        if session is None:
            return
        dx = pointer.x - session.pointer_origin.x
        dy = pointer.y - session.pointer_origin.y
        moved = session.target_origin.offset(dx, dy)
        if session.target_id is None:
            self.pan = moved
            return
        self._positions[session.target_id] = moved
        if moved == self._layout[session.target_id].position:
            self._moved.discard(session.target_id)
        else:
            self._moved.add(session.target_id)

    def end_drag(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
        self.session = None
        if self._has_pending:
            document = self._pending
            self._pending = None
            self._has_pending = False
            self._rebuild(document)

    def pointer_down(self, pointer: Pointer) -> DragSession | None:
        return self.begin_drag(pointer, self.hit_test(Point(pointer.x, pointer.y)))

    def hit_test(self, point: Point) -> str | None:
        node = self.frame().node_at(point)
        return node.node_id if node else None

    def path_for(self, node_id: str, field: str | None = None) -> str:
        node = self._layout.get(node_id)
        if node is None:
            msg = f"Unknown node: {node_id!r}"
            raise KeyError(msg)
        if field is None:
            return node_id
        if field not in node.primitive_fields:
            msg = f"Node {node_id!r} has no primitive field {field!r}"
            raise KeyError(msg)
        if node.kind is NodeKind.ARRAY:
            return join_index(node_id, int(field))
        return join_key(node_id, field)

    def frame(self) -> RenderFrame:
        return build_render_frame(
            (node.structure for node in self._layout.values()),
            self._positions,
            self.edges,
            self.pan,
            self.render_config,
        )

    def _rebuild(self, document: JsonValue) -> None:
        layout = self.layout_engine.build_layout(document)
        nodes = {node.node_id: node for node in layout.nodes}
        positions = {node_id: node.position for node_id, node in nodes.items()}
        moved: Set[str] = set()
        if self.preserve_manual_positions:
            for node_id in self._moved & positions.keys():
                positions[node_id] = self._positions[node_id]
                moved.add(node_id)

        self._layout = nodes
        self._positions = positions
        self._moved = moved
        self.edges = list(layout.edges)
        self.height = layout.height
        self.rebuild_count += 1
        logger.debug("Rebuilt layout with %d nodes and %d edges.", len(nodes), len(self.edges))
