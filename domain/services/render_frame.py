from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Dict, List

from domain.models import GraphEdge, JsonPrimitive, NodeKind, NodeStructure, Point, Size
from domain.paths import display_path


@dataclass(frozen=True)
class RenderConfig:
    node_width: float = 320.0
    header_height: float = 56.0
    row_height: float = 28.0
    body_padding: float = 24.0
    anchor_offset_y: float = 28.0


@dataclass(frozen=True)
class RenderedNode:
    node_id: str
    kind: NodeKind
    label: str
    origin: Point
    size: Size
    primitive_fields: Dict[str, JsonPrimitive]

    def contains(self, point: Point) -> bool:
        return (
            self.origin.x <= point.x <= self.origin.x + self.size.width
            and self.origin.y <= point.y <= self.origin.y + self.size.height
        )

    def to_dict(self) -> dict:
        return {
            "id": self.node_id,
            "path": display_path(self.node_id),
            "kind": self.kind.value,
            "label": self.label,
            "x": self.origin.x,
            "y": self.origin.y,
            "width": self.size.width,
            "height": self.size.height,
            "rows": [[key, format_primitive(value)] for key, value in self.primitive_fields.items()],
        }


@dataclass(frozen=True)
class EdgeCurve:
    source: str
    target: str
    label: str
    start: Point
    control_1: Point
    control_2: Point
    end: Point

    @property
    def label_position(self) -> Point:
        return Point((self.start.x + self.end.x) / 2, (self.start.y + self.end.y) / 2)

    @property
    def svg_path(self) -> str:
        return (
            f"M {_num(self.start.x)} {_num(self.start.y)} "
            f"C {_num(self.control_1.x)} {_num(self.control_1.y)}, "
            f"{_num(self.control_2.x)} {_num(self.control_2.y)}, "
            f"{_num(self.end.x)} {_num(self.end.y)}"
        )

    def to_dict(self) -> dict:
        label_position = self.label_position
        return {
            "from": self.source,
            "to": self.target,
            "label": self.label,
            "path": self.svg_path,
            "label_x": label_position.x,
            "label_y": label_position.y,
        }


@dataclass(frozen=True)
class RenderFrame:
    nodes: List[RenderedNode]
    edges: List[EdgeCurve]
    pan: Point

    def node_at(self, point: Point) -> RenderedNode | None:
        # Later nodes are drawn on top, so they win the hit test.
        for node in reversed(self.nodes):
            if node.contains(point):
                return node
        return None

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "pan": {"x": self.pan.x, "y": self.pan.y},
        }


def format_primitive(value: JsonPrimitive) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def node_box_size(field_count: int, config: RenderConfig) -> Size:
    rows = max(1, field_count)
    return Size(
        config.node_width,
        config.header_height + rows * config.row_height + config.body_padding,
    )


def build_edge_curve(edge: GraphEdge, source: Point, target: Point, config: RenderConfig) -> EdgeCurve:
    start = Point(source.x + config.node_width, source.y + config.anchor_offset_y)
    end = Point(target.x, target.y + config.anchor_offset_y)
    mid_x = start.x + (end.x - start.x) / 2
    return EdgeCurve(
        source=edge.source,
        target=edge.target,
        label=edge.label,
        start=start,
        control_1=Point(mid_x, start.y),
        control_2=Point(mid_x, end.y),
        end=end,
    )


def build_render_frame(
    structures: Iterable[NodeStructure],
    positions: Mapping[str, Point],
    edges: Iterable[GraphEdge],
    pan: Point,
    config: RenderConfig | None = None,
) -> RenderFrame:
    config = config or RenderConfig()
    screen: Dict[str, Point] = {}
    nodes: List[RenderedNode] = []
    for structure in structures:
        position = positions[structure.node_id]
        origin = position.offset(pan.x, pan.y)
        screen[structure.node_id] = origin
        nodes.append(
            RenderedNode(
                node_id=structure.node_id,
                kind=structure.kind,
                label=structure.label,
                origin=origin,
                size=node_box_size(len(structure.primitive_fields), config),
                primitive_fields=structure.primitive_fields,
            )
        )
    curves = [
        build_edge_curve(edge, screen[edge.source], screen[edge.target], config)
        for edge in edges
        if edge.source in screen and edge.target in screen
    ]
    return RenderFrame(nodes=nodes, edges=curves, pan=pan)


def _num(value: float) -> str:
    rounded = round(float(value), 3)
    if rounded.is_integer():
        return str(int(rounded))
    return str(rounded)
