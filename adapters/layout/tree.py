from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple, Union

from domain.models import (
    ROOT_PATH,
    GraphEdge,
    GraphLayout,
    GraphNode,
    JsonPrimitive,
    JsonValue,
    NodeKind,
    Point,
    is_primitive,
)
from domain.paths import join_member, member_label, node_label
from domain.ports.layout import LayoutEngine
from domain.services.tree_size import calculate_tree_size

Member = Tuple[Union[str, int], JsonValue]


@dataclass(frozen=True)
class LayoutConfig:
    horizontal_unit: float = 500.0
    vertical_unit: float = 120.0
    horizontal_margin: float = 80.0
    vertical_margin: float = 80.0
    sibling_gap: float = 1.2


@dataclass
class _Frame:
    path: str
    depth: int
    start_slot: float
    cursor: float
    members: Iterator[Member]
    primitive_fields: Dict[str, JsonPrimitive] = field(default_factory=dict)


class TreeLayoutEngine(LayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def build_layout(self, document: JsonValue) -> GraphLayout:
        if is_primitive(document):
            return GraphLayout(nodes=[], edges=[], height=0)

        nodes: List[GraphNode] = []
        edges: List[GraphEdge] = []
        stack = [self._open(document, ROOT_PATH, None, 0, 0.0, nodes)]
        height = 0.0

        # Depth-first walk with an explicit stack: a node is emitted when it is
        # opened and its height is known once all of its members are consumed.
        while stack:
            frame = stack[-1]
            member = next(frame.members, None)
            if member is None:
                stack.pop()
                height = max(1.0, frame.cursor - frame.start_slot)
                if stack:
                    stack[-1].cursor += height + self.config.sibling_gap
                continue

            key, value = member
            if is_primitive(value):
                frame.primitive_fields[member_label(key)] = value
                continue

            child_path = join_member(frame.path, key)
            edges.append(GraphEdge(source=frame.path, target=child_path, label=member_label(key)))
            stack.append(self._open(value, child_path, key, frame.depth + 1, frame.cursor, nodes))

        return GraphLayout(nodes=nodes, edges=edges, height=height)

    def position_for(self, depth: int, slot: float) -> Point:
        return Point(
            depth * self.config.horizontal_unit + self.config.horizontal_margin,
            slot * self.config.vertical_unit + self.config.vertical_margin,
        )

    def _open(
        self,
        value: JsonValue,
        path: str,
        key: str | int | None,
        depth: int,
        start_slot: float,
        nodes: List[GraphNode],
    ) -> _Frame:
        members: Iterator[Member]
        if isinstance(value, list):
            kind = NodeKind.ARRAY
            members = iter(enumerate(value))
        else:
            kind = NodeKind.OBJECT
            members = iter(value.items())  # type: ignore[union-attr]

        frame = _Frame(path=path, depth=depth, start_slot=start_slot, cursor=start_slot, members=members)
        nodes.append(
            GraphNode(
                node_id=path,
                kind=kind,
                depth=depth,
                slot=start_slot,
                position=self.position_for(depth, start_slot),
                label=node_label(path, key),
                primitive_fields=frame.primitive_fields,
                subtree_size=calculate_tree_size(value),
            )
        )
        return frame
