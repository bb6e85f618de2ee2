from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

JsonPrimitive = Union[None, bool, int, float, str]
JsonValue = Union[JsonPrimitive, List["JsonValue"], Dict[str, "JsonValue"]]

ROOT_PATH = ""
ROOT_LABEL = "Root"
ROOT_DISPLAY = "root"


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"


def is_primitive(value: object) -> bool:
    return not isinstance(value, (dict, list))


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class NodeStructure:
    node_id: str
    kind: NodeKind
    depth: int
    label: str
    primitive_fields: Dict[str, JsonPrimitive]


@dataclass(frozen=True)
class GraphNode:
    node_id: str
    kind: NodeKind
    depth: int
    slot: float
    position: Point
    label: str
    primitive_fields: Dict[str, JsonPrimitive] = field(default_factory=dict)
    subtree_size: int = 1

    @property
    def structure(self) -> NodeStructure:
        return NodeStructure(
            node_id=self.node_id,
            kind=self.kind,
            depth=self.depth,
            label=self.label,
            primitive_fields=self.primitive_fields,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.node_id,
            "kind": self.kind.value,
            "depth": self.depth,
            "slot": self.slot,
            "position": {"x": self.position.x, "y": self.position.y},
            "label": self.label,
            "primitive_fields": dict(self.primitive_fields),
            "subtree_size": self.subtree_size,
        }


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    label: str

    def to_dict(self) -> dict:
        return {"from": self.source, "to": self.target, "label": self.label}


@dataclass(frozen=True)
class GraphLayout:
    nodes: List[GraphNode]
    edges: List[GraphEdge]
    height: float

    def node_ids(self) -> List[str]:
        return [node.node_id for node in self.nodes]

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "height": self.height,
        }
