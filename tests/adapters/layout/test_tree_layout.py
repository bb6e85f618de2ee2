from __future__ import annotations

from typing import Any

import pytest

from adapters.layout.tree import LayoutConfig, TreeLayoutEngine
from domain.models import GraphEdge, GraphLayout, NodeKind, Point
from domain.paths import join_member
from tests.helpers.documents import count_containers, load_sample_document, nested_list


def _nodes(layout: GraphLayout) -> dict[str, Any]:
    return {node.node_id: node for node in layout.nodes}


def _descendants(layout: GraphLayout, node_id: str) -> set[str]:
    children: dict[str, list[str]] = {}
    for edge in layout.edges:
        children.setdefault(edge.source, []).append(edge.target)
    found: set[str] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        found.add(current)
        stack.extend(children.get(current, []))
    return found


def test_object_with_nested_object() -> None:
    layout = TreeLayoutEngine().build_layout({"a": 1, "b": {"c": 2}})
    nodes = _nodes(layout)

    assert layout.node_ids() == ["", "b"]
    assert nodes[""].label == "Root"
    assert nodes[""].kind is NodeKind.OBJECT
    assert nodes[""].primitive_fields == {"a": 1}
    assert nodes[""].subtree_size == 2
    assert nodes["b"].label == "b"
    assert nodes["b"].primitive_fields == {"c": 2}
    assert layout.edges == [GraphEdge(source="", target="b", label="b")]
    assert layout.height == pytest.approx(2.2)
    assert nodes[""].position == Point(80, 80)
    assert nodes["b"].position == Point(580, 80)


def test_empty_array_is_a_single_node() -> None:
    layout = TreeLayoutEngine().build_layout([])

    assert len(layout.nodes) == 1
    root = layout.nodes[0]
    assert root.kind is NodeKind.ARRAY
    assert root.primitive_fields == {}
    assert root.subtree_size == 1
    assert layout.edges == []
    assert layout.height == 1


@pytest.mark.parametrize("value", [None, 0, "text", True])
def test_primitive_document_produces_no_nodes(value: object) -> None:
    layout = TreeLayoutEngine().build_layout(value)

    assert layout.nodes == []
    assert layout.edges == []
    assert layout.height == 0


def test_chain_moves_right_with_depth() -> None:
    layout = TreeLayoutEngine().build_layout({"x": {"y": {"z": 1}}})
    nodes = _nodes(layout)

    assert layout.node_ids() == ["", "x", "x.y"]
    assert [nodes[node_id].depth for node_id in layout.node_ids()] == [0, 1, 2]
    assert nodes[""].position.x < nodes["x"].position.x < nodes["x.y"].position.x
    assert layout.edges == [
        GraphEdge(source="", target="x", label="x"),
        GraphEdge(source="x", target="x.y", label="y"),
    ]
    assert nodes["x.y"].primitive_fields == {"z": 1}


def test_sibling_bands_do_not_overlap() -> None:
    document = {"a": {"p": 1, "q": 2}, "b": [1, {"k": {"m": 1}}], "c": {}}
    layout = TreeLayoutEngine().build_layout(document)
    nodes = _nodes(layout)

    assert nodes["a"].slot == pytest.approx(0.0)
    assert nodes["b"].slot == pytest.approx(2.2)
    assert nodes["b[1]"].slot == pytest.approx(2.2)
    assert nodes["b[1].k"].slot == pytest.approx(2.2)
    assert nodes["c"].slot == pytest.approx(6.8)
    assert layout.height == pytest.approx(9.0)
    assert nodes["b"].primitive_fields == {"0": 1}

    gap = LayoutConfig().sibling_gap
    siblings: dict[str, list[str]] = {}
    for edge in layout.edges:
        siblings.setdefault(edge.source, []).append(edge.target)
    for children in siblings.values():
        for previous, following in zip(children, children[1:]):
            band_end = max(nodes[node_id].slot for node_id in _descendants(layout, previous)) + 1
            assert nodes[following].slot >= band_end + gap - 1e-9


def test_sample_document_graph_is_consistent() -> None:
    document = load_sample_document()
    layout = TreeLayoutEngine().build_layout(document)
    ids = layout.node_ids()
    nodes = _nodes(layout)

    assert len(ids) == count_containers(document) == 11
    assert len(set(ids)) == len(ids)
    assert len(layout.edges) == len(ids) - 1
    for edge in layout.edges:
        assert ids.count(edge.target) == 1
        assert edge.source in ids
        key = int(edge.label) if nodes[edge.source].kind is NodeKind.ARRAY else edge.label
        assert edge.target == join_member(edge.source, key)
    assert "features[2].details" in ids
    assert "team.devs" in ids
    assert nodes["stats"].primitive_fields == {
        "visitors": 1204,
        "revenue": 450.5,
        "growth": None,
    }


def test_parents_are_emitted_before_children() -> None:
    layout = TreeLayoutEngine().build_layout(load_sample_document())
    order = {node_id: index for index, node_id in enumerate(layout.node_ids())}

    for edge in layout.edges:
        assert order[edge.source] < order[edge.target]


def test_rebuild_is_idempotent() -> None:
    engine = TreeLayoutEngine()
    document = load_sample_document()

    assert engine.build_layout(document) == engine.build_layout(document)


def test_array_members_use_index_paths_and_labels() -> None:
    layout = TreeLayoutEngine().build_layout([{"a": 1}, [2]])
    nodes = _nodes(layout)

    assert layout.node_ids() == ["", "[0]", "[1]"]
    assert nodes["[0]"].label == "0"
    assert nodes["[1]"].kind is NodeKind.ARRAY
    assert nodes["[1]"].primitive_fields == {"0": 2}
    assert [edge.label for edge in layout.edges] == ["0", "1"]


def test_keys_with_path_syntax_keep_ids_unique() -> None:
    document = {"a.b": {"x": 1}, "a": {"b": {"y": 2}}, "": {}}
    layout = TreeLayoutEngine().build_layout(document)
    ids = layout.node_ids()

    assert '["a.b"]' in ids
    assert "a.b" in ids
    assert '[""]' in ids
    assert len(set(ids)) == len(ids)


def test_primitive_fields_keep_member_order() -> None:
    layout = TreeLayoutEngine().build_layout({"z": 1, "a": 2, "m": None})

    assert list(layout.nodes[0].primitive_fields) == ["z", "a", "m"]


def test_layout_config_controls_coordinates() -> None:
    config = LayoutConfig(
        horizontal_unit=100,
        vertical_unit=10,
        horizontal_margin=0,
        vertical_margin=5,
        sibling_gap=0,
    )
    layout = TreeLayoutEngine(config).build_layout({"a": {"b": {}}, "c": {}})
    nodes = _nodes(layout)

    assert nodes["a.b"].position == Point(200, 5)
    assert nodes["c"].slot == pytest.approx(1.0)
    assert nodes["c"].position == Point(100, 15)


def test_deep_nesting_is_laid_out_without_recursion() -> None:
    layout = TreeLayoutEngine().build_layout(nested_list(1500))

    assert len(layout.nodes) == 1500
    assert layout.nodes[-1].depth == 1499
    assert layout.nodes[-1].primitive_fields == {"0": 1}
