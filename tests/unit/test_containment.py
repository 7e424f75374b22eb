from __future__ import annotations

from adac_diagram.graph.containment import (
    ROOT_ID,
    ContainmentNode,
    Diagram,
    EdgeSection,
    GraphEdge,
    LayoutHints,
    NodeKind,
    Point,
    flatten,
    index_nodes,
    make_root,
    parent_map,
)


def _tree() -> ContainmentNode:
    root = make_root()
    vpc = ContainmentNode(id="vpc", kind=NodeKind.BOUNDARY, label="VPC", width=400, height=400, hints=LayoutHints())
    vpc.children = [
        ContainmentNode(id="a", label="A", icon="a.svg"),
        ContainmentNode(id="b", label="B", x=10.0, y=12.5),
    ]
    root.children = [vpc, ContainmentNode(id="ext", kind=NodeKind.EXTERNAL, style="external")]
    return root


def test_flat_round_trip_is_lossless():
    root = _tree()
    flat = flatten(root)
    assert flat.parents["a"] == "vpc"
    assert flat.parents[ROOT_ID] is None
    assert flat.children_of("vpc") == ["a", "b"]
    assert flat.to_tree().to_dict() == root.to_dict()


def test_flatten_does_not_share_children():
    root = _tree()
    flat = flatten(root)
    assert flat.nodes["vpc"].children == []
    assert len(root.children[0].children) == 2


def test_index_and_parent_map():
    root = _tree()
    index = index_nodes(root)
    assert set(index) == {ROOT_ID, "vpc", "a", "b", "ext"}
    parents = parent_map(root)
    assert parents["b"] == "vpc"
    assert parents["ext"] == ROOT_ID


def test_container_kinds():
    assert NodeKind.BOUNDARY.is_container
    assert NodeKind.ORPHAN_BUCKET.is_container
    assert not NodeKind.LEAF.is_container
    assert not NodeKind.EXTERNAL.is_container


def test_diagram_dict_round_trip():
    edge = GraphEdge(
        id="a->b",
        source="a",
        target="b",
        label="calls",
        container="vpc",
        sections=[EdgeSection(start=Point(0, 0), end=Point(10, 5), bend_points=[Point(5, 0)])],
    )
    diagram = Diagram(root=_tree(), edges=[edge])
    data = diagram.to_dict()
    assert data["edges"][0]["sections"][0]["bendPoints"] == [{"x": 5, "y": 0}]
    assert Diagram.from_dict(data).to_dict() == data
    assert diagram.node_count() == 4


def test_copy_is_deep():
    diagram = Diagram(root=_tree())
    clone = diagram.copy()
    clone.root.children[0].children[0].x = 99.0
    assert diagram.root.children[0].children[0].x is None


def test_section_points_and_shift():
    section = EdgeSection.from_points([Point(0, 0), Point(1, 1), Point(2, 0)])
    assert section.bend_points == [Point(1, 1)]
    moved = section.shifted(10, 20)
    assert moved.points() == [Point(10, 20), Point(11, 21), Point(12, 20)]
