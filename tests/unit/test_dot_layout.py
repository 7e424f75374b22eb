"""Rank-based adapter tests against canned `dot -Tjson` output.

Fixture geometry (Graphviz frame, y up, bb 0,0,500,300):
  cluster_v   bb 100,20,400,280  -> top-left (100, 20), 300x260
  a           center (180, 150)  -> top-left (140, 110), 80x80
  b           center (320, 150)  -> top-left (280, 110), 80x80
  ext         center (40, 150)   -> top-left (0, 110),   80x80
"""
from __future__ import annotations

import pytest

from adac_diagram.graph.containment import Diagram, ContainmentNode, GraphEdge, LayoutHints, NodeKind, make_root
from adac_diagram.layout.base import LayoutError
from adac_diagram.layout.dot import ANCHOR_SUFFIX, DotLayoutOracle, GraphvizRunner, _parse_path
from adac_diagram.layout.geometry import Rect

_INCH = 80.0 / 72.0


class _FakeRunner:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def __call__(self, dot_text):
        self.calls.append(dot_text)
        return self.result


def _diagram() -> Diagram:
    root = make_root()
    vpc = ContainmentNode(id="v", kind=NodeKind.BOUNDARY, label="VPC", width=400, height=400, hints=LayoutHints())
    vpc.children = [ContainmentNode(id="a"), ContainmentNode(id="b")]
    root.children = [vpc, ContainmentNode(id="ext", kind=NodeKind.EXTERNAL)]
    edges = [
        GraphEdge(id="ext->v", source="ext", target="v"),
        GraphEdge(id="a->b", source="a", target="b", container="v"),
        GraphEdge(id="v->a", source="v", target="a"),
        GraphEdge(id="ghost->a", source="ghost", target="a"),
    ]
    return Diagram(root=root, edges=edges)


def _result(drop=None) -> dict:
    objects = [
        {"name": "cluster_v", "bb": "100,20,400,280"},
        {"name": "v" + ANCHOR_SUFFIX, "pos": "250,150", "width": "0", "height": "0"},
        {"name": "a", "pos": "180,150", "width": str(_INCH), "height": str(_INCH)},
        {"name": "b", "pos": "320,150", "width": str(_INCH), "height": str(_INCH)},
        {"name": "ext", "pos": "40,150", "width": str(_INCH), "height": str(_INCH)},
    ]
    return {
        "bb": "0,0,500,300",
        "objects": [o for o in objects if o["name"] != drop],
        "edges": [
            {"id": "ext->v", "pos": "40,150 100,150 150,150 250,150"},
            {"id": "a->b", "pos": "180,150 240,150 260,150 320,150"},
        ],
    }


def test_dot_text_has_clusters_anchors_and_substituted_edges():
    runner = _FakeRunner(_result())
    DotLayoutOracle(runner).layout(_diagram())
    text = runner.calls[0]
    assert 'subgraph "cluster_v"' in text
    assert '"v__anchor" [shape="point"' in text
    assert '"ext" -> "v__anchor" [id="ext->v"]' in text
    assert '"a" -> "b" [id="a->b"]' in text
    assert "ghost" not in text
    assert '"v" ->' not in text
    assert 'rankdir="LR"' in text


def test_degenerate_edges_are_dropped_from_output():
    positioned = DotLayoutOracle(_FakeRunner(_result())).layout(_diagram())
    assert [e.id for e in positioned.edges] == ["ext->v", "a->b"]


def test_centers_become_parent_relative_top_left():
    positioned = DotLayoutOracle(_FakeRunner(_result())).layout(_diagram())
    index = positioned.index()
    assert (index["v"].x, index["v"].y) == (100.0, 20.0)
    assert (index["v"].width, index["v"].height) == (300.0, 260.0)
    assert index["a"].x == pytest.approx(40.0)
    assert index["a"].y == pytest.approx(90.0)
    assert index["b"].x == pytest.approx(180.0)
    assert index["ext"].x == pytest.approx(0.0)
    assert index["ext"].y == pytest.approx(110.0)
    assert (positioned.root.width, positioned.root.height) == (500.0, 300.0)
    assert "v" + ANCHOR_SUFFIX not in index


def test_path_ends_are_clipped_to_node_borders():
    positioned = DotLayoutOracle(_FakeRunner(_result())).layout(_diagram())
    edge = {e.id: e for e in positioned.edges}["a->b"]
    section = edge.sections[0]
    # container frame of v: a spans x 40..120, b spans x 180..260
    assert section.start.x == pytest.approx(120.0)
    assert section.start.y == pytest.approx(130.0)
    assert section.end.x == pytest.approx(180.0)
    assert section.end.y == pytest.approx(130.0)
    a_box = Rect(40, 90, 80, 80)
    assert a_box.on_border(section.start, tolerance=1e-6)


def test_root_level_edge_clipped_at_source():
    positioned = DotLayoutOracle(_FakeRunner(_result())).layout(_diagram())
    edge = {e.id: e for e in positioned.edges}["ext->v"]
    assert edge.container is None
    assert edge.sections[0].start.x == pytest.approx(80.0)


def test_input_diagram_is_not_mutated():
    diagram = _diagram()
    DotLayoutOracle(_FakeRunner(_result())).layout(diagram)
    assert diagram.root.children[0].x is None
    assert len(diagram.edges) == 4


def test_missing_node_raises_layout_error_with_context():
    with pytest.raises(LayoutError) as exc_info:
        DotLayoutOracle(_FakeRunner(_result(drop="b"))).layout(_diagram())
    err = exc_info.value
    assert err.engine == "dot"
    assert err.node_count == 4
    assert err.edge_count == 4
    assert "b" in err.message


def test_runner_failure_is_wrapped():
    def broken(_text):
        raise LayoutError("Graphviz failed: syntax error")

    with pytest.raises(LayoutError) as exc_info:
        DotLayoutOracle(broken).layout(_diagram())
    assert exc_info.value.engine == "dot"
    assert "syntax error" in str(exc_info.value)


def test_missing_bounding_box_is_layout_error():
    with pytest.raises(LayoutError):
        DotLayoutOracle(_FakeRunner({"objects": []})).layout(_diagram())


def test_parse_path_flips_y_and_orders_endpoints():
    points = _parse_path("e,90,10 10,10 30,10 50,10 80,10", top=100.0)
    assert [(p.x, p.y) for p in points] == [(10, 90), (30, 90), (50, 90), (80, 90), (90, 90)]


def test_missing_binary_is_layout_error():
    runner = GraphvizRunner(dot_binary="definitely-not-a-real-dot-binary")
    with pytest.raises(LayoutError):
        runner("digraph G {}")
