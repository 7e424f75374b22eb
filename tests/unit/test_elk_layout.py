from __future__ import annotations

import pytest

from adac_diagram.graph.containment import ContainmentNode, Diagram, GraphEdge, LayoutHints, NodeKind, make_root
from adac_diagram.layout.base import LayoutError
from adac_diagram.layout.elk import ROOT_LAYOUT_OPTIONS, ElkLayoutOracle, NodeElkRunner, to_elk_graph


def _diagram() -> Diagram:
    root = make_root()
    cluster = ContainmentNode(id="c", kind=NodeKind.COMPUTE, label="Cluster", width=300, height=250, hints=LayoutHints())
    cluster.children = [ContainmentNode(id="a", label="A"), ContainmentNode(id="b", label="B")]
    root.children = [cluster, ContainmentNode(id="u", kind=NodeKind.EXTERNAL, label="u")]
    edges = [
        GraphEdge(id="a->b", source="a", target="b", label="grpc", container="c"),
        GraphEdge(id="u->a", source="u", target="a"),
    ]
    return Diagram(root=root, edges=edges)


def _fake_elk(graph):
    """Position children on a 100px grid and give every edge a straight section."""

    def place(node, depth):
        out = dict(node)
        children = []
        for i, child in enumerate(node.get("children") or []):
            placed = place(child, depth + 1)
            placed["x"] = 10.0 + 100.0 * i
            placed["y"] = 40.0 * depth
            children.append(placed)
        if children:
            out["children"] = children
            out["width"] = 500.0
            out["height"] = 300.0
        out["edges"] = [
            {**e, "sections": [{"startPoint": {"x": 1, "y": 2}, "endPoint": {"x": 3, "y": 4}, "bendPoints": [{"x": 2, "y": 3}]}]}
            for e in node.get("edges") or []
        ]
        return out

    return place(graph, 0)


def test_elk_graph_puts_edges_in_their_container():
    graph = to_elk_graph(_diagram())
    assert graph["layoutOptions"] == ROOT_LAYOUT_OPTIONS
    assert [e["id"] for e in graph["edges"]] == ["u->a"]
    cluster = graph["children"][0]
    assert [e["id"] for e in cluster["edges"]] == ["a->b"]
    assert cluster["edges"][0]["labels"] == [{"text": "grpc"}]
    assert cluster["layoutOptions"]["elk.padding"] == "[top=40,left=20,bottom=20,right=20]"
    assert "layoutOptions" not in cluster["children"][0]


def test_unknown_edge_container_falls_back_to_root():
    diagram = _diagram()
    diagram.edges[0].container = "vanished"
    graph = to_elk_graph(diagram)
    assert sorted(e["id"] for e in graph["edges"]) == ["a->b", "u->a"]


def test_layout_copies_positions_sizes_and_sections():
    diagram = _diagram()
    positioned = ElkLayoutOracle(_fake_elk).layout(diagram)
    index = positioned.index()
    assert (index["c"].x, index["c"].y) == (10.0, 0.0)
    assert (index["c"].width, index["c"].height) == (500.0, 300.0)
    assert (index["b"].x, index["b"].y) == (110.0, 40.0)
    edges = {e.id: e for e in positioned.edges}
    assert edges["a->b"].container == "c"
    assert edges["u->a"].container is None
    section = edges["a->b"].sections[0]
    assert (section.start.x, section.end.y) == (1.0, 4.0)
    assert len(section.bend_points) == 1
    assert diagram.root.children[0].x is None


def test_missing_node_in_result_raises():
    def lossy(graph):
        result = _fake_elk(graph)
        result["children"] = result["children"][:1]
        return result

    with pytest.raises(LayoutError) as exc_info:
        ElkLayoutOracle(lossy).layout(_diagram())
    assert exc_info.value.engine == "elk"
    assert "u" in exc_info.value.message


def test_runner_error_carries_engine():
    def broken(_graph):
        raise LayoutError("ELK layout failed: boom")

    with pytest.raises(LayoutError) as exc_info:
        ElkLayoutOracle(broken).layout(_diagram())
    assert exc_info.value.engine == "elk"
    assert exc_info.value.edge_count == 2


def test_missing_node_binary_is_layout_error():
    runner = NodeElkRunner(node_binary="definitely-not-a-real-node-binary")
    with pytest.raises(LayoutError):
        runner({"id": "root"})
