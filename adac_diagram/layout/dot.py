"""Rank-based layout through Graphviz `dot`.

Graphviz draws containers as clusters but cannot route an edge to a
cluster, and reports every node as an absolute center point with the y
axis pointing up. This adapter hides both:

* each container with children gets a zero-size anchor node inside its
  cluster, used in place of the container whenever it is an edge endpoint;
* edges that collapse onto one node after that substitution, or that join
  a node to one of its own ancestors, are dropped;
* absolute centers are turned into parent-relative top-left positions;
* the first and last segment of every path is clipped to the border of
  the real start and end node.

Anchors never leave this module.
"""
from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from adac_diagram.graph.containment import (
    ContainmentNode,
    Diagram,
    EdgeSection,
    GraphEdge,
    Point,
    index_nodes,
    parent_map,
)
from adac_diagram.layout.base import LayoutError, LayoutOracle
from adac_diagram.layout.geometry import Rect, clip_to_rect

logger = logging.getLogger(__name__)

DotRunner = Callable[[str], Dict[str, Any]]

POINTS_PER_INCH = 72.0
ANCHOR_SUFFIX = "__anchor"
CLUSTER_PREFIX = "cluster_"


@dataclass(frozen=True)
class CenterBox:
    """Oracle-native geometry: absolute center point plus size."""

    cx: float
    cy: float
    width: float
    height: float

    @property
    def top_left(self) -> Point:
        return Point(self.cx - self.width / 2.0, self.cy - self.height / 2.0)


@dataclass
class RoutedEdge:
    edge: GraphEdge
    tail: str
    head: str


class GraphvizRunner:
    """Runs `dot -Tjson` on a DOT document."""

    def __init__(self, dot_binary: str = "dot", timeout: float = 30.0):
        self.dot_binary = dot_binary
        self.timeout = timeout

    def __call__(self, dot_text: str) -> Dict[str, Any]:
        dot_path = shutil.which(self.dot_binary)
        if not dot_path:
            raise LayoutError(f"Graphviz executable not found: {self.dot_binary}")
        try:
            proc = subprocess.run(
                [dot_path, "-Tjson"],
                input=dot_text,
                text=True,
                capture_output=True,
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise LayoutError(f"Graphviz layout timed out after {self.timeout:g}s") from exc
        except OSError as exc:
            raise LayoutError(f"failed to execute Graphviz: {exc}") from exc
        if proc.returncode != 0:
            detail = (proc.stderr or "").strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise LayoutError(f"Graphviz failed: {detail or 'unknown error'}")
        try:
            return json.loads(proc.stdout)
        except ValueError as exc:
            raise LayoutError("Graphviz returned malformed JSON") from exc


def _dot_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _inches(px: float) -> str:
    return f"{max(0.0, px) / POINTS_PER_INCH:.4f}"


def is_ancestor(ancestor: str, node: str, parents: Dict[str, Optional[str]]) -> bool:
    current = parents.get(node)
    while current is not None:
        if current == ancestor:
            return True
        current = parents.get(current)
    return False


def route_edges(
    edges: List[GraphEdge],
    index: Dict[str, ContainmentNode],
    parents: Dict[str, Optional[str]],
    anchors: Dict[str, str],
    root_id: str,
) -> List[RoutedEdge]:
    """Substitute anchors for container endpoints and drop degenerate edges."""
    routed: List[RoutedEdge] = []
    for edge in edges:
        if edge.source not in index or edge.target not in index or root_id in (edge.source, edge.target):
            logger.debug("Dropping edge with unknown endpoint", extra={"edge_id": edge.id})
            continue
        tail = anchors.get(edge.source, edge.source)
        head = anchors.get(edge.target, edge.target)
        if tail == head:
            logger.debug("Dropping self edge", extra={"edge_id": edge.id})
            continue
        if is_ancestor(edge.source, edge.target, parents) or is_ancestor(edge.target, edge.source, parents):
            logger.debug("Dropping edge between a node and its ancestor", extra={"edge_id": edge.id})
            continue
        routed.append(RoutedEdge(edge=edge, tail=tail, head=head))
    return routed


def build_dot(
    root: ContainmentNode,
    anchors: Dict[str, str],
    routed: List[RoutedEdge],
    *,
    rankdir: str = "LR",
    node_gap: float = 60.0,
    rank_gap: float = 80.0,
) -> str:
    lines: List[str] = ["digraph G {"]
    lines.append(
        f'  graph [rankdir="{rankdir}", nodesep="{_inches(node_gap)}", '
        f'ranksep="{_inches(rank_gap)}", splines="polyline"];'
    )
    lines.append('  node [shape="box", fixedsize="true", label="", margin="0"];')

    def emit(node: ContainmentNode, depth: int) -> None:
        pad = "  " * depth
        if node.children:
            lines.append(f"{pad}subgraph {_dot_quote(CLUSTER_PREFIX + node.id)} {{")
            margin = 8.0
            if node.hints is not None:
                margin = max(
                    node.hints.padding_top,
                    node.hints.padding_left,
                    node.hints.padding_bottom,
                    node.hints.padding_right,
                )
            lines.append(f'{pad}  graph [label={_dot_quote(node.label or node.id)}, margin="{margin:g}"];')
            lines.append(
                f'{pad}  {_dot_quote(anchors[node.id])} [shape="point", width="0", height="0", style="invis"];'
            )
            for child in node.children:
                emit(child, depth + 1)
            lines.append(f"{pad}}}")
        else:
            lines.append(
                f'{pad}{_dot_quote(node.id)} [width="{_inches(node.width)}", height="{_inches(node.height)}"];'
            )

    for child in root.children:
        emit(child, 1)
    for item in routed:
        lines.append(f"  {_dot_quote(item.tail)} -> {_dot_quote(item.head)} [id={_dot_quote(item.edge.id)}];")
    lines.append("}")
    return "\n".join(lines)


def _floats(raw: str) -> List[float]:
    return [float(v) for v in raw.split(",")]


def _parse_path(pos: str, top: float) -> List[Point]:
    start: Optional[Point] = None
    end: Optional[Point] = None
    middle: List[Point] = []
    for token in pos.split(";")[0].split():
        if token.startswith("s,"):
            x, y = _floats(token[2:])
            start = Point(x, top - y)
        elif token.startswith("e,"):
            x, y = _floats(token[2:])
            end = Point(x, top - y)
        else:
            x, y = _floats(token)
            middle.append(Point(x, top - y))
    points = middle
    if start is not None:
        points = [start, *points]
    if end is not None:
        points = [*points, end]
    return points


def parse_graphviz_json(
    result: Dict[str, Any],
    routed: List[RoutedEdge],
) -> Tuple[Dict[str, CenterBox], Dict[str, List[Point]], Tuple[float, float]]:
    """Read node centers, edge paths and the drawing size from `dot -Tjson` output.

    Coordinates come back with the y axis flipped to point down.
    """
    try:
        llx, lly, urx, ury = _floats(result["bb"])
    except (KeyError, ValueError) as exc:
        raise LayoutError("Graphviz output has no bounding box") from exc

    centers: Dict[str, CenterBox] = {}
    for obj in result.get("objects") or []:
        name = obj.get("name", "")
        try:
            if name.startswith(CLUSTER_PREFIX) and "bb" in obj:
                x0, y0, x1, y1 = _floats(obj["bb"])
                centers[name[len(CLUSTER_PREFIX):]] = CenterBox(
                    cx=(x0 + x1) / 2.0,
                    cy=ury - (y0 + y1) / 2.0,
                    width=x1 - x0,
                    height=y1 - y0,
                )
            elif "pos" in obj:
                x, y = _floats(obj["pos"])
                centers[name] = CenterBox(
                    cx=x,
                    cy=ury - y,
                    width=float(obj.get("width", 0.0)) * POINTS_PER_INCH,
                    height=float(obj.get("height", 0.0)) * POINTS_PER_INCH,
                )
        except ValueError as exc:
            raise LayoutError(f"Graphviz output has malformed geometry for {name!r}") from exc

    paths: Dict[str, List[Point]] = {}
    for i, raw_edge in enumerate(result.get("edges") or []):
        edge_id = raw_edge.get("id")
        if edge_id is None and i < len(routed):
            edge_id = routed[i].edge.id
        pos = raw_edge.get("pos")
        if edge_id is None or not pos:
            continue
        try:
            paths[edge_id] = _parse_path(pos, ury)
        except ValueError as exc:
            raise LayoutError(f"Graphviz output has a malformed path for edge {edge_id!r}") from exc

    return centers, paths, (urx - llx, ury - lly)


def centers_to_relative(
    centers: Dict[str, CenterBox],
    parents: Dict[str, Optional[str]],
    root_id: str,
) -> Tuple[Dict[str, Point], Dict[str, Point]]:
    """Absolute centers -> (absolute top-left, parent-relative top-left)."""
    absolute = {nid: box.top_left for nid, box in centers.items()}
    relative: Dict[str, Point] = {}
    for nid, tl in absolute.items():
        parent = parents.get(nid)
        if parent is None or parent == root_id or parent not in absolute:
            relative[nid] = Point(tl.x, tl.y)
        else:
            origin = absolute[parent]
            relative[nid] = Point(tl.x - origin.x, tl.y - origin.y)
    return absolute, relative


def clip_path(points: List[Point], start_box: Optional[Rect], end_box: Optional[Rect]) -> List[Point]:
    """Pull the path ends back onto the start and end node borders."""
    clipped = list(points)
    if len(clipped) > 1 and start_box is not None:
        clipped[0] = clip_to_rect(clipped[1], clipped[0], start_box)
    if len(clipped) > 1 and end_box is not None:
        clipped[-1] = clip_to_rect(clipped[-2], clipped[-1], end_box)
    return clipped


class DotLayoutOracle(LayoutOracle):
    name = "dot"

    def __init__(
        self,
        runner: Optional[DotRunner] = None,
        *,
        rankdir: str = "LR",
        node_gap: float = 60.0,
        rank_gap: float = 80.0,
    ):
        self.runner = runner or GraphvizRunner()
        self.rankdir = rankdir
        self.node_gap = node_gap
        self.rank_gap = rank_gap

    def layout(self, diagram: Diagram) -> Diagram:
        positioned = diagram.copy()
        root = positioned.root
        index = index_nodes(root)
        parents = parent_map(root)
        anchors = {n.id: n.id + ANCHOR_SUFFIX for n in root.walk() if n is not root and n.children}
        routed = route_edges(positioned.edges, index, parents, anchors, root.id)

        dot_text = build_dot(
            root,
            anchors,
            routed,
            rankdir=self.rankdir,
            node_gap=self.node_gap,
            rank_gap=self.rank_gap,
        )
        try:
            result = self.runner(dot_text)
            centers, paths, (width, height) = parse_graphviz_json(result, routed)
        except LayoutError as exc:
            raise self.fail(exc.message, diagram) from exc

        missing = [nid for nid in index if nid != root.id and nid not in centers]
        if missing:
            raise self.fail(f"Graphviz result is missing nodes: {', '.join(sorted(missing))}", diagram)

        node_centers = {nid: centers[nid] for nid in index if nid != root.id}
        absolute, relative = centers_to_relative(node_centers, parents, root.id)
        for nid, box in node_centers.items():
            node = index[nid]
            node.x, node.y = relative[nid].x, relative[nid].y
            node.width, node.height = box.width, box.height
        root.x, root.y = 0.0, 0.0
        root.width, root.height = width, height

        def box_in(node_id: str, origin: Point) -> Optional[Rect]:
            if node_id not in absolute:
                return None
            tl = absolute[node_id]
            node = index[node_id]
            return Rect(tl.x - origin.x, tl.y - origin.y, node.width, node.height)

        kept: List[GraphEdge] = []
        for item in routed:
            edge = item.edge
            if edge.container is not None and edge.container not in absolute:
                edge.container = None
            origin = absolute[edge.container] if edge.container is not None else Point(0.0, 0.0)
            raw = paths.get(edge.id) or []
            if len(raw) < 2:
                edge.sections = []
            else:
                local = [Point(p.x - origin.x, p.y - origin.y) for p in raw]
                local = clip_path(local, box_in(edge.source, origin), box_in(edge.target, origin))
                edge.sections = [EdgeSection.from_points(local)]
            kept.append(edge)
        positioned.edges = kept
        return positioned
