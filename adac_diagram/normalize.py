"""Coordinate normalization of a laid-out diagram.

Both layout engines hand back node positions relative to the parent and
edge paths relative to the edge's container. This module crops the
drawing to its content, adds a uniform padding, and moves every edge into
one global frame so a renderer never has to know where an edge was
declared.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from adac_diagram.graph.containment import (
    ContainmentNode,
    Diagram,
    GraphEdge,
    Point,
    bounds,
    index_nodes,
)

DEFAULT_PADDING = 20.0


@dataclass
class NormalizedDiagram:
    root: ContainmentNode
    edges: List[GraphEdge]
    absolute: Dict[str, Point] = field(default_factory=dict)

    @property
    def width(self) -> float:
        return self.root.width

    @property
    def height(self) -> float:
        return self.root.height

    def as_diagram(self) -> Diagram:
        return Diagram(root=self.root, edges=self.edges)

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "root": self.root.to_dict(),
            "edges": [e.to_dict() for e in self.edges],
            "absolute": {nid: p.to_dict() for nid, p in self.absolute.items()},
        }


def absolute_positions(root: ContainmentNode) -> Dict[str, Point]:
    """Sum parent-relative offsets from the root down."""
    positions: Dict[str, Point] = {}

    def visit(node: ContainmentNode, ox: float, oy: float) -> None:
        x = ox + (node.x or 0.0)
        y = oy + (node.y or 0.0)
        positions[node.id] = Point(x, y)
        for child in node.children:
            visit(child, x, y)

    visit(root, 0.0, 0.0)
    return positions


def content_bounds(root: ContainmentNode) -> Optional[Tuple[float, float, float, float]]:
    """(min_x, min_y, max_x, max_y) over the direct children of the root."""
    if not root.children:
        return None
    min_x = min_y = float("inf")
    max_x = max_y = float("-inf")
    for child in root.children:
        x, y, w, h = bounds(child)
        min_x = min(min_x, x)
        min_y = min(min_y, y)
        max_x = max(max_x, x + w)
        max_y = max(max_y, y + h)
    return min_x, min_y, max_x, max_y


def normalize(diagram: Diagram, padding: float = DEFAULT_PADDING) -> NormalizedDiagram:
    """Crop, pad and flatten a laid-out diagram into one coordinate frame.

    The input is not modified. Output edges are tagged with the root
    container, so normalizing the output again changes nothing.
    """
    result = diagram.copy()
    root = result.root
    shift_x = shift_y = 0.0

    box = content_bounds(root)
    if box is not None:
        min_x, min_y, max_x, max_y = box
        shift_x = -min_x + padding
        shift_y = -min_y + padding
        for child in root.children:
            child.x = (child.x or 0.0) + shift_x
            child.y = (child.y or 0.0) + shift_y
        root.width = (max_x - min_x) + 2 * padding
        root.height = (max_y - min_y) + 2 * padding

    absolute = absolute_positions(root)
    index = index_nodes(root)
    root_origin = absolute[root.id]

    for edge in result.edges:
        origin = _edge_origin(edge, root.id, index, absolute, Point(root_origin.x + shift_x, root_origin.y + shift_y))
        edge.sections = [s.shifted(origin.x, origin.y) for s in edge.sections]
        edge.container = root.id

    return NormalizedDiagram(root=root, edges=result.edges, absolute=absolute)


def _edge_origin(
    edge: GraphEdge,
    root_id: str,
    index: Dict[str, ContainmentNode],
    absolute: Dict[str, Point],
    root_origin: Point,
) -> Point:
    """Absolute origin of the frame *edge* was laid out in.

    A known container gives its own position. A container id that is no
    longer in the tree falls back to the source endpoint. Root-level edges
    (and everything else) use the root origin, which moves with the root's
    content.
    """
    container = edge.container
    if container is None or container == root_id:
        return root_origin
    if container in index:
        return absolute[container]
    if edge.source in absolute and edge.source != root_id:
        return absolute[edge.source]
    return root_origin
