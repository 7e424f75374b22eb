"""Containment tree and edge records handed to the layout oracles.

Nodes form a tree owned by a synthetic root. Edges are kept apart from the
tree and tagged with the container they belong to (`None` means the root).
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

ROOT_ID = "root"


class NodeKind(str, Enum):
    LEAF = "leaf"
    BOUNDARY = "boundary-container"
    ZONE = "zone-container"
    COMPUTE = "compute-container"
    LOGICAL_GROUP = "logical-group"
    ORPHAN_BUCKET = "orphan-bucket"
    EXTERNAL = "external"
    ROOT = "root"

    @property
    def is_container(self) -> bool:
        return self not in (NodeKind.LEAF, NodeKind.EXTERNAL)


@dataclass(frozen=True)
class LayoutHints:
    padding_top: float = 40.0
    padding_left: float = 20.0
    padding_bottom: float = 20.0
    padding_right: float = 20.0
    spacing: float = 30.0

    def to_dict(self) -> dict:
        return {
            "padding": {
                "top": self.padding_top,
                "left": self.padding_left,
                "bottom": self.padding_bottom,
                "right": self.padding_right,
            },
            "spacing": self.spacing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutHints":
        padding = data.get("padding") or {}
        return cls(
            padding_top=padding.get("top", 40.0),
            padding_left=padding.get("left", 20.0),
            padding_bottom=padding.get("bottom", 20.0),
            padding_right=padding.get("right", 20.0),
            spacing=data.get("spacing", 30.0),
        )


@dataclass
class Point:
    x: float
    y: float

    def shifted(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class EdgeSection:
    start: Point
    end: Point
    bend_points: List[Point] = field(default_factory=list)

    def points(self) -> List[Point]:
        return [self.start, *self.bend_points, self.end]

    @classmethod
    def from_points(cls, points: List[Point]) -> "EdgeSection":
        return cls(start=points[0], end=points[-1], bend_points=list(points[1:-1]))

    def shifted(self, dx: float, dy: float) -> "EdgeSection":
        return EdgeSection.from_points([p.shifted(dx, dy) for p in self.points()])

    def to_dict(self) -> dict:
        return {
            "startPoint": self.start.to_dict(),
            "endPoint": self.end.to_dict(),
            "bendPoints": [p.to_dict() for p in self.bend_points],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EdgeSection":
        return cls(
            start=Point(**data["startPoint"]),
            end=Point(**data["endPoint"]),
            bend_points=[Point(**p) for p in data.get("bendPoints") or []],
        )


@dataclass
class GraphEdge:
    id: str
    source: str
    target: str
    label: str = ""
    container: Optional[str] = None
    sections: List[EdgeSection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "container": self.container,
            "sections": [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdge":
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            label=data.get("label", ""),
            container=data.get("container"),
            sections=[EdgeSection.from_dict(s) for s in data.get("sections") or []],
        )


@dataclass
class ContainmentNode:
    id: str
    kind: NodeKind = NodeKind.LEAF
    label: str = ""
    width: float = 80.0
    height: float = 80.0
    icon: Optional[str] = None
    style: Optional[str] = None
    description: Optional[str] = None
    hints: Optional[LayoutHints] = None
    children: List["ContainmentNode"] = field(default_factory=list)
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def is_container(self) -> bool:
        return self.kind.is_container

    def walk(self) -> Iterator["ContainmentNode"]:
        """Pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.walk()

    def shallow(self) -> "ContainmentNode":
        """Copy of this node without its children."""
        clone = copy.copy(self)
        clone.children = []
        return clone

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "width": self.width,
            "height": self.height,
        }
        for key in ("icon", "style", "description", "x", "y"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.hints is not None:
            data["hints"] = self.hints.to_dict()
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContainmentNode":
        hints = data.get("hints")
        return cls(
            id=data["id"],
            kind=NodeKind(data.get("kind", NodeKind.LEAF.value)),
            label=data.get("label", ""),
            width=data.get("width", 80.0),
            height=data.get("height", 80.0),
            icon=data.get("icon"),
            style=data.get("style"),
            description=data.get("description"),
            hints=LayoutHints.from_dict(hints) if hints else None,
            children=[cls.from_dict(c) for c in data.get("children") or []],
            x=data.get("x"),
            y=data.get("y"),
        )


@dataclass
class Diagram:
    """A containment tree plus the edges declared over it."""

    root: ContainmentNode
    edges: List[GraphEdge] = field(default_factory=list)

    def copy(self) -> "Diagram":
        return copy.deepcopy(self)

    def node_count(self) -> int:
        return sum(1 for _ in self.root.walk()) - 1

    def index(self) -> Dict[str, ContainmentNode]:
        return index_nodes(self.root)

    def to_dict(self) -> dict:
        return {
            "root": self.root.to_dict(),
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diagram":
        return cls(
            root=ContainmentNode.from_dict(data["root"]),
            edges=[GraphEdge.from_dict(e) for e in data.get("edges") or []],
        )


def make_root(node_id: str = ROOT_ID) -> ContainmentNode:
    return ContainmentNode(id=node_id, kind=NodeKind.ROOT, label="", width=0.0, height=0.0, style="aws-root")


def index_nodes(root: ContainmentNode) -> Dict[str, ContainmentNode]:
    """Map id -> node for every node in the tree, root included."""
    return {node.id: node for node in root.walk()}


def parent_map(root: ContainmentNode) -> Dict[str, Optional[str]]:
    parents: Dict[str, Optional[str]] = {root.id: None}
    for node in root.walk():
        for child in node.children:
            parents[child.id] = node.id
    return parents


@dataclass
class FlatTree:
    """Flat id -> node view of a containment tree.

    Nodes are stored without children, in pre-order, next to their parent
    id, so the nested tree can be rebuilt with the original child order.
    """

    root_id: str
    nodes: Dict[str, ContainmentNode]
    parents: Dict[str, Optional[str]]

    def children_of(self, node_id: str) -> List[str]:
        return [nid for nid, parent in self.parents.items() if parent == node_id]

    def to_tree(self) -> ContainmentNode:
        rebuilt = {nid: node.shallow() for nid, node in self.nodes.items()}
        for nid, parent in self.parents.items():
            if parent is not None:
                rebuilt[parent].children.append(rebuilt[nid])
        return rebuilt[self.root_id]


def flatten(root: ContainmentNode) -> FlatTree:
    nodes: Dict[str, ContainmentNode] = {}
    parents: Dict[str, Optional[str]] = {}

    def visit(node: ContainmentNode, parent: Optional[str]) -> None:
        nodes[node.id] = node.shallow()
        parents[node.id] = parent
        for child in node.children:
            visit(child, node.id)

    visit(root, None)
    return FlatTree(root_id=root.id, nodes=nodes, parents=parents)


def bounds(node: ContainmentNode) -> Tuple[float, float, float, float]:
    """(x, y, width, height) with missing coordinates treated as 0."""
    return (node.x or 0.0, node.y or 0.0, node.width or 0.0, node.height or 0.0)
