"""Containment graph construction."""
from adac_diagram.graph.catalog import DEFAULT_CATALOG, KindCatalog, load_catalog
from adac_diagram.graph.containment import (
    ROOT_ID,
    ContainmentNode,
    Diagram,
    EdgeSection,
    GraphEdge,
    NodeKind,
    Point,
)
from adac_diagram.graph.placement import PlacementState
from adac_diagram.graph.resolver import resolve_hierarchy

__all__ = [
    "DEFAULT_CATALOG",
    "KindCatalog",
    "load_catalog",
    "ROOT_ID",
    "ContainmentNode",
    "Diagram",
    "EdgeSection",
    "GraphEdge",
    "NodeKind",
    "Point",
    "PlacementState",
    "resolve_hierarchy",
]
