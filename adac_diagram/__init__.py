"""Cloud architecture description -> positioned containment diagram."""
from adac_diagram.graph.resolver import resolve_hierarchy
from adac_diagram.loader import ArchitectureLoadError, load_architecture, parse_architecture
from adac_diagram.normalize import NormalizedDiagram, normalize
from adac_diagram.pipeline import DiagramResult, generate_diagram

__all__ = [
    "resolve_hierarchy",
    "ArchitectureLoadError",
    "load_architecture",
    "parse_architecture",
    "NormalizedDiagram",
    "normalize",
    "DiagramResult",
    "generate_diagram",
]
