"""Layout oracle adapters."""
from adac_diagram.layout.base import LayoutError, LayoutOracle
from adac_diagram.layout.dot import DotLayoutOracle, GraphvizRunner
from adac_diagram.layout.elk import ElkLayoutOracle, NodeElkRunner
from adac_diagram.layout.router import LayoutChoice, UnknownLayoutEngine, build_oracles, choose_layout

__all__ = [
    "LayoutError",
    "LayoutOracle",
    "DotLayoutOracle",
    "GraphvizRunner",
    "ElkLayoutOracle",
    "NodeElkRunner",
    "LayoutChoice",
    "UnknownLayoutEngine",
    "build_oracles",
    "choose_layout",
]
