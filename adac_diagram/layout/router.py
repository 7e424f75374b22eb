"""Layout router: choose one of the two layout engines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from adac_diagram.layout.base import LayoutOracle
from adac_diagram.layout.dot import DotLayoutOracle, GraphvizRunner
from adac_diagram.layout.elk import ElkLayoutOracle, NodeElkRunner
from adac_diagram.models.architecture import Architecture
from adac_diagram.utils.config import Settings, settings as default_settings

ENGINES = ("elk", "dot")

_ALIASES = {
    "elk": "elk",
    "layered": "elk",
    "dot": "dot",
    "graphviz": "dot",
    "dagre": "dot",
}


class UnknownLayoutEngine(ValueError):
    """Raised when a layout engine name matches neither engine."""


@dataclass(frozen=True)
class LayoutChoice:
    engine: str
    reason: str


def canonical_engine(name: str) -> str:
    token = (name or "").strip().lower()
    if token not in _ALIASES:
        raise UnknownLayoutEngine(f"Unknown layout engine: {name!r} (expected one of {', '.join(ENGINES)})")
    return _ALIASES[token]


def choose_layout(
    architecture: Optional[Architecture] = None,
    override: Optional[str] = None,
    default: Optional[str] = None,
) -> LayoutChoice:
    """Explicit override, then the document's `layout`, then the configured default."""
    if override:
        return LayoutChoice(engine=canonical_engine(override), reason="override")
    if architecture is not None and architecture.layout:
        return LayoutChoice(engine=canonical_engine(architecture.layout), reason="document")
    return LayoutChoice(engine=canonical_engine(default or default_settings.default_layout_engine), reason="default")


def build_oracles(config: Optional[Settings] = None) -> Dict[str, LayoutOracle]:
    """Subprocess-backed oracles for both engines, configured from settings."""
    cfg = config or default_settings
    return {
        "elk": ElkLayoutOracle(
            NodeElkRunner(cfg.node_binary, cfg.elk_module, cfg.layout_timeout_seconds),
        ),
        "dot": DotLayoutOracle(
            GraphvizRunner(cfg.dot_binary, cfg.layout_timeout_seconds),
        ),
    }
