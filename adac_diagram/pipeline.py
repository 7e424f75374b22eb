"""Resolve -> Layout -> Normalize.

The pipeline is strictly linear. Placement problems never surface here
(the resolver absorbs them); a layout failure aborts the whole request
with a `LayoutError` naming the engine and the graph size.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from adac_diagram.graph.catalog import KindCatalog
from adac_diagram.graph.resolver import resolve_hierarchy
from adac_diagram.layout.base import LayoutError, LayoutOracle
from adac_diagram.layout.router import LayoutChoice, build_oracles, choose_layout
from adac_diagram.models.architecture import Architecture
from adac_diagram.normalize import NormalizedDiagram, normalize
from adac_diagram.utils.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class DiagramResult:
    choice: LayoutChoice
    diagram: NormalizedDiagram

    def to_dict(self) -> dict:
        data = self.diagram.to_dict()
        data["layout"] = {"engine": self.choice.engine, "reason": self.choice.reason}
        return data


def generate_diagram(
    architecture: Architecture,
    *,
    layout_override: Optional[str] = None,
    catalog: Optional[KindCatalog] = None,
    oracles: Optional[Dict[str, LayoutOracle]] = None,
    config: Optional[Settings] = None,
) -> DiagramResult:
    cfg = config or default_settings
    choice = choose_layout(architecture, layout_override, cfg.default_layout_engine)
    diagram = resolve_hierarchy(architecture, catalog)

    available = oracles if oracles is not None else build_oracles(cfg)
    oracle = available.get(choice.engine)
    if oracle is None:
        raise LayoutError(
            "No layout oracle configured",
            engine=choice.engine,
            node_count=diagram.node_count(),
            edge_count=len(diagram.edges),
        )

    context = {"engine": choice.engine, "reason": choice.reason, "nodes": diagram.node_count(), "edges": len(diagram.edges)}
    try:
        positioned = oracle.layout(diagram)
    except LayoutError as exc:
        if exc.engine is None:
            exc.engine = choice.engine
            exc.node_count = diagram.node_count()
            exc.edge_count = len(diagram.edges)
        logger.error("Layout failed: %s", exc, extra=context)
        raise
    except Exception as exc:
        logger.exception("Layout oracle raised unexpectedly", extra=context)
        raise LayoutError(
            f"Layout failed: {exc}",
            engine=choice.engine,
            node_count=diagram.node_count(),
            edge_count=len(diagram.edges),
        ) from exc

    normalized = normalize(positioned, padding=cfg.diagram_padding)
    logger.info("Diagram generated", extra={**context, "width": normalized.width, "height": normalized.height})
    return DiagramResult(choice=choice, diagram=normalized)
