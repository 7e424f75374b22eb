"""Hierarchy-native layout through ELK (`elkjs`, run under Node.js).

The containment tree is serialized to ELK's JSON graph format with every
edge placed in the `edges` list of its container. ELK sizes containers to
fit their children and reports positions relative to the parent node, so
reading the result back is a straight copy.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from typing import Any, Callable, Dict, List, Optional

from adac_diagram.graph.containment import (
    ContainmentNode,
    Diagram,
    EdgeSection,
    GraphEdge,
    LayoutHints,
    Point,
)
from adac_diagram.layout.base import LayoutError, LayoutOracle

logger = logging.getLogger(__name__)

ElkRunner = Callable[[Dict[str, Any]], Dict[str, Any]]

ROOT_LAYOUT_OPTIONS: Dict[str, str] = {
    "elk.algorithm": "layered",
    "elk.direction": "RIGHT",
    "elk.hierarchyHandling": "INCLUDE_CHILDREN",
    "elk.layered.spacing.nodeNodeBetweenLayers": "100",
    "elk.spacing.nodeNode": "80",
    "elk.layered.nodePlacement.strategy": "BRANDES_KOEPF",
}

# Reads an ELK graph on stdin and writes the laid-out graph on stdout.
_ELK_SCRIPT = """
const ELK = require(process.env.ADAC_ELK_MODULE || 'elkjs');
let raw = '';
process.stdin.setEncoding('utf8');
process.stdin.on('data', (chunk) => { raw += chunk; });
process.stdin.on('end', () => {
  new ELK().layout(JSON.parse(raw))
    .then((graph) => process.stdout.write(JSON.stringify(graph)))
    .catch((err) => {
      process.stderr.write(String((err && err.message) || err));
      process.exit(1);
    });
});
"""


class NodeElkRunner:
    """Runs `elkjs` in a Node.js subprocess, one process per layout."""

    def __init__(self, node_binary: str = "node", elk_module: str = "elkjs", timeout: float = 30.0):
        self.node_binary = node_binary
        self.elk_module = elk_module
        self.timeout = timeout

    def __call__(self, graph: Dict[str, Any]) -> Dict[str, Any]:
        node_path = shutil.which(self.node_binary)
        if not node_path:
            raise LayoutError(f"Node.js executable not found: {self.node_binary}")
        env = dict(os.environ)
        env["ADAC_ELK_MODULE"] = self.elk_module
        try:
            proc = subprocess.run(
                [node_path, "-e", _ELK_SCRIPT],
                input=json.dumps(graph),
                text=True,
                capture_output=True,
                check=False,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as exc:
            raise LayoutError(f"ELK layout timed out after {self.timeout:g}s") from exc
        except OSError as exc:
            raise LayoutError(f"failed to execute Node.js for ELK: {exc}") from exc
        if proc.returncode != 0:
            detail = (proc.stderr or "").strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise LayoutError(f"ELK layout failed: {detail or 'unknown error'}")
        try:
            return json.loads(proc.stdout)
        except ValueError as exc:
            raise LayoutError("ELK returned malformed JSON") from exc


def _padding_option(hints: LayoutHints) -> str:
    return (
        f"[top={hints.padding_top:g},left={hints.padding_left:g},"
        f"bottom={hints.padding_bottom:g},right={hints.padding_right:g}]"
    )


def _edge_json(edge: GraphEdge) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": edge.id, "sources": [edge.source], "targets": [edge.target]}
    if edge.label:
        data["labels"] = [{"text": edge.label}]
    return data


def to_elk_graph(diagram: Diagram, root_options: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Serialize *diagram* into an ELK JSON graph."""
    index = diagram.index()
    by_container: Dict[str, List[GraphEdge]] = {}
    for edge in diagram.edges:
        container = edge.container if edge.container in index else diagram.root.id
        by_container.setdefault(container, []).append(edge)

    def node_json(node: ContainmentNode) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": node.id,
            "width": node.width,
            "height": node.height,
            "labels": [{"text": node.label or node.id}],
        }
        if node.hints is not None:
            data["layoutOptions"] = {
                "elk.padding": _padding_option(node.hints),
                "elk.spacing.nodeNode": f"{node.hints.spacing:g}",
            }
        if node.children:
            data["children"] = [node_json(c) for c in node.children]
        if node.id in by_container:
            data["edges"] = [_edge_json(e) for e in by_container[node.id]]
        return data

    root = diagram.root
    graph: Dict[str, Any] = {
        "id": root.id,
        "layoutOptions": dict(root_options or ROOT_LAYOUT_OPTIONS),
        "children": [node_json(c) for c in root.children],
        "edges": [_edge_json(e) for e in by_container.get(root.id, [])],
    }
    return graph


def _point(raw: Dict[str, Any]) -> Point:
    return Point(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))


def _sections(raw_edge: Dict[str, Any]) -> List[EdgeSection]:
    sections = []
    for sec in raw_edge.get("sections") or []:
        sections.append(
            EdgeSection(
                start=_point(sec["startPoint"]),
                end=_point(sec["endPoint"]),
                bend_points=[_point(bp) for bp in sec.get("bendPoints") or []],
            )
        )
    return sections


class ElkLayoutOracle(LayoutOracle):
    name = "elk"

    def __init__(self, runner: Optional[ElkRunner] = None, root_options: Optional[Dict[str, str]] = None):
        self.runner = runner or NodeElkRunner()
        self.root_options = root_options

    def layout(self, diagram: Diagram) -> Diagram:
        graph = to_elk_graph(diagram, self.root_options)
        try:
            result = self.runner(graph)
        except LayoutError as exc:
            raise self.fail(exc.message, diagram) from exc
        positioned = diagram.copy()
        self._apply(positioned, result)
        return positioned

    def _apply(self, positioned: Diagram, result: Dict[str, Any]) -> None:
        index = positioned.index()
        root = positioned.root
        seen = set()
        raw_edges: Dict[str, tuple] = {}

        def visit(raw: Dict[str, Any]) -> None:
            node = index.get(raw.get("id"))
            if node is None:
                logger.debug("Ignoring unknown node in ELK result", extra={"node_id": raw.get("id")})
                return
            seen.add(node.id)
            if node is root:
                node.x, node.y = 0.0, 0.0
            else:
                node.x = float(raw.get("x", 0.0))
                node.y = float(raw.get("y", 0.0))
            node.width = float(raw.get("width", node.width))
            node.height = float(raw.get("height", node.height))
            for raw_edge in raw.get("edges") or []:
                raw_edges[raw_edge.get("id")] = (raw_edge, node.id)
            for child in raw.get("children") or []:
                visit(child)

        visit(result)
        missing = [nid for nid in index if nid not in seen]
        if missing:
            raise self.fail(f"ELK result is missing nodes: {', '.join(sorted(missing))}", positioned)

        for edge in positioned.edges:
            found = raw_edges.get(edge.id)
            if found is None:
                edge.sections = []
                continue
            raw_edge, holder = found
            container = raw_edge.get("container") or holder
            edge.container = None if container == root.id else container
            edge.sections = _sections(raw_edge)
