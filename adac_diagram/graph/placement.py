"""Bookkeeping threaded through the hierarchy resolver passes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from adac_diagram.graph.catalog import KindCatalog
from adac_diagram.graph.containment import ContainmentNode, GraphEdge, make_root
from adac_diagram.models.architecture import Application, Service

Component = Union[Application, Service]


@dataclass
class PlacementState:
    """Partially built containment tree plus the set of placed ids.

    `parent_of` mirrors the tree built so far. `candidate_parent` holds the
    parent chosen by the inference passes before it is attached.
    `reserved` holds every id the document itself uses (components and
    connection endpoints); synthesized containers never take one of them.
    """

    catalog: KindCatalog
    root: ContainmentNode = field(default_factory=make_root)
    nodes: Dict[str, ContainmentNode] = field(default_factory=dict)
    placed: Set[str] = field(default_factory=set)
    parent_of: Dict[str, str] = field(default_factory=dict)
    candidate_parent: Dict[str, str] = field(default_factory=dict)
    groups: Dict[str, str] = field(default_factory=dict)
    zones: Dict[str, str] = field(default_factory=dict)
    components: Dict[str, Component] = field(default_factory=dict)
    component_ids: List[str] = field(default_factory=list)
    reserved: Set[str] = field(default_factory=set)
    edges: List[GraphEdge] = field(default_factory=list)
    bucket_id: Optional[str] = None

    def is_placed(self, node_id: str) -> bool:
        return node_id in self.placed

    def unplaced(self) -> List[str]:
        """Component ids not yet placed, in declaration order."""
        return [cid for cid in self.component_ids if cid not in self.placed]

    def free_id(self, base: str, suffix: str) -> str:
        """*base*, extended with *suffix* until no node or document id uses it."""
        candidate = base
        while candidate in self.nodes or candidate in self.reserved or candidate == self.root.id:
            candidate = f"{candidate}{suffix}"
        return candidate

    def ancestors(self, node_id: str) -> List[str]:
        chain: List[str] = []
        current = self.parent_of.get(node_id)
        while current is not None and current not in chain:
            chain.append(current)
            current = self.parent_of.get(current)
        return chain

    def would_cycle(self, child_id: str, parent_id: str) -> bool:
        """True if hanging *child_id* under *parent_id* closes a containment loop."""
        return child_id == parent_id or child_id in self.ancestors(parent_id)

    def attach(self, child_id: str, parent_id: str) -> None:
        parent = self.nodes[parent_id]
        parent.children.append(self.nodes[child_id])
        self.parent_of[child_id] = parent_id
        self.placed.add(child_id)

    def promote(self, child_id: str) -> None:
        """Place *child_id* directly under the synthetic root."""
        self.root.children.append(self.nodes[child_id])
        self.parent_of[child_id] = self.root.id
        self.placed.add(child_id)
