"""Hierarchy resolver: flat architecture description -> containment tree.

Placement runs as ordered passes over a `PlacementState`. Each pass sees
the results of the earlier ones, and nothing here raises on malformed
parent references: every component ends up somewhere, worst case in the
shared orphan bucket.

Pass order:
  1. leaf creation               7. attach to resolved parent
  2. logical group discovery     8. logical-group fallback
  3. explicit `runs` claims      9. boundaries / external actors to root
  4. availability zone inference 10. orphan bucket
  5. direct parent reference     11. implicit external endpoints
  6. self-parent guard           12. empty logical group pruning
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

import networkx as nx

from adac_diagram.graph.catalog import DEFAULT_CATALOG, KindCatalog
from adac_diagram.graph.containment import (
    ROOT_ID,
    ContainmentNode,
    Diagram,
    GraphEdge,
    LayoutHints,
    NodeKind,
    make_root,
)
from adac_diagram.graph.placement import Component, PlacementState
from adac_diagram.models.architecture import Application, Architecture, Service

logger = logging.getLogger(__name__)

Pass = Callable[[PlacementState, Architecture], PlacementState]

BUCKET_ID = "group-utility-shared"
GROUP_PREFIX = "group-"


def index_components(architecture: Architecture) -> Dict[str, Component]:
    """Declared components by id, applications first; the first declaration wins."""
    index: Dict[str, Component] = {}
    for comp in [*architecture.applications, *architecture.services()]:
        if comp.id in index:
            logger.warning("Duplicate component id ignored", extra={"component_id": comp.id})
            continue
        index[comp.id] = comp
    return index


def document_ids(architecture: Architecture) -> Set[str]:
    """Every id the document uses: declared components and connection endpoints."""
    ids = {comp.id for comp in [*architecture.applications, *architecture.services()]}
    for conn in architecture.connections:
        ids.update((conn.from_, conn.to))
    return ids


def root_id_for(architecture: Architecture) -> str:
    """Id for the synthetic root that no component or endpoint already uses."""
    taken = document_ids(architecture)
    root_id = ROOT_ID
    while root_id in taken:
        root_id = f"{root_id}-diagram"
    return root_id


def group_id_for(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{GROUP_PREFIX}{slug or 'unnamed'}"


def _group_name(comp: Component) -> Optional[str]:
    if comp.ai_tags and comp.ai_tags.group:
        return comp.ai_tags.group
    return None


def _container(
    node_id: str,
    kind: NodeKind,
    label: str,
    size: tuple,
    style: str,
    description: str,
    icon: Optional[str] = None,
) -> ContainmentNode:
    return ContainmentNode(
        id=node_id,
        kind=kind,
        label=label,
        width=size[0],
        height=size[1],
        icon=icon,
        style=style,
        description=description,
        hints=LayoutHints(),
    )


def _application_icon(app: Application, catalog: KindCatalog) -> Optional[str]:
    if app.ai_tags and app.ai_tags.icon:
        icon = catalog.icon(app.ai_tags.icon)
        if icon:
            return icon
    return (
        catalog.technology_icon(app.technology)
        or catalog.icon(app.type)
        or catalog.icon(catalog.application_fallback_icon)
    )


def _service_icon(service: Service, catalog: KindCatalog) -> Optional[str]:
    if service.ai_tags and service.ai_tags.icon:
        icon = catalog.icon(service.ai_tags.icon)
        if icon:
            return icon
    return catalog.icon(service.kind) or catalog.icon(catalog.service_fallback_icon)


def _application_node(app: Application, catalog: KindCatalog) -> ContainmentNode:
    width, height = catalog.size("leaf")
    return ContainmentNode(
        id=app.id,
        kind=NodeKind.LEAF,
        label=app.label,
        width=width,
        height=height,
        icon=_application_icon(app, catalog),
        style="app",
        description=app.type or None,
    )


def _service_node(service: Service, catalog: KindCatalog) -> ContainmentNode:
    kind = service.kind
    icon = _service_icon(service, catalog)
    description = service.description or kind
    if catalog.is_boundary(kind):
        return _container(service.id, NodeKind.BOUNDARY, service.label, catalog.size("boundary"), "aws-vpc", description, icon)
    if catalog.is_subnet(kind):
        style = "aws-subnet-public" if service.is_public else "aws-subnet-private"
        return _container(service.id, NodeKind.ZONE, service.label, catalog.size("subnet"), style, description, icon)
    if service.runs or catalog.is_compute(kind):
        return _container(service.id, NodeKind.COMPUTE, service.label, catalog.size("compute"), "aws-compute-cluster", description, icon)
    width, height = catalog.size("leaf")
    return ContainmentNode(
        id=service.id,
        kind=NodeKind.LEAF,
        label=service.label,
        width=width,
        height=height,
        icon=icon,
        style="service",
        description=description,
    )


# ─── Passes ───────────────────────────────────────────────────────────────────


def create_leaves(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 1: one node per declared application and service."""
    state.components = index_components(architecture)
    state.reserved = document_ids(architecture)
    for comp_id, comp in state.components.items():
        if isinstance(comp, Application):
            node = _application_node(comp, state.catalog)
        else:
            node = _service_node(comp, state.catalog)
        state.nodes[comp_id] = node
        state.component_ids.append(comp_id)
    return state


def discover_groups(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 2: one logical-group container per distinct `ai_tags.group`, unattached."""
    for comp in state.components.values():
        name = _group_name(comp)
        if name is None or name in state.groups:
            continue
        group_id = state.free_id(group_id_for(name), "-group")
        state.nodes[group_id] = _container(
            group_id,
            NodeKind.LOGICAL_GROUP,
            name,
            state.catalog.size("group"),
            "aws-compute-cluster",
            "Logical Group",
        )
        state.groups[name] = group_id
    return state


def claim_runs(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 3: services claim the components they run. Claims are final."""
    components = state.components
    for comp in components.values():
        if not isinstance(comp, Service) or not comp.runs:
            continue
        for claimed_id in comp.runs:
            if claimed_id not in components or state.is_placed(claimed_id):
                continue
            if state.would_cycle(claimed_id, comp.id):
                logger.debug("Skipping runs claim that would nest a node in itself", extra={"service": comp.id, "claimed": claimed_id})
                continue
            state.attach(claimed_id, comp.id)
    return state


def infer_zones(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 4: `availability_zone` + `vpc` imply a zone container under the vpc.

    The zone is named `<vpc>-<az>` unless the document already uses that id.
    """
    zone_for: Dict[Tuple[str, str], str] = {}
    for comp in state.components.values():
        if not isinstance(comp, Service):
            continue
        az, vpc = comp.availability_zone, comp.vpc
        if az is None or vpc is None:
            continue
        zone_id = zone_for.get((vpc, az))
        if zone_id is None:
            zone_id = state.free_id(f"{vpc}-{az}", "-zone")
            zone_for[(vpc, az)] = zone_id
            state.nodes[zone_id] = _container(
                zone_id,
                NodeKind.ZONE,
                f"AZ: {az}",
                state.catalog.size("zone"),
                "aws-az",
                "Availability Zone",
            )
            state.zones[zone_id] = vpc
        if not state.is_placed(comp.id):
            state.candidate_parent[comp.id] = zone_id
    return state


def resolve_direct_parents(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 5: a single subnet, else the inferred zone, else the vpc.

    A list of several candidate subnets is never resolved to one of them.
    """
    for comp in state.components.values():
        if not isinstance(comp, Service) or state.is_placed(comp.id):
            continue
        subnets = comp.candidate_subnets
        if len(subnets) == 1:
            state.candidate_parent[comp.id] = subnets[0]
            continue
        if len(subnets) > 1:
            logger.debug("Ambiguous subnet list left unresolved", extra={"service": comp.id, "subnets": subnets})
        if comp.id in state.candidate_parent:
            continue
        if comp.vpc is not None:
            state.candidate_parent[comp.id] = comp.vpc
    return state


def guard_self_parents(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 6: drop parent assignments that point a node at itself."""
    for node_id, parent_id in list(state.candidate_parent.items()):
        if node_id == parent_id:
            logger.debug("Discarding self parent", extra={"node_id": node_id})
            del state.candidate_parent[node_id]
    return state


def attach_to_parents(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 7: attach nodes whose resolved parent exists, then non-empty zones."""
    for node_id in state.unplaced():
        parent_id = state.candidate_parent.get(node_id)
        if parent_id is None or (parent_id not in state.components and parent_id not in state.zones):
            continue
        if state.would_cycle(node_id, parent_id):
            logger.debug("Skipping parent that would close a cycle", extra={"node_id": node_id, "parent": parent_id})
            continue
        state.attach(node_id, parent_id)

    for zone_id, vpc_id in list(state.zones.items()):
        if not state.nodes[zone_id].children:
            del state.nodes[zone_id]
            del state.zones[zone_id]
            continue
        if vpc_id in state.components and not state.would_cycle(zone_id, vpc_id):
            state.attach(zone_id, vpc_id)
    return state


def place_in_groups(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 8: unplaced components with a group annotation join their logical group."""
    components = state.components
    for node_id in state.unplaced():
        name = _group_name(components[node_id])
        if name is not None and name in state.groups:
            state.attach(node_id, state.groups[name])
    return state


def promote_top_level(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 9: network boundaries and external actors go straight to the root."""
    components = state.components
    for node_id in state.unplaced():
        kind = components[node_id].kind
        if state.catalog.is_boundary(kind) or state.catalog.is_external(kind):
            state.promote(node_id)
    return state


def _ensure_bucket(state: PlacementState) -> str:
    if state.bucket_id is None:
        bucket_id = state.free_id(BUCKET_ID, "-bucket")
        state.nodes[bucket_id] = _container(
            bucket_id,
            NodeKind.ORPHAN_BUCKET,
            "Shared Infrastructure",
            state.catalog.size("group"),
            "aws-compute-cluster",
            "Shared Services",
        )
        state.promote(bucket_id)
        state.bucket_id = bucket_id
    return state.bucket_id


def place_orphans(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 10: everything still unplaced goes into the shared bucket."""
    leftovers = state.unplaced() + [z for z in state.zones if not state.is_placed(z)]
    for node_id in leftovers:
        bucket_id = _ensure_bucket(state)
        state.attach(node_id, bucket_id)
    if leftovers:
        logger.debug("Placed orphans in shared bucket", extra={"orphans": leftovers})
    return state


def add_external_endpoints(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 11: undeclared connection endpoints become external actors on the root.

    Endpoint ids are reserved in pass 1, so an endpoint already in the node
    map is a declared component or an actor created by an earlier connection.
    """
    seen_ids: Dict[str, int] = {}
    for conn in architecture.connections:
        for endpoint in (conn.from_, conn.to):
            if endpoint in state.nodes:
                continue
            width, height = state.catalog.size("external")
            state.nodes[endpoint] = ContainmentNode(
                id=endpoint,
                kind=NodeKind.EXTERNAL,
                label=endpoint,
                width=width,
                height=height,
                icon=state.catalog.endpoint_icon(endpoint),
                style="external",
                description="External System",
            )
            state.promote(endpoint)

        edge_id = conn.edge_id
        count = seen_ids.get(edge_id, 0)
        seen_ids[edge_id] = count + 1
        if count:
            edge_id = f"{edge_id}#{count + 1}"
        state.edges.append(GraphEdge(id=edge_id, source=conn.from_, target=conn.to, label=conn.text))
    return state


def prune_groups(state: PlacementState, architecture: Architecture) -> PlacementState:
    """Pass 12: non-empty logical groups join the root, empty ones are dropped."""
    for name, group_id in list(state.groups.items()):
        if state.nodes[group_id].children:
            state.promote(group_id)
        else:
            del state.nodes[group_id]
            del state.groups[name]
    return state


PASSES: Sequence[Pass] = (
    create_leaves,
    discover_groups,
    claim_runs,
    infer_zones,
    resolve_direct_parents,
    guard_self_parents,
    attach_to_parents,
    place_in_groups,
    promote_top_level,
    place_orphans,
    add_external_endpoints,
    prune_groups,
)


def containment_graph(root: ContainmentNode) -> nx.DiGraph:
    g = nx.DiGraph()
    for node in root.walk():
        g.add_node(node.id)
        for child in node.children:
            g.add_edge(node.id, child.id)
    return g


def assign_edge_levels(state: PlacementState) -> List[GraphEdge]:
    """Tag each edge with the lowest container strictly above both endpoints."""
    g = containment_graph(state.root)
    for edge in state.edges:
        if edge.source not in g or edge.target not in g:
            edge.container = None
            continue
        lca = nx.lowest_common_ancestor(g, edge.source, edge.target)
        if lca in (edge.source, edge.target):
            preds = list(g.predecessors(lca))
            lca = preds[0] if preds else state.root.id
        edge.container = None if lca in (None, state.root.id) else lca
    return state.edges


def run_passes(
    architecture: Architecture,
    catalog: Optional[KindCatalog] = None,
    passes: Sequence[Pass] = PASSES,
) -> PlacementState:
    state = PlacementState(catalog=catalog or DEFAULT_CATALOG, root=make_root(root_id_for(architecture)))
    for step in passes:
        state = step(state, architecture)
    return state


def resolve_hierarchy(architecture: Architecture, catalog: Optional[KindCatalog] = None) -> Diagram:
    """Build the containment tree and edge list for *architecture*."""
    state = run_passes(architecture, catalog)
    edges = assign_edge_levels(state)
    diagram = Diagram(root=state.root, edges=edges)
    logger.info(
        "Resolved containment tree",
        extra={"nodes": diagram.node_count(), "edges": len(edges), "root_children": len(state.root.children)},
    )
    return diagram
