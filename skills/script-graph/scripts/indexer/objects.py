"""Graphs over caller-supplied domain objects.

The caller describes owners (scene objects) and the components attached to
them. Each component carries an explicit list of (label, value) properties
and the ids of the components its fields point at; no introspection happens
here.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from graph_model import GraphNode, ReferenceGraph

NODES_ARE_COMPONENTS = "components"
NODES_ARE_OWNERS = "owners"
OBJECT_GRAPH_MODES = (NODES_ARE_COMPONENTS, NODES_ARE_OWNERS)

MAX_PROPERTIES = 5


def to_object_graph_mode(value: str) -> str:
    normalized = value.strip().lower()
    aliases = {
        "nodes are components": NODES_ARE_COMPONENTS,
        "nodes are game objects": NODES_ARE_OWNERS,
        "gameobjects": NODES_ARE_OWNERS,
    }
    normalized = aliases.get(normalized, normalized)
    if normalized not in OBJECT_GRAPH_MODES:
        raise ValueError(f"Unknown object graph mode: {value}")
    return normalized


def normalize_properties(value: Any, limit: int) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    if isinstance(value, Mapping):
        items = list(value.items())
    elif isinstance(value, list):
        items = [tuple(item) for item in value if isinstance(item, (list, tuple)) and len(item) == 2]
    else:
        items = []
    for label, prop in items:
        if prop is None:
            continue
        pairs.append((str(label), str(prop)))
        if len(pairs) >= limit:
            break
    return pairs


def _components(owner: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    components = owner.get("components")
    if not isinstance(components, list):
        return []
    return [item for item in components if isinstance(item, Mapping)]


def build_object_graph(
    owners: Sequence[Mapping[str, Any]],
    *,
    mode: str = NODES_ARE_COMPONENTS,
    max_properties: int = MAX_PROPERTIES,
    warnings: Optional[List[str]] = None,
) -> ReferenceGraph:
    """Build a graph from owner/component descriptions.

    In `components` mode every component becomes a node grouped under its
    owner and component references become edges. In `owners` mode every
    owner becomes one node listing its component types, and edges connect
    owners whose components reference each other.
    """
    if warnings is None:
        warnings = []
    mode = to_object_graph_mode(mode)
    graph = ReferenceGraph()
    owner_of: Dict[str, str] = {}
    pending: List[Tuple[str, str]] = []

    for owner in owners:
        owner_name = str(owner.get("name") or "").strip()
        if not owner_name:
            warnings.append("Skipping owner without a name")
            continue
        if mode == NODES_ARE_OWNERS:
            rows = [
                (str(comp.get("type") or comp.get("id") or "?"), str(comp.get("id") or ""))
                for comp in _components(owner)
            ]
            graph.add_node(GraphNode(id=owner_name, properties=rows))
        for comp in _components(owner):
            comp_id = str(comp.get("id") or "").strip()
            if not comp_id:
                warnings.append(f"Skipping component without an id on {owner_name}")
                continue
            owner_of[comp_id] = owner_name
            if mode == NODES_ARE_COMPONENTS:
                graph.add_node(
                    GraphNode(
                        id=comp_id,
                        label=str(comp.get("type") or comp_id),
                        group=owner_name,
                        properties=normalize_properties(comp.get("properties"), max_properties),
                    )
                )
            for ref in comp.get("references") or []:
                pending.append((comp_id, str(ref)))
        if mode == NODES_ARE_COMPONENTS:
            graph.group(owner_name)

    for source, target in pending:
        if target not in owner_of:
            warnings.append(f"Could not find referenced component: {target}")
            continue
        if mode == NODES_ARE_OWNERS:
            source, target = owner_of[source], owner_of[target]
        graph.add_edge(source, target)
    return graph
