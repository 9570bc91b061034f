from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from geometry import Rect, Size


@dataclass
class GraphNode:
    id: str
    label: str = ""
    group: Optional[str] = None
    properties: List[Tuple[str, str]] = field(default_factory=list)
    size: Optional[Size] = None
    rect: Optional[Rect] = None
    visible: bool = True

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, GraphNode) and other.id == self.id

    def get_size(self) -> Optional[Size]:
        return self.size

    def set_size(self, size: Size) -> None:
        self.size = size

    def set_position(self, rect: Rect) -> None:
        self.rect = rect

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"id": self.id, "label": self.label}
        if self.group is not None:
            data["group"] = self.group
        if self.properties:
            data["properties"] = [[label, value] for label, value in self.properties]
        if self.rect is not None:
            data["rect"] = self.rect.to_dict()
        if not self.visible:
            data["visible"] = False
        return data


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "target": self.target}


@dataclass
class Group:
    name: str
    nodes: List[GraphNode] = field(default_factory=list)
    rect: Optional[Rect] = None

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Group) and other.name == self.name

    def add_node(self, node: GraphNode) -> None:
        if node not in self.nodes:
            self.nodes.append(node)
        node.group = self.name

    def get_contained_nodes(self) -> List[GraphNode]:
        return list(self.nodes)

    def set_position(self, rect: Rect) -> None:
        self.rect = rect


class ReferenceGraph:
    """Nodes keyed by id plus directed, deduplicated edges between them.

    Mutation is allowed until `freeze()`; layout freezes the graph it runs on.
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: List[GraphEdge] = []
        self.groups: Dict[str, Group] = {}
        self._edge_keys: Set[Tuple[str, str]] = set()
        self._frozen = False

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Graph is frozen; start a new session to change it")

    def add_node(self, node: GraphNode) -> GraphNode:
        self._check_mutable()
        existing = self.nodes.get(node.id)
        if existing is not None:
            return existing
        self.nodes[node.id] = node
        if node.group is not None:
            self.group(node.group).add_node(node)
        return node

    def group(self, name: str) -> Group:
        existing = self.groups.get(name)
        if existing is None:
            self._check_mutable()
            existing = Group(name=name)
            self.groups[name] = existing
        return existing

    def add_edge(self, source: str, target: str) -> bool:
        """Add `source -> target`; returns False for self-edges and duplicates."""
        self._check_mutable()
        if source not in self.nodes or target not in self.nodes:
            missing = source if source not in self.nodes else target
            raise ValueError(f"Edge endpoint {missing} is not a node")
        if source == target:
            return False
        key = (source, target)
        if key in self._edge_keys:
            return False
        self._edge_keys.add(key)
        self.edges.append(GraphEdge(source, target))
        return True

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self._edge_keys

    def edge_pairs(self) -> Set[Tuple[str, str]]:
        return set(self._edge_keys)

    def adjacency(self) -> Dict[str, List[str]]:
        adj: Dict[str, List[str]] = {node_id: [] for node_id in self.nodes}
        for edge in self.edges:
            adj[edge.source].append(edge.target)
        return adj

    def connected_node_ids(self) -> Set[str]:
        ids: Set[str] = set()
        for edge in self.edges:
            ids.add(edge.source)
            ids.add(edge.target)
        return ids

    def node_list(self, ids: Optional[Iterable[str]] = None) -> List[GraphNode]:
        if ids is None:
            return list(self.nodes.values())
        wanted = set(ids)
        return [node for node_id, node in self.nodes.items() if node_id in wanted]

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "directed": True,
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
        }
        if self.groups:
            data["groups"] = [
                {"name": group.name, "nodes": [node.id for node in group.nodes]}
                for group in self.groups.values()
            ]
        return data
