from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Hashable, List, Optional

from geometry import Rect, Size
from graph_model import GraphNode, Group, ReferenceGraph

from .deferred import GeometryCoordinator
from .force import (
    DEFAULT_ATTRACTION,
    DEFAULT_DAMPING,
    DEFAULT_REPULSION,
    DEFAULT_STEPS,
    check_damping,
    force_layout,
)
from .grid import (
    OBJECTIVE_AREA,
    OBJECTIVE_ASPECT,
    OBJECTIVES,
    check_padding,
    flow_groups,
    pack_groups,
    pack_nodes,
    uniform_grid,
)
from .state import LayoutState

LAYOUT_MODES = ("grid", "uniform", "flow", "force")
UNGROUPED = "ungrouped"


@dataclass
class LayoutOptions:
    mode: str = "grid"
    padding: float = 15.0
    objective: str = OBJECTIVE_AREA
    node_objective: str = OBJECTIVE_ASPECT
    steps: int = DEFAULT_STEPS
    repulsion: float = DEFAULT_REPULSION
    attraction: float = DEFAULT_ATTRACTION
    damping: float = DEFAULT_DAMPING
    seed: Optional[int] = None
    connected_only: bool = False
    max_nodes: int = 10000
    batch_size: int = 2500

    def validate(self) -> "LayoutOptions":
        if self.mode not in LAYOUT_MODES:
            raise ValueError(f"Unknown layout mode: {self.mode}")
        if self.objective not in OBJECTIVES or self.node_objective not in OBJECTIVES:
            raise ValueError("Unknown packing objective")
        check_padding(self.padding)
        check_damping(self.damping)
        if self.steps < 0:
            raise ValueError("steps must be >= 0")
        if self.max_nodes < 0 or self.batch_size < 1:
            raise ValueError("max_nodes must be >= 0 and batch_size >= 1")
        return self


class GroupView:
    """A group restricted to the nodes taking part in one layout pass."""

    def __init__(self, group: Group, nodes: List[GraphNode]):
        self.group = group
        self.name = group.name
        self._nodes = nodes

    def get_contained_nodes(self) -> List[GraphNode]:
        return list(self._nodes)

    def set_position(self, rect: Rect) -> None:
        self.group.set_position(rect)


class LayoutSession:
    """One graph, one set of size reports, one layout pass.

    Nodes report their measured sizes through `report_size`; the pass runs
    as soon as the last node has reported. `refresh()` starts over with a new
    session over the same graph.
    """

    def __init__(
        self,
        graph: ReferenceGraph,
        options: Optional[LayoutOptions] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.graph = graph
        self.options = (options or LayoutOptions()).validate()
        self.warnings = warnings if warnings is not None else []
        self.state: Optional[LayoutState] = None
        self.passes = 0
        graph.freeze()

        nodes = graph.node_list()
        if self.options.connected_only:
            connected = graph.connected_node_ids()
            for node in nodes:
                node.visible = node.id in connected
            nodes = [node for node in nodes if node.visible]
        for node in nodes:
            node.size = None
            node.rect = None
        self.nodes = nodes
        self.coordinator = GeometryCoordinator([node.id for node in nodes])
        self.coordinator.on_ready(self._on_ready)

    @property
    def done(self) -> bool:
        return self.state is not None

    def report_size(self, node_id: str, width: float, height: float) -> bool:
        return self.coordinator.report_size(node_id, width, height)

    def report_sizes(self, sizes: Dict[str, Size]) -> bool:
        fired = False
        for node_id, size in sizes.items():
            fired = self.report_size(node_id, size.width, size.height) or fired
        return fired

    def _on_ready(self, sizes: Dict[Hashable, Size]) -> None:
        for node in self.nodes:
            size = sizes.get(node.id)
            if size is not None:
                node.set_size(size)
        state = self.compute()
        state.apply()
        self.state = state
        self.passes += 1

    def group_views(self) -> List[GroupView]:
        participating = {node.id for node in self.nodes}
        views: List[GroupView] = []
        for group in self.graph.groups.values():
            members = [node for node in group.nodes if node.id in participating]
            if members or not self.options.connected_only:
                views.append(GroupView(group, members))
        loose = [node for node in self.nodes if node.group is None]
        if loose and views:
            views.append(GroupView(Group(name=UNGROUPED), loose))
        return views

    def compute(self) -> LayoutState:
        opts = self.options
        if opts.mode == "force":
            return force_layout(
                self.nodes,
                [(edge.source, edge.target) for edge in self.graph.edges],
                steps=opts.steps,
                repulsion=opts.repulsion,
                attraction=opts.attraction,
                damping=opts.damping,
                seed=opts.seed,
            )
        if opts.mode == "uniform":
            return uniform_grid(self.nodes)
        views = self.group_views()
        if opts.mode == "flow":
            if not views:
                views = [GroupView(Group(name=UNGROUPED), self.nodes)] if self.nodes else []
            return flow_groups(views)
        if views:
            return pack_groups(views, opts.padding, opts.objective, opts.node_objective)
        return pack_nodes(self.nodes, opts.padding, opts.objective)

    def refresh(self, options: Optional[LayoutOptions] = None) -> "LayoutSession":
        for node in self.graph.nodes.values():
            node.visible = True
        return LayoutSession(self.graph, options or replace(self.options), self.warnings)
