from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from geometry import Size, estimate_node_size
from graph_model import GraphNode, ReferenceGraph

from .deferred import GeometryCoordinator
from .grid import UNIFORM_ORIGIN, UNIFORM_SPACING, uniform_grid
from .state import LayoutState

Measure = Callable[[GraphNode], Size]


@dataclass
class BatchMetrics:
    batch_number: int
    nodes_in_batch: int
    creation_ms: float = 0.0
    layout_ms: float = 0.0
    timestamp: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%S"))

    @property
    def total_ms(self) -> float:
        return self.creation_ms + self.layout_ms

    def to_dict(self) -> Dict[str, object]:
        return {
            "batch": self.batch_number,
            "nodes": self.nodes_in_batch,
            "creation_ms": round(self.creation_ms, 2),
            "layout_ms": round(self.layout_ms, 2),
            "total_ms": round(self.total_ms, 2),
            "timestamp": self.timestamp,
        }


def default_measure(node: GraphNode) -> Size:
    return estimate_node_size(node.label, len(node.properties))


class BatchBuilder:
    """Add nodes to a graph batch by batch, laying out each batch as it lands.

    `run()` is a generator so a driver can yield to its event loop between
    batches. Each batch is stacked below the previous one.
    """

    def __init__(
        self,
        max_nodes: int = 10000,
        batch_size: int = 2500,
        measure: Optional[Measure] = None,
    ):
        if max_nodes < 0:
            raise ValueError("max_nodes must be >= 0")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.max_nodes = max_nodes
        self.batch_size = batch_size
        self.measure = measure or default_measure
        self.graph = ReferenceGraph()
        self.metrics: List[BatchMetrics] = []
        self.elapsed_s = 0.0

    def batch_count(self, total: int) -> int:
        return -(-total // self.batch_size)

    def run(self, labels: Optional[Sequence[str]] = None) -> Iterator[LayoutState]:
        if labels is None:
            labels = [f"Node {idx}" for idx in range(self.max_nodes)]
        labels = list(labels)[: self.max_nodes]
        self.metrics = []
        started = time.perf_counter()
        offset_y = UNIFORM_ORIGIN[1]
        for batch in range(self.batch_count(len(labels))):
            chunk = labels[batch * self.batch_size : (batch + 1) * self.batch_size]
            metrics = BatchMetrics(batch_number=batch + 1, nodes_in_batch=len(chunk))

            tick = time.perf_counter()
            nodes = [self.graph.add_node(GraphNode(id=label)) for label in chunk]
            metrics.creation_ms = (time.perf_counter() - tick) * 1000

            tick = time.perf_counter()
            states: List[LayoutState] = []

            def lay_out(sizes: Dict, nodes: List[GraphNode] = nodes, origin_y: float = offset_y) -> None:
                for node in nodes:
                    node.set_size(sizes[node.id])
                state = uniform_grid(nodes, origin=(UNIFORM_ORIGIN[0], origin_y))
                state.apply()
                states.append(state)

            coordinator = GeometryCoordinator([node.id for node in nodes], on_ready=lay_out)
            for node in nodes:
                size = self.measure(node)
                coordinator.report_size(node.id, size.width, size.height)
            metrics.layout_ms = (time.perf_counter() - tick) * 1000
            self.metrics.append(metrics)

            if states:
                offset_y = states[0].height + UNIFORM_SPACING
                yield states[0]
            else:
                yield LayoutState(mode="uniform")
        self.elapsed_s = time.perf_counter() - started

    def summary(self) -> Dict[str, object]:
        total_nodes = sum(item.nodes_in_batch for item in self.metrics)
        count = len(self.metrics) or 1
        return {
            "total_nodes": total_nodes,
            "batches": len(self.metrics),
            "total_seconds": round(self.elapsed_s, 3),
            "avg_ms_per_node": round(self.elapsed_s * 1000 / total_nodes, 3) if total_nodes else 0.0,
            "avg_creation_ms": round(sum(m.creation_ms for m in self.metrics) / count, 2),
            "avg_layout_ms": round(sum(m.layout_ms for m in self.metrics) / count, 2),
            "metrics": [item.to_dict() for item in self.metrics],
        }
