"""Force-directed placement for ungrouped graphs.

Every step applies pairwise repulsion (strength / d^2) between all nodes and
linear attraction (strength * d) along every edge, folds the forces into each
node's velocity, bleeds energy with `damping` and moves the node. Repulsion is
computed for every unordered pair, so a step costs O(n^2): keep graphs to the
low hundreds of nodes or run this off any latency-sensitive path.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from geometry import Rect, Size, union_rect

from .grid import size_of
from .state import LayoutState, NodeLayout

DEFAULT_STEPS = 1000
DEFAULT_REPULSION = 10000.0
DEFAULT_ATTRACTION = 0.01
DEFAULT_DAMPING = 0.95
DEFAULT_SPREAD = 1000.0
MIN_DISTANCE = 1.0


@dataclass(frozen=True)
class ForceResult:
    positions: Dict[Hashable, Tuple[float, float]]
    speeds: Tuple[float, ...]

    def speed_at(self, step: int) -> float:
        """Total velocity magnitude after `step` (1-based) iterations."""
        if not self.speeds:
            return 0.0
        return self.speeds[min(max(step, 1), len(self.speeds)) - 1]


def check_damping(damping: float) -> float:
    if not 0.0 < damping < 1.0:
        raise ValueError(f"damping must be in (0, 1), got {damping}")
    return float(damping)


def simulate(
    nodes: Sequence[Hashable],
    edges: Iterable[Tuple[Hashable, Hashable]],
    steps: int = DEFAULT_STEPS,
    repulsion: float = DEFAULT_REPULSION,
    attraction: float = DEFAULT_ATTRACTION,
    damping: float = DEFAULT_DAMPING,
    *,
    seed: Optional[int] = None,
    spread: float = DEFAULT_SPREAD,
) -> ForceResult:
    damping = check_damping(damping)
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")
    rng = random.Random(seed)
    keys = list(dict.fromkeys(nodes))
    index = {key: idx for idx, key in enumerate(keys)}
    count = len(keys)
    links = [
        (index[src], index[dst])
        for src, dst in edges
        if src in index and dst in index and src != dst
    ]
    xs = [rng.uniform(0.0, spread) for _ in range(count)]
    ys = [rng.uniform(0.0, spread) for _ in range(count)]
    vx = [0.0] * count
    vy = [0.0] * count
    speeds: List[float] = []

    for _ in range(steps):
        fx = [0.0] * count
        fy = [0.0] * count
        for i in range(count):
            for j in range(i + 1, count):
                dx = xs[i] - xs[j]
                dy = ys[i] - ys[j]
                dist = math.hypot(dx, dy)
                if dist == 0.0:
                    continue
                force = repulsion / max(dist, MIN_DISTANCE) ** 2
                ux = dx / dist
                uy = dy / dist
                fx[i] += ux * force
                fy[i] += uy * force
                fx[j] -= ux * force
                fy[j] -= uy * force
        for i, j in links:
            dx = xs[j] - xs[i]
            dy = ys[j] - ys[i]
            # attraction * distance along the unit vector
            fx[i] += dx * attraction
            fy[i] += dy * attraction
            fx[j] -= dx * attraction
            fy[j] -= dy * attraction
        total = 0.0
        for i in range(count):
            vx[i] = (vx[i] + fx[i]) * damping
            vy[i] = (vy[i] + fy[i]) * damping
            xs[i] += vx[i]
            ys[i] += vy[i]
            total += math.hypot(vx[i], vy[i])
        speeds.append(total)

    return ForceResult(
        positions={key: (xs[idx], ys[idx]) for key, idx in index.items()},
        speeds=tuple(speeds),
    )


def force_layout(
    items: Sequence[Any],
    edges: Iterable[Tuple[Hashable, Hashable]],
    *,
    key=None,
    steps: int = DEFAULT_STEPS,
    repulsion: float = DEFAULT_REPULSION,
    attraction: float = DEFAULT_ATTRACTION,
    damping: float = DEFAULT_DAMPING,
    seed: Optional[int] = None,
    default_size: Optional[Size] = None,
) -> LayoutState:
    """Run `simulate` over node handles and turn centers into rectangles.

    `edges` are pairs of keys; `key(item)` maps a handle to its key and
    defaults to the handle's `id` attribute, falling back to the handle.
    """
    if not items:
        return LayoutState(mode="force")
    if key is None:

        def key(item: Any) -> Hashable:
            return getattr(item, "id", item)

    keys = [key(item) for item in items]
    result = simulate(
        keys, edges, steps, repulsion, attraction, damping, seed=seed
    )
    layouts: List[NodeLayout] = []
    for item, item_key in zip(items, keys):
        cx, cy = result.positions[item_key]
        size = size_of(item, default_size)
        layouts.append(
            NodeLayout(item, Rect(cx - size.width / 2, cy - size.height / 2, size.width, size.height))
        )
    bounds = union_rect(layout.rect for layout in layouts)
    return LayoutState(
        nodes=tuple(layouts),
        width=bounds.width,
        height=bounds.height,
        mode="force",
        meta={"steps": steps, "final_speed": result.speed_at(steps)},
    )
