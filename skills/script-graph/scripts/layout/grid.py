"""Grid packing of sized items and groups.

`pack_grid` is the core: items are sorted by descending area, every row
count from 1 to ceil(sqrt(n)) is tried with the matching column count, and
the candidate that best fits the objective wins. Column widths and row
heights are the per-column / per-row maxima, with `padding` between cells
and around the whole grid. Output is a pure function of the input sizes.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from geometry import Rect, Size, ZERO_SIZE

from .state import GroupLayout, LayoutState, NodeLayout

OBJECTIVE_AREA = "area"
OBJECTIVE_ASPECT = "aspect"
OBJECTIVES = (OBJECTIVE_AREA, OBJECTIVE_ASPECT)

GOLDEN_RATIO = 1.618
UNIFORM_MIN_CELL = Size(100.0, 200.0)
UNIFORM_SPACING = 50.0
UNIFORM_ORIGIN = (100.0, 100.0)

FLOW_MIN_NODE = Size(50.0, 100.0)


@dataclass(frozen=True)
class GridPacking:
    positions: Tuple[Tuple[float, float], ...]
    width: float
    height: float
    rows: int
    columns: int


EMPTY_PACKING = GridPacking(positions=(), width=0.0, height=0.0, rows=0, columns=0)


def check_padding(padding: float) -> float:
    if padding < 0 or not math.isfinite(padding):
        raise ValueError(f"padding must be a non-negative number, got {padding}")
    return float(padding)


def size_of(item: Any, default: Optional[Size] = None) -> Size:
    size = item.get_size() if hasattr(item, "get_size") else item
    if isinstance(size, Size) and size.is_valid():
        return size
    return default or ZERO_SIZE


def _candidate(
    sizes: Sequence[Size], rows: int, padding: float
) -> Tuple[float, float, int, int, List[Tuple[float, float]]]:
    count = len(sizes)
    columns = math.ceil(count / rows)
    used_rows = math.ceil(count / columns)
    col_widths = [0.0] * columns
    row_heights = [0.0] * used_rows
    for index, size in enumerate(sizes):
        row, col = divmod(index, columns)
        col_widths[col] = max(col_widths[col], size.width)
        row_heights[row] = max(row_heights[row], size.height)
    positions: List[Tuple[float, float]] = []
    y = padding
    for row in range(used_rows):
        x = padding
        for col in range(columns):
            if row * columns + col >= count:
                break
            positions.append((x, y))
            x += col_widths[col] + padding
        y += row_heights[row] + padding
    width = sum(col_widths) + padding * (columns + 1)
    height = sum(row_heights) + padding * (used_rows + 1)
    return width, height, used_rows, columns, positions


def _score(width: float, height: float, objective: str) -> float:
    if objective == OBJECTIVE_AREA:
        return width * height
    if height <= 0:
        return math.inf
    return abs(width / height - 1.0)


def pack_grid(
    sizes: Sequence[Size], padding: float, objective: str = OBJECTIVE_AREA
) -> GridPacking:
    """Pack `sizes` into a grid; positions are returned in input order."""
    padding = check_padding(padding)
    if objective not in OBJECTIVES:
        raise ValueError(f"Unknown packing objective: {objective}")
    count = len(sizes)
    if count == 0:
        return EMPTY_PACKING
    order = sorted(range(count), key=lambda idx: -sizes[idx].area)
    ordered = [sizes[idx] for idx in order]

    best = None
    best_score = math.inf
    for rows in range(1, math.ceil(math.sqrt(count)) + 1):
        candidate = _candidate(ordered, rows, padding)
        score = _score(candidate[0], candidate[1], objective)
        if best is None or score < best_score:
            best = candidate
            best_score = score
    assert best is not None
    width, height, rows, columns, sorted_positions = best

    positions: List[Tuple[float, float]] = [(0.0, 0.0)] * count
    for slot, idx in enumerate(order):
        positions[idx] = sorted_positions[slot]
    return GridPacking(
        positions=tuple(positions), width=width, height=height, rows=rows, columns=columns
    )


def pack_group(
    items: Sequence[Any],
    padding: float,
    objective: str = OBJECTIVE_ASPECT,
    default_size: Optional[Size] = None,
) -> Tuple[List[NodeLayout], Size]:
    """Lay out one group's members in group-local coordinates."""
    sizes = [size_of(item, default_size) for item in items]
    packing = pack_grid(sizes, padding, objective)
    layouts = [
        NodeLayout(node=item, rect=Rect(x, y, size.width, size.height))
        for item, (x, y), size in zip(items, packing.positions, sizes)
    ]
    return layouts, Size(packing.width, packing.height)


def pack_nodes(
    items: Sequence[Any],
    padding: float,
    objective: str = OBJECTIVE_AREA,
    default_size: Optional[Size] = None,
) -> LayoutState:
    layouts, total = pack_group(items, padding, objective, default_size)
    return LayoutState(
        nodes=tuple(layouts), width=total.width, height=total.height, mode="grid"
    )


def pack_groups(
    groups: Sequence[Any],
    padding: float,
    objective: str = OBJECTIVE_AREA,
    node_objective: str = OBJECTIVE_ASPECT,
    default_size: Optional[Size] = None,
) -> LayoutState:
    """Pack each group's members, then pack the groups as opaque boxes.

    Member rectangles come back in absolute coordinates: group-local
    position plus the group's chosen position.
    """
    if not groups:
        return LayoutState(mode="grid")
    packed: List[Tuple[Any, List[NodeLayout], Size]] = []
    for group in groups:
        layouts, size = pack_group(group.get_contained_nodes(), padding, node_objective, default_size)
        packed.append((group, layouts, size))

    packing = pack_grid([size for _, _, size in packed], padding, objective)
    group_layouts: List[GroupLayout] = []
    for (group, layouts, size), (gx, gy) in zip(packed, packing.positions):
        group_layouts.append(
            GroupLayout(
                group=group,
                rect=Rect(gx, gy, size.width, size.height),
                nodes=tuple(NodeLayout(item.node, item.rect.offset(gx, gy)) for item in layouts),
            )
        )
    return LayoutState(
        groups=tuple(group_layouts),
        width=packing.width,
        height=packing.height,
        mode="grid",
        meta={"rows": packing.rows, "columns": packing.columns},
    )


def uniform_columns(count: int, aspect: float = GOLDEN_RATIO) -> int:
    return max(1, round(math.sqrt(count * aspect)))


def uniform_grid(
    items: Sequence[Any],
    *,
    spacing: float = UNIFORM_SPACING,
    origin: Tuple[float, float] = UNIFORM_ORIGIN,
    min_cell: Size = UNIFORM_MIN_CELL,
) -> LayoutState:
    """Fixed-cell grid: every cell is as large as the largest node."""
    spacing = check_padding(spacing)
    if not items:
        return LayoutState(mode="uniform")
    sizes = [size_of(item) for item in items]
    cell_w = max([min_cell.width] + [size.width for size in sizes])
    cell_h = max([min_cell.height] + [size.height for size in sizes])
    columns = uniform_columns(len(items))
    rows = math.ceil(len(items) / columns)
    layouts: List[NodeLayout] = []
    for index, (item, size) in enumerate(zip(items, sizes)):
        row, col = divmod(index, columns)
        x = origin[0] + col * (cell_w + spacing)
        y = origin[1] + row * (cell_h + spacing)
        width = size.width if size.is_valid() else cell_w
        height = size.height if size.is_valid() else cell_h
        layouts.append(NodeLayout(item, Rect(x, y, width, height)))
    used_columns = min(columns, len(items))
    return LayoutState(
        nodes=tuple(layouts),
        width=origin[0] + used_columns * cell_w + (used_columns - 1) * spacing,
        height=origin[1] + rows * cell_h + (rows - 1) * spacing,
        mode="uniform",
        meta={"rows": rows, "columns": columns, "cell": [cell_w, cell_h]},
    )


def flow_rows(
    items: Sequence[Any],
    *,
    padding: float = 20.0,
    max_row_width: float = 800.0,
    header: float = 50.0,
    min_size: Size = FLOW_MIN_NODE,
) -> Tuple[List[NodeLayout], Size]:
    """Place items left to right, wrapping once a row would pass `max_row_width`."""
    padding = check_padding(padding)
    x = padding
    y = header
    row_height = 0.0
    right = 0.0
    layouts: List[NodeLayout] = []
    for item in items:
        size = size_of(item)
        width = max(size.width, min_size.width)
        height = max(size.height, min_size.height)
        if x > padding and x + width > max_row_width:
            x = padding
            y += row_height + padding
            row_height = 0.0
        layouts.append(NodeLayout(item, Rect(x, y, width, height)))
        right = max(right, x + width)
        x += width + padding
        row_height = max(row_height, height)
    if not layouts:
        return [], ZERO_SIZE
    return layouts, Size(right + padding, y + row_height + padding)


def flow_groups(
    groups: Sequence[Any],
    *,
    node_padding: float = 20.0,
    group_padding: float = 50.0,
    max_group_width: float = 800.0,
    max_total_width: float = 5000.0,
) -> LayoutState:
    """Flow nodes inside each group, then flow the groups across wide rows."""
    group_padding = check_padding(group_padding)
    x = 0.0
    y = 0.0
    row_height = 0.0
    total_width = 0.0
    group_layouts: List[GroupLayout] = []
    for group in groups:
        layouts, size = flow_rows(
            group.get_contained_nodes(), padding=node_padding, max_row_width=max_group_width
        )
        if x > 0 and x + size.width > max_total_width:
            x = 0.0
            y += row_height + group_padding
            row_height = 0.0
        group_layouts.append(
            GroupLayout(
                group=group,
                rect=Rect(x, y, size.width, size.height),
                nodes=tuple(NodeLayout(item.node, item.rect.offset(x, y)) for item in layouts),
            )
        )
        total_width = max(total_width, x + size.width)
        x += size.width + group_padding
        row_height = max(row_height, size.height)
    return LayoutState(
        groups=tuple(group_layouts),
        width=total_width,
        height=y + row_height if group_layouts else 0.0,
        mode="flow",
    )
