from geometry import Rect, Size, estimate_node_size, union_rect

from .batch import BatchBuilder, BatchMetrics
from .deferred import COLLECTING, DONE, READY, GeometryCoordinator
from .force import ForceResult, force_layout, simulate
from .grid import (
    OBJECTIVE_AREA,
    OBJECTIVE_ASPECT,
    GridPacking,
    flow_groups,
    flow_rows,
    pack_grid,
    pack_group,
    pack_groups,
    pack_nodes,
    uniform_grid,
)
from .session import LAYOUT_MODES, LayoutOptions, LayoutSession
from .state import GroupLayout, LayoutState, NodeLayout
