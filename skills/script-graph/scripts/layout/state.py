from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from geometry import Rect


@dataclass(frozen=True)
class NodeLayout:
    node: Any
    rect: Rect


@dataclass(frozen=True)
class GroupLayout:
    group: Any
    rect: Rect
    nodes: Tuple[NodeLayout, ...] = ()


@dataclass(frozen=True)
class LayoutState:
    """Rectangles computed by one layout pass, ready to push onto handles."""

    groups: Tuple[GroupLayout, ...] = ()
    nodes: Tuple[NodeLayout, ...] = ()
    width: float = 0.0
    height: float = 0.0
    mode: str = ""
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        # read-only view over a private copy
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def is_empty(self) -> bool:
        return not self.groups and not self.nodes

    def node_layouts(self) -> List[NodeLayout]:
        layouts: List[NodeLayout] = list(self.nodes)
        for group_layout in self.groups:
            layouts.extend(group_layout.nodes)
        return layouts

    def apply(self) -> None:
        for group_layout in self.groups:
            group_layout.group.set_position(group_layout.rect)
            for node_layout in group_layout.nodes:
                node_layout.node.set_position(node_layout.rect)
        for node_layout in self.nodes:
            node_layout.node.set_position(node_layout.rect)

    def to_dict(self) -> Dict[str, Any]:
        def handle_id(handle: Any) -> str:
            for attr in ("id", "name"):
                value = getattr(handle, attr, None)
                if isinstance(value, str):
                    return value
            return str(handle)

        return {
            "mode": self.mode,
            "width": self.width,
            "height": self.height,
            "groups": [
                {
                    "name": handle_id(group_layout.group),
                    "rect": group_layout.rect.to_dict(),
                    "nodes": [
                        {"id": handle_id(item.node), "rect": item.rect.to_dict()}
                        for item in group_layout.nodes
                    ],
                }
                for group_layout in self.groups
            ],
            "nodes": [
                {"id": handle_id(item.node), "rect": item.rect.to_dict()} for item in self.nodes
            ],
            "meta": dict(self.meta),
        }
