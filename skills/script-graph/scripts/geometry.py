from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    def is_valid(self) -> bool:
        return (
            self.width > 0
            and self.height > 0
            and math.isfinite(self.width)
            and math.isfinite(self.height)
        )


ZERO_SIZE = Size(0.0, 0.0)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def offset(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def inflate(self, padding: float) -> "Rect":
        return Rect(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )

    def contains(self, other: "Rect", tolerance: float = 1e-9) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def overlaps(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def union_rect(rects: Iterable[Rect]) -> Optional[Rect]:
    items = list(rects)
    if not items:
        return None
    left = min(rect.x for rect in items)
    top = min(rect.y for rect in items)
    right = max(rect.right for rect in items)
    bottom = max(rect.bottom for rect in items)
    return Rect(left, top, right - left, bottom - top)


def estimate_node_size(
    label: str,
    rows: int = 0,
    *,
    char_width: float = 7.0,
    row_height: float = 20.0,
    padding: float = 16.0,
    min_width: float = 100.0,
    min_height: float = 60.0,
) -> Size:
    """Approximate the box a surface would measure for a titled node with `rows` lines."""
    width = max(min_width, len(label) * char_width + 2 * padding)
    height = max(min_height, (rows + 1) * row_height + 2 * padding)
    return Size(width, height)
