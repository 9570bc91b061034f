"""Wait for every node to be measured, then lay out exactly once.

A rendering surface only knows a node's size after it has drawn it, and
size notifications arrive one node at a time, in any order and possibly on
different threads. `GeometryCoordinator` records the first valid size per
node and fires its layout callback the moment the last node reports.

States move forward only: COLLECTING -> READY -> DONE. A node that never
reports a valid size keeps the coordinator in COLLECTING forever; callers
that need a deadline must enforce it themselves.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from geometry import Size

COLLECTING = "collecting"
READY = "ready"
DONE = "done"

ReadyCallback = Callable[[Dict[Hashable, Size]], None]


class GeometryCoordinator:
    def __init__(self, node_ids: Iterable[Hashable], on_ready: Optional[ReadyCallback] = None):
        self._lock = threading.Lock()
        self._pending = set(node_ids)
        self._registered = frozenset(self._pending)
        self._sizes: Dict[Hashable, Size] = {}
        self._callback: Optional[ReadyCallback] = None
        self._state = READY if not self._pending else COLLECTING
        self._layout_performed = False
        self.warnings: List[str] = []
        if on_ready is not None:
            self.on_ready(on_ready)

    @property
    def state(self) -> str:
        return self._state

    @property
    def layout_performed(self) -> bool:
        return self._layout_performed

    @property
    def registered(self) -> frozenset:
        return self._registered

    def pending(self) -> List[Hashable]:
        with self._lock:
            return list(self._pending)

    def sizes(self) -> Dict[Hashable, Size]:
        with self._lock:
            return dict(self._sizes)

    def _claim(self) -> Optional[Dict[Hashable, Size]]:
        # caller holds the lock
        if self._state != READY or self._layout_performed or self._callback is None:
            return None
        self._layout_performed = True
        return dict(self._sizes)

    def _fire(self, sizes: Optional[Dict[Hashable, Size]]) -> bool:
        if sizes is None:
            return False
        callback = self._callback
        try:
            if callback is not None:
                callback(sizes)
        finally:
            with self._lock:
                self._state = DONE
        return True

    def report_size(self, node_id: Hashable, width: float, height: float) -> bool:
        """Record a measured size; returns True if this report triggered layout."""
        size = Size(float(width), float(height))
        with self._lock:
            if node_id not in self._registered:
                self.warnings.append(f"Size report for unknown node {node_id}")
                return False
            if node_id not in self._pending:
                return False
            if not size.is_valid():
                return False
            self._sizes[node_id] = size
            self._pending.discard(node_id)
            if not self._pending and self._state == COLLECTING:
                self._state = READY
            sizes = self._claim()
        return self._fire(sizes)

    def on_ready(self, callback: ReadyCallback) -> bool:
        """Set the layout callback; fires it right away if every node has reported."""
        with self._lock:
            if self._layout_performed:
                return False
            self._callback = callback
            sizes = self._claim()
        return self._fire(sizes)

    def request_layout(self) -> bool:
        """Explicit layout request; a no-op unless READY and not yet laid out."""
        with self._lock:
            sizes = self._claim()
        return self._fire(sizes)
