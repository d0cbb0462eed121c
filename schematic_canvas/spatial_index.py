"""Quadtree index over element bounding boxes.

The index answers "which elements might be under this point" and may return
false positives; exact hit testing happens in :mod:`hit_test`. Entries are
never patched in place: edits mark the index dirty and the next query
rebuilds it from the element source.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .elements import Element

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box stored as min/max corners."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def contains_point(self, x: float, y: float) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def contains_box(self, other: "BoundingBox") -> bool:
        return self.x0 <= other.x0 and self.y0 <= other.y0 and other.x1 <= self.x1 and other.y1 <= self.y1

    def intersects(self, other: "BoundingBox") -> bool:
        return not (other.x0 > self.x1 or other.x1 < self.x0 or other.y0 > self.y1 or other.y1 < self.y0)

    def quadrants(self) -> Tuple["BoundingBox", "BoundingBox", "BoundingBox", "BoundingBox"]:
        mx = (self.x0 + self.x1) / 2.0
        my = (self.y0 + self.y1) / 2.0
        return (
            BoundingBox(self.x0, self.y0, mx, my),
            BoundingBox(mx, self.y0, self.x1, my),
            BoundingBox(self.x0, my, mx, self.y1),
            BoundingBox(mx, my, self.x1, self.y1),
        )

    @classmethod
    def from_element(cls, element: Element, padding: float = 20.0) -> "BoundingBox":
        nodes = element.get_nodes()
        if not nodes:
            return cls(0.0, 0.0, 0.0, 0.0)
        xs = [node.x for node in nodes]
        ys = [node.y for node in nodes]
        return cls(min(xs) - padding, min(ys) - padding, max(xs) + padding, max(ys) + padding)


Entry = Tuple[Element, BoundingBox]


class QuadTreeNode:
    """One region of the quadtree; splits into four once it overflows."""

    def __init__(self, bounds: BoundingBox, max_items: int = 8, max_depth: int = 6, depth: int = 0):
        self.bounds = bounds
        self.max_items = max_items
        self.max_depth = max_depth
        self.depth = depth
        self.entries: List[Entry] = []
        self.children: Optional[List[QuadTreeNode]] = None

    def insert(self, entry: Entry) -> bool:
        box = entry[1]
        if not self.bounds.intersects(box):
            return False
        if self.children is None:
            if len(self.entries) < self.max_items or self.depth >= self.max_depth:
                self.entries.append(entry)
                return True
            self._subdivide()
        # Boxes straddling a split line stay at this level
        for child in self.children:
            if child.bounds.contains_box(box):
                return child.insert(entry)
        self.entries.append(entry)
        return True

    def _subdivide(self) -> None:
        self.children = [
            QuadTreeNode(quadrant, self.max_items, self.max_depth, self.depth + 1)
            for quadrant in self.bounds.quadrants()
        ]
        pending, self.entries = self.entries, []
        for entry in pending:
            self.insert(entry)

    def query_point(self, x: float, y: float, results: List[Entry]) -> List[Entry]:
        if not self.bounds.contains_point(x, y):
            return results
        for entry in self.entries:
            if entry[1].contains_point(x, y):
                results.append(entry)
        if self.children is not None:
            for child in self.children:
                child.query_point(x, y, results)
        return results

    def query_range(self, box: BoundingBox, results: List[Entry]) -> List[Entry]:
        if not self.bounds.intersects(box):
            return results
        for entry in self.entries:
            if entry[1].intersects(box):
                results.append(entry)
        if self.children is not None:
            for child in self.children:
                child.query_range(box, results)
        return results

    def count(self) -> int:
        total = len(self.entries)
        if self.children is not None:
            total += sum(child.count() for child in self.children)
        return total

    def depth_reached(self) -> int:
        if self.children is None:
            return self.depth
        return max(child.depth_reached() for child in self.children)


class SpatialIndex:
    """Quadtree over a fixed region plus an overflow list for everything outside it.

    Boxes that cross the region edge live in the tree and are also remembered
    as straddling, so queries outside the region can still reach them. Queries
    inside the region never touch the overflow list.
    """

    def __init__(
        self,
        bounds: BoundingBox,
        padding: float = 20.0,
        max_items: int = 8,
        max_depth: int = 6,
        source: Optional[Callable[[], Iterable[Element]]] = None,
    ):
        self.bounds = bounds
        self.padding = padding
        self.max_items = max_items
        self.max_depth = max_depth
        self._source = source
        self._root = QuadTreeNode(bounds, max_items, max_depth)
        self._outside: List[Entry] = []
        self._straddling: List[Entry] = []
        self._order: Dict[int, int] = {}
        self._dirty = source is not None
        self.rebuild_count = 0

    # ------------------------------------------------------------------
    # Maintenance
    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def set_source(self, source: Optional[Callable[[], Iterable[Element]]]) -> None:
        self._source = source
        self._dirty = True

    def rebuild(self, elements: Iterable[Element]) -> None:
        """Replace every entry; O(n) in the element count."""
        self._root = QuadTreeNode(self.bounds, self.max_items, self.max_depth)
        self._outside = []
        self._straddling = []
        self._order = {}
        for position, element in enumerate(elements):
            entry = (element, BoundingBox.from_element(element, self.padding))
            self._order[id(element)] = position
            if self._root.bounds.contains_box(entry[1]):
                self._root.insert(entry)
            elif self._root.bounds.intersects(entry[1]):
                self._root.insert(entry)
                self._straddling.append(entry)
            else:
                self._outside.append(entry)
        self._dirty = False
        self.rebuild_count += 1
        logger.debug("Spatial index rebuilt: %d entries, %d outside bounds", len(self._order), len(self._outside))

    def _ensure_fresh(self) -> None:
        if self._dirty and self._source is not None:
            self.rebuild(self._source())

    def resize(self, bounds: BoundingBox) -> None:
        self.bounds = bounds
        self._dirty = True
        if self._source is None:
            elements = self._sorted([entry for entry in self._iter_entries()])
            self.rebuild(elements)

    def _iter_entries(self) -> List[Entry]:
        entries: List[Entry] = []
        self._root.query_range(self._root.bounds, entries)
        entries.extend(self._outside)
        return entries

    def _beyond(self) -> List[Entry]:
        return self._outside + self._straddling

    def _sorted(self, entries: Sequence[Entry]) -> List[Element]:
        # Keep render order so the hit-tester can break ties by z-order
        unique = {id(entry[0]): entry[0] for entry in entries}
        return sorted(unique.values(), key=lambda element: self._order.get(id(element), 0))

    # ------------------------------------------------------------------
    # Queries
    def find_elements_at_point(self, x: float, y: float) -> List[Element]:
        """Candidate elements whose padded bounding box contains ``(x, y)``."""
        self._ensure_fresh()
        results: List[Entry] = []
        self._root.query_point(x, y, results)
        if not self._root.bounds.contains_point(x, y):
            for entry in self._beyond():
                if entry[1].contains_point(x, y):
                    results.append(entry)
        return self._sorted(results)

    def find_elements_in_range(self, box: BoundingBox) -> List[Element]:
        self._ensure_fresh()
        results: List[Entry] = []
        self._root.query_range(box, results)
        if not self._root.bounds.contains_box(box):
            for entry in self._beyond():
                if entry[1].intersects(box):
                    results.append(entry)
        return self._sorted(results)

    def stats(self) -> Dict[str, object]:
        return {
            "total": len(self._order),
            "in_tree": self._root.count(),
            "outside": len(self._outside),
            "straddling": len(self._straddling),
            "depth": self._root.depth_reached(),
            "bounds": self.bounds,
            "dirty": self._dirty,
        }


class AdaptiveSpatialIndex(SpatialIndex):
    """Spatial index whose region tracks the visible viewport.

    The region is the visible logical rectangle grown by half its larger side.
    Zooming in shrinks it, so the same depth limit yields finer cells.
    """

    def update_viewport(self, offset_x: float, offset_y: float, scale: float, width: float, height: float) -> bool:
        """Retune the partition region; returns True when it was replaced."""
        if scale <= 0 or width <= 0 or height <= 0:
            return False
        left = -offset_x / scale
        top = -offset_y / scale
        logical_w = width / scale
        logical_h = height / scale
        margin = max(logical_w, logical_h) * 0.5
        candidate = BoundingBox(left - margin, top - margin, left + logical_w + margin, top + logical_h + margin)
        current = self.bounds
        changed = (
            abs(candidate.x0 - current.x0) > margin / 4
            or abs(candidate.y0 - current.y0) > margin / 4
            or abs(candidate.width - current.width) > margin / 2
            or abs(candidate.height - current.height) > margin / 2
        )
        if changed:
            self.resize(candidate)
        return changed
