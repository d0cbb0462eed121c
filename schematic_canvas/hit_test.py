"""Precise pointer hit-testing on top of the spatial index candidates."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .elements import Element
from .geometry import as_array, point_to_polyline_distance, point_to_segment_distance
from .spatial_index import SpatialIndex


@dataclass
class HitCandidate:
    element: Element
    distance: float
    node_index: int
    node_distance: float
    order: int

    def rank(self, node_proximity: float) -> Tuple[int, float, int, int]:
        near = self.node_distance <= node_proximity
        return (
            1 if near else 0,
            -self.node_distance if near else 0.0,
            0 if self.element.is_wire else 1,
            self.order,
        )


class HitTester:
    """Resolve the single element under a point.

    Ranking, highest first: elements with a node inside ``node_proximity``
    (closer node wins), then non-wires over wires, then the top-most element
    in render order.
    """

    def __init__(self, index: Optional[SpatialIndex] = None, aura: float = 10.0, node_proximity: float = 15.0):
        self.index = index
        self.aura = aura
        self.node_proximity = node_proximity

    def body_distance(self, element: Element, x: float, y: float) -> Optional[float]:
        """Distance from ``(x, y)`` to the element, or ``None`` when outside the aura."""
        nodes = element.get_nodes()
        if not nodes:
            return None
        aura = self.aura
        xs = [node.x for node in nodes]
        ys = [node.y for node in nodes]
        if x < min(xs) - aura or x > max(xs) + aura or y < min(ys) - aura or y > max(ys) + aura:
            return None
        if len(nodes) == 1:
            dist = math.hypot(x - nodes[0].x, y - nodes[0].y)
        elif len(nodes) == 2:
            dist = point_to_segment_distance((x, y), nodes[0], nodes[1])
        else:
            dist = point_to_polyline_distance((x, y), as_array(nodes))
        return dist if dist <= aura else None

    @staticmethod
    def nearest_node(element: Element, x: float, y: float) -> Tuple[int, float]:
        best_index, best = -1, float("inf")
        for index, node in enumerate(element.get_nodes()):
            dist = math.hypot(x - node.x, y - node.y)
            if dist < best:
                best_index, best = index, dist
        return best_index, best

    def find_node(self, element: Element, x: float, y: float) -> Optional[int]:
        """Index of the node within the hit aura of ``(x, y)``, if any."""
        index, dist = self.nearest_node(element, x, y)
        if index < 0 or dist > self.aura:
            return None
        return index

    def candidates(self, x: float, y: float, elements: Optional[Sequence[Element]] = None) -> List[HitCandidate]:
        if elements is None:
            elements = self.index.find_elements_at_point(x, y) if self.index is not None else []
        hits: List[HitCandidate] = []
        for order, element in enumerate(elements):
            dist = self.body_distance(element, x, y)
            if dist is None:
                continue
            node_index, node_dist = self.nearest_node(element, x, y)
            hits.append(HitCandidate(element, dist, node_index, node_dist, order))
        return hits

    def hit_test(self, x: float, y: float, elements: Optional[Sequence[Element]] = None) -> Optional[Element]:
        hits = self.candidates(x, y, elements)
        if not hits:
            return None
        best = max(hits, key=lambda hit: hit.rank(self.node_proximity))
        return best.element

    def wires_near(
        self, x: float, y: float, elements: Sequence[Element], exclude: Sequence[Element] = ()
    ) -> List[Element]:
        skip = {id(element) for element in exclude}
        return [
            element
            for element in elements
            if element.is_wire and id(element) not in skip and self.body_distance(element, x, y) is not None
        ]
