"""Pure node transforms shared by drag, rotate, nudge and placement."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .elements import Element
from .geometry import Position, bounding_box_of, rect_center, rotation_terms, rotate_point, snap_point, snap_value

HORIZONTAL = "horizontal"
VERTICAL = "vertical"


def translate_nodes(nodes: Sequence[Position], dx: float, dy: float) -> List[Position]:
    return [node.offset(dx, dy) for node in nodes]


def lock_axis(first: Position, second: Position) -> str:
    """Classify a two-node element; ties count as horizontal."""
    if abs(second.x - first.x) >= abs(second.y - first.y):
        return HORIZONTAL
    return VERTICAL


def constrain_to_axis(original: Position, pointer: Sequence[float], axis: str, grid: float) -> Position:
    """Hold the locked coordinate of ``original``; the free one follows ``pointer``."""
    if axis == HORIZONTAL:
        return Position(snap_value(float(pointer[0]), grid), original.y)
    return Position(original.x, snap_value(float(pointer[1]), grid))


def dominant_axis_point(anchor: Position, pointer: Sequence[float], grid: float) -> Position:
    snapped = snap_point(pointer, grid)
    if abs(snapped.x - anchor.x) >= abs(snapped.y - anchor.y):
        return Position(snapped.x, anchor.y)
    return Position(anchor.x, snapped.y)


def rotation_pivot(elements: Sequence[Element]) -> Optional[Position]:
    """Node 0 for a single element, else the centre of the union bounding box."""
    if not elements:
        return None
    if len(elements) == 1:
        nodes = elements[0].get_nodes()
        return nodes[0] if nodes else None
    box = bounding_box_of(node for element in elements for node in element.get_nodes())
    return rect_center(box) if box is not None else None


def rotate_elements_nodes(elements: Sequence[Element], degrees: float, grid: float) -> Dict[str, List[Position]]:
    """New node lists, keyed by element id, after rotating about the shared pivot."""
    pivot = rotation_pivot(elements)
    if pivot is None:
        return {}
    return {
        element.id: [snap_point(rotate_point(node, pivot, degrees), grid) for node in element.get_nodes()]
        for element in elements
    }


def placement_nodes(
    center: Position, orientation: float, node_count: int, span: float, grid: float
) -> List[Position]:
    """Lay out an element around ``center`` at ``orientation`` degrees.

    Two-node elements put their terminals half a span either side of the
    centre; on quarter turns the far node sits exactly one span from the
    snapped near node.
    """
    if node_count <= 1:
        return [snap_point(center, grid)]
    cos_a, sin_a = rotation_terms(orientation)
    half = span / 2.0
    start = snap_point((center.x - half * cos_a, center.y - half * sin_a), grid)
    if float(orientation).is_integer() and int(orientation) % 90 == 0:
        end = Position(start.x + span * cos_a, start.y + span * sin_a)
    else:
        end = snap_point((center.x + half * cos_a, center.y + half * sin_a), grid)
    if node_count == 2:
        return [start, end]
    step = 1.0 / (node_count - 1)
    return [
        snap_point((start.x + (end.x - start.x) * i * step, start.y + (end.y - start.y) * i * step), grid)
        for i in range(node_count)
    ]
