"""Topological rewrite of wires touched by other wires' terminals.

When a terminal of a moving wire lands on the body of another wire, that
wire is deleted and replaced by two wires meeting at the contact point. A
terminal landing on another wire's terminal only records a connection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Set

from .circuit import Circuit
from .elements import WIRE, Element, ElementRegistry
from .geometry import Position, snap_point
from .intersect2d import EPS, point_on_segment_interior, points_coincide, project_point_to_segment
from .mutator import GeometryMutator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitResult:
    removed_id: str
    created: tuple
    point: Position


class WireSplitter:
    """Split wires on contact.

    ``tolerance`` is the hit aura: a terminal strictly closer than this to a
    wire body touches it. ``candidates(x, y)`` narrows the wires to examine;
    by default every element in the circuit is checked.
    """

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        mutator: GeometryMutator,
        tolerance: float = 10.0,
        grid: float = 10.0,
        candidates: Optional[Callable[[float, float], Iterable[Element]]] = None,
    ):
        self.circuit = circuit
        self.registry = registry
        self.mutator = mutator
        self.tolerance = tolerance
        self.grid = grid
        self._candidates = candidates

    def _nearby(self, point: Position) -> List[Element]:
        if self._candidates is None:
            return list(self.circuit.elements)
        return list(self._candidates(point.x, point.y))

    def contact_point(self, point: Position, wire: Element) -> Optional[Position]:
        """Grid-snapped contact of ``point`` with the interior of ``wire``."""
        if len(wire.nodes) != 2:
            return None
        a, b = wire.nodes[0].as_tuple(), wire.nodes[1].as_tuple()
        proj, t = project_point_to_segment(point.as_tuple(), a, b)
        if t <= 0.0 or t >= 1.0:
            return None
        gap = point.distance_to(proj)
        if gap > EPS and gap >= self.tolerance:
            return None
        contact = snap_point(proj, self.grid)
        if not point_on_segment_interior(contact.as_tuple(), a, b, max(self.grid, EPS)):
            return None
        return contact

    # ------------------------------------------------------------------
    # Rewrites
    def split_wire(self, wire: Element, point: Position, reserved: Sequence[str] = ()) -> Optional[SplitResult]:
        """Replace ``wire`` by two wires meeting at ``point``."""
        if not self.circuit.has_element(wire):
            logger.debug("split_wire: %s is gone", wire.id)
            return None
        start, end = wire.nodes[0], wire.nodes[1]
        if points_coincide(point.as_tuple(), start.as_tuple()) or points_coincide(point.as_tuple(), end.as_tuple()):
            return None
        position = self.circuit.elements.index(wire)
        old_links = set(self.circuit.connections.get(wire.id, set()))
        self.circuit.delete_element(wire.id)
        # never hand the removed id straight back out
        taken = self.circuit.ids() + [wire.id] + list(reserved)
        first = self.registry.create(WIRE, [start, point], properties=wire.properties, taken=taken)
        second = self.registry.create(WIRE, [point, end], properties=wire.properties, taken=taken + [first.id])
        self.circuit.add_element(first, index=position)
        self.circuit.add_element(second, index=position + 1)
        self.circuit.connect(first.id, second.id)
        for linked_id in old_links:
            linked = self.circuit.get_element(linked_id)
            if linked is None:
                continue
            for half in (first, second):
                if _share_node(half, linked):
                    self.circuit.connect(half.id, linked.id)
        logger.debug("Split %s at (%s, %s) into %s and %s", wire.id, point.x, point.y, first.id, second.id)
        return SplitResult(wire.id, (first.id, second.id), point)

    def process(self, moving: Sequence[Element]) -> List[SplitResult]:
        """Run one move tick for the terminals of ``moving`` wires.

        Each wire is split at most once per tick, and wires created during
        the tick are not examined again until the next one.
        """
        results: List[SplitResult] = []
        moving_ids = {element.id for element in moving}
        touched: Set[str] = set()
        for element in moving:
            if element.type != WIRE or not self.circuit.has_element(element):
                continue
            for index in range(len(element.nodes)):
                terminal = element.nodes[index]
                for target in self._nearby(terminal):
                    if target.type != WIRE or target.id in moving_ids or target.id in touched:
                        continue
                    if not self.circuit.has_element(target):
                        continue
                    if any(points_coincide(terminal.as_tuple(), node.as_tuple()) for node in target.nodes):
                        self.circuit.connect(element.id, target.id, notify=False)
                        continue
                    contact = self.contact_point(terminal, target)
                    if contact is None:
                        continue
                    if contact != terminal:
                        self.mutator.set_node(element, index, contact)
                    result = self.split_wire(target, contact)
                    if result is None:
                        continue
                    touched.add(target.id)
                    touched.update(result.created)
                    for created_id in result.created:
                        self.circuit.connect(element.id, created_id, notify=False)
                    results.append(result)
                    break
        return results

    def split_at_foreign_nodes(self, wire: Element) -> List[SplitResult]:
        """Split ``wire`` wherever another element's terminal sits on its body."""
        results: List[SplitResult] = []
        pending = [wire]
        while pending:
            current = pending.pop()
            if not self.circuit.has_element(current):
                continue
            a, b = current.nodes[0].as_tuple(), current.nodes[1].as_tuple()
            for other in list(self.circuit.elements):
                if other is current:
                    continue
                hit = next(
                    (node for node in other.nodes if point_on_segment_interior(node.as_tuple(), a, b, EPS)),
                    None,
                )
                if hit is None:
                    continue
                result = self.split_wire(current, hit)
                if result is None:
                    continue
                results.append(result)
                for created_id in result.created:
                    created = self.circuit.get_element(created_id)
                    if created is None:
                        continue
                    if _share_node(created, other):
                        self.circuit.connect(created_id, other.id, notify=False)
                    pending.append(created)
                break
        return results


def _share_node(first: Element, second: Element) -> bool:
    return any(
        points_coincide(a.as_tuple(), b.as_tuple()) for a in first.get_nodes() for b in second.get_nodes()
    )
