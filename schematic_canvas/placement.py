"""Pointer-follow placement of newly created elements."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from .circuit import Circuit
from .commands import AddElementCommand
from .edit_ops import placement_nodes
from .elements import Element, ElementRegistry
from .geometry import Position, normalize_angle, snap_point
from .history import CommandHistory
from .mutator import GeometryMutator
from .selection import SelectionModel

logger = logging.getLogger(__name__)


class PlacementController:
    """Owns the element currently being placed.

    The element is added to the circuit (and history) as soon as placement
    begins; until committed it follows the pointer and stays out of the
    selection.
    """

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        selection: SelectionModel,
        history: CommandHistory,
        mutator: GeometryMutator,
        grid: float = 10.0,
        span: float = 50.0,
    ):
        self.circuit = circuit
        self.registry = registry
        self.selection = selection
        self.history = history
        self.mutator = mutator
        self.grid = grid
        self.span = span
        self._command: Optional[AddElementCommand] = None
        self._pointer: Tuple[float, float] = (0.0, 0.0)

    @property
    def element(self) -> Optional[Element]:
        return self.selection.placing

    @property
    def active(self) -> bool:
        return self.selection.is_placing

    def _layout(self, element: Element, x: float, y: float) -> list:
        node_count = len(element.nodes) or self.registry.get(element.type).node_count
        return placement_nodes(snap_point((x, y), self.grid), element.get_orientation(), node_count, self.span, self.grid)

    def begin(
        self, type_name: str, x: float, y: float, properties: Optional[Mapping[str, Any]] = None
    ) -> Element:
        if self.active:
            self.cancel()
        node_count = self.registry.get(type_name).node_count
        orientation = float((properties or {}).get("orientation", 0.0) or 0.0)
        nodes = placement_nodes(snap_point((x, y), self.grid), orientation, node_count, self.span, self.grid)
        element = self.registry.create(type_name, nodes, properties=properties, taken=self.circuit.ids())
        command = AddElementCommand(self.circuit, element)
        self.history.execute_command(command)
        self._command = command
        self._pointer = (x, y)
        self.selection.begin_placement(element)
        logger.debug("Placing %s", element.id)
        return element

    def move(self, x: float, y: float) -> bool:
        element = self.element
        if element is None:
            return False
        self._pointer = (x, y)
        self.mutator.set_nodes(element, self._layout(element, x, y))
        self.mutator.notify("movePreview", elementId=element.id)
        return True

    def rotate(self, degrees: float) -> bool:
        """Turn the placing element and lay it out again at the last pointer position."""
        element = self.element
        if element is None or "orientation" not in element.properties:
            return False
        self.mutator.set_orientation(element, normalize_angle(element.get_orientation() + degrees))
        self.mutator.set_nodes(element, self._layout(element, *self._pointer))
        self.mutator.notify("rotatePlacingElement", elementId=element.id)
        return True

    def commit(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[Element]:
        element = self.element
        if element is None:
            return None
        if x is not None and y is not None:
            self._pointer = (x, y)
            self.mutator.set_nodes(element, self._layout(element, x, y))
        self.selection.end_placement()
        self._command = None
        self.selection.select(element)
        self.mutator.notify("finalizePlacement", elementId=element.id)
        logger.info("Placed %s", element.id)
        return element

    def cancel(self) -> bool:
        element = self.selection.end_placement()
        if element is None:
            return False
        self.circuit.delete_element(element.id)
        if self._command is not None:
            self.history.forget(self._command)
        self._command = None
        self.selection.clear()
        logger.info("Cancelled placement of %s", element.id)
        return True

    def pointer(self) -> Position:
        return Position(*self._pointer)
