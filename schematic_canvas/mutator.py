"""The narrow mutation surface interaction commands write through."""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Sequence

from .circuit import Circuit
from .elements import Element
from .geometry import Position

logger = logging.getLogger(__name__)


class GeometryMutator(Protocol):
    def set_nodes(self, element: Element, nodes: Sequence[Position]) -> bool: ...

    def set_node(self, element: Element, index: int, position: Position) -> bool: ...

    def set_orientation(self, element: Element, degrees: float) -> bool: ...

    def notify(self, event_type: str, **payload) -> None: ...


class CircuitMutator:
    """Writes node and orientation changes into a :class:`Circuit`.

    Elements that are no longer part of the circuit are skipped. ``on_change``
    runs after every successful write (the engine uses it to mark the spatial
    index dirty).
    """

    def __init__(self, circuit: Circuit, on_change: Optional[Callable[[], None]] = None):
        self.circuit = circuit
        self.on_change = on_change

    def _live(self, element: Element) -> bool:
        if self.circuit.has_element(element):
            return True
        logger.debug("Skipping stale element %s", getattr(element, "id", element))
        return False

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def set_nodes(self, element: Element, nodes: Sequence[Position]) -> bool:
        if not self._live(element):
            return False
        element.nodes = list(nodes)
        self._changed()
        return True

    def set_node(self, element: Element, index: int, position: Position) -> bool:
        if not self._live(element) or not 0 <= index < len(element.nodes):
            return False
        element.nodes[index] = position
        self._changed()
        return True

    def set_orientation(self, element: Element, degrees: float) -> bool:
        if not self._live(element):
            return False
        element.set_orientation(degrees)
        self._changed()
        return True

    def notify(self, event_type: str, **payload) -> None:
        self.circuit.notify(event_type, **payload)
