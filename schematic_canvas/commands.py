"""Discrete editing commands.

Every command offers ``execute()`` and ``undo()``. ``execute`` returns False
when there was nothing to do, which keeps it out of the history.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .circuit import Circuit
from .edit_ops import rotate_elements_nodes, translate_nodes
from .elements import Element, ElementRegistry
from .geometry import Position, normalize_angle
from .mutator import GeometryMutator
from .selection import SelectionModel
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class Command(Protocol):
    def execute(self) -> Optional[bool]: ...

    def undo(self) -> None: ...


class _CircuitCommand:
    """Remembers the circuit state before ``execute`` so ``undo`` can restore it."""

    def __init__(self, circuit: Circuit):
        self.circuit = circuit
        self._before: Optional[Snapshot] = None

    def _capture(self) -> None:
        self._before = self.circuit.export_state()

    def undo(self) -> None:
        if self._before is not None:
            self.circuit.import_state(self._before)


def _live_elements(circuit: Circuit, ids: Sequence[str]) -> List[Element]:
    found: List[Element] = []
    for element_id in ids or ():
        element = circuit.get_element(element_id)
        if element is None:
            logger.debug("Skipping stale element id %s", element_id)
            continue
        found.append(element)
    return found


def rotate_elements(
    circuit: Circuit, mutator: GeometryMutator, element_ids: Sequence[str], degrees: float, grid: float
) -> List[str]:
    """Rotate the live elements among ``element_ids`` and return their ids."""
    elements = _live_elements(circuit, element_ids)
    if not elements or not degrees:
        return []
    for element_id, nodes in rotate_elements_nodes(elements, degrees, grid).items():
        element = circuit.get_element(element_id)
        mutator.set_nodes(element, nodes)
        if "orientation" in element.properties:
            mutator.set_orientation(element, normalize_angle(element.get_orientation() + degrees))
    rotated = [element.id for element in elements]
    mutator.notify("rotateElements", elementIds=rotated, rotationAngleDegrees=degrees)
    return rotated


class RotateCommand(_CircuitCommand):
    def __init__(self, circuit: Circuit, mutator: GeometryMutator, element_ids: Sequence[str], degrees: float, grid: float = 10.0):
        super().__init__(circuit)
        self.mutator = mutator
        self.element_ids = list(element_ids or ())
        self.degrees = degrees
        self.grid = grid

    def execute(self) -> bool:
        self._capture()
        return bool(rotate_elements(self.circuit, self.mutator, self.element_ids, self.degrees, self.grid))


class AbsoluteRotateCommand(_CircuitCommand):
    """Turn one element to ``target`` degrees by rotating through the difference."""

    def __init__(self, circuit: Circuit, mutator: GeometryMutator, element_id: str, target: float, grid: float = 10.0):
        super().__init__(circuit)
        self.mutator = mutator
        self.element_id = element_id
        self.target = target
        self.grid = grid

    def execute(self) -> bool:
        element = self.circuit.get_element(self.element_id)
        if element is None:
            return False
        delta = normalize_angle(self.target) - element.get_orientation()
        self._capture()
        return bool(rotate_elements(self.circuit, self.mutator, [element.id], delta, self.grid))


class NudgeCommand(_CircuitCommand):
    def __init__(self, circuit: Circuit, mutator: GeometryMutator, element_ids: Sequence[str], dx: float, dy: float):
        super().__init__(circuit)
        self.mutator = mutator
        self.element_ids = list(element_ids or ())
        self.dx = dx
        self.dy = dy

    def execute(self) -> bool:
        elements = _live_elements(self.circuit, self.element_ids)
        if not elements:
            return False
        self._capture()
        for element in elements:
            self.mutator.set_nodes(element, translate_nodes(element.nodes, self.dx, self.dy))
        self.mutator.notify("moveElements", elementIds=[e.id for e in elements], dx=self.dx, dy=self.dy)
        return True


class DeleteSelectionCommand(_CircuitCommand):
    def __init__(self, circuit: Circuit, selection: SelectionModel):
        super().__init__(circuit)
        self.selection = selection

    def execute(self) -> bool:
        targets = self.selection.get_selected_elements()
        if not targets:
            return False
        self._capture()
        for element in targets:
            self.circuit.delete_element(element.id)
        self.selection.clear()
        return True


class DeleteAllCommand(_CircuitCommand):
    def __init__(self, circuit: Circuit, selection: SelectionModel):
        super().__init__(circuit)
        self.selection = selection

    def execute(self) -> bool:
        if not self.circuit.elements:
            return False
        self._capture()
        self.circuit.clear()
        self.selection.clear()
        return True


class UpdatePropertiesCommand(_CircuitCommand):
    """Apply new property values; an orientation change rotates the geometry."""

    def __init__(
        self,
        circuit: Circuit,
        mutator: GeometryMutator,
        element_id: str,
        properties: Mapping[str, Any],
        label: Optional[str] = None,
        grid: float = 10.0,
    ):
        super().__init__(circuit)
        self.mutator = mutator
        self.element_id = element_id
        self.properties = dict(properties or {})
        self.label = label
        self.grid = grid

    def execute(self) -> bool:
        element = self.circuit.get_element(self.element_id)
        if element is None or (not self.properties and self.label is None):
            return False
        self._capture()
        updates = dict(self.properties)
        orientation = updates.pop("orientation", None)
        if orientation is not None and "orientation" in element.properties:
            AbsoluteRotateCommand(self.circuit, self.mutator, element.id, float(orientation), self.grid).execute()
        element.properties.update(updates)
        if self.label is not None:
            element.label = self.label
        self.circuit.notify("updateElementProperties", elementId=element.id, newProperties=dict(self.properties))
        return True


class AddElementCommand(_CircuitCommand):
    def __init__(self, circuit: Circuit, element: Element):
        super().__init__(circuit)
        self.element = element

    def execute(self) -> bool:
        if self.circuit.get_element(self.element.id) is not None:
            return False
        self._capture()
        self.circuit.add_element(self.element)
        return True


class Clipboard:
    """Element records copied out of the circuit."""

    def __init__(self):
        self._records: List[Dict[str, Any]] = []

    def store(self, elements: Sequence[Element]) -> int:
        self._records = [element.to_record() for element in elements]
        return len(self._records)

    def replace(self, records: List[Dict[str, Any]]) -> None:
        self._records = records

    def records(self) -> List[Dict[str, Any]]:
        return [dict(record) for record in self._records]

    def __bool__(self) -> bool:
        return bool(self._records)


class CopyCommand:
    """Fill the clipboard from the selection; never recorded in history."""

    def __init__(self, selection: SelectionModel, clipboard: Clipboard):
        self.selection = selection
        self.clipboard = clipboard
        self.copied = 0

    def execute(self) -> bool:
        selected = self.selection.get_selected_elements()
        if not selected:
            return False
        self.copied = self.clipboard.store(selected)
        return False

    def undo(self) -> None:
        pass


class PasteCommand(_CircuitCommand):
    """Insert clipboard copies with fresh ids, shifted by ``offset``, and select them."""

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        clipboard: Clipboard,
        selection: SelectionModel,
        offset: float = 20.0,
    ):
        super().__init__(circuit)
        self.registry = registry
        self.clipboard = clipboard
        self.selection = selection
        self.offset = offset
        self.pasted: List[Element] = []

    def execute(self) -> bool:
        records = self.clipboard.records()
        if not records:
            return False
        self._capture()
        taken = self.circuit.ids()
        pasted: List[Element] = []
        for record in records:
            if record.get("type") not in self.registry:
                logger.debug("Skipping clipboard record of unknown type %s", record.get("type"))
                continue
            nodes = [Position.of(node).offset(self.offset, self.offset) for node in record.get("nodes", [])]
            element = self.registry.from_record(dict(record, nodes=[{"x": n.x, "y": n.y} for n in nodes]))
            element.id = self.registry.next_id(element.type, taken)
            taken.append(element.id)
            pasted.append(element)
        if not pasted:
            return False
        self.circuit.extend(pasted)
        self.selection.set_selection(pasted)
        # the next paste cascades from these copies
        self.clipboard.store(pasted)
        self.pasted = pasted
        return True


class SelectAllCommand:
    def __init__(self, circuit: Circuit, selection: SelectionModel):
        self.circuit = circuit
        self.selection = selection

    def execute(self) -> bool:
        self.selection.set_selection(self.circuit.elements)
        return False

    def undo(self) -> None:
        pass
