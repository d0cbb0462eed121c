"""Gesture commands driven through start/move/stop by the engine."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from .circuit import Circuit
from .edit_ops import constrain_to_axis, dominant_axis_point, lock_axis, translate_nodes
from .elements import WIRE, Element, ElementRegistry
from .geometry import Position, snap_point
from .mutator import GeometryMutator
from .wire_split import SplitResult, WireSplitter

logger = logging.getLogger(__name__)


class GestureCommand(Protocol):
    """What the engine drives between pointer-down and pointer-up."""

    def start(self, x: float, y: float) -> None: ...

    def move(self, x: float, y: float) -> None: ...

    def stop(self) -> bool: ...

    def cancel(self) -> None: ...

    def execute(self) -> bool: ...

    def undo(self) -> None: ...


class DragMode(str, Enum):
    NODE = "node"
    SHAPE = "shape"
    GROUP = "group"


class DragCommand:
    """Move an element, one of its terminals, or the whole selection.

    The sub-mode is fixed in :meth:`start`: a terminal grab on a node-draggable
    element drags that node with an axis lock, a grab on a selected element
    while several are selected drags the group, anything else drags the shape.
    """

    def __init__(
        self,
        mutator: GeometryMutator,
        target: Element,
        *,
        selection: Sequence[Element] = (),
        node_index: Optional[int] = None,
        grid: float = 10.0,
        splitter: Optional[WireSplitter] = None,
    ):
        self.mutator = mutator
        self.target = target
        self.grid = grid
        self.splitter = splitter
        in_selection = any(element is target for element in selection)
        if len(selection) > 1 and in_selection:
            self.mode = DragMode.GROUP
            self.elements: List[Element] = list(selection)
        elif node_index is not None and len(target.nodes) > 1:
            self.mode = DragMode.NODE
            self.elements = [target]
        else:
            self.mode = DragMode.SHAPE
            self.elements = [target]
        self.node_index = node_index if self.mode is DragMode.NODE else None
        self.axis: Optional[str] = None
        self.splits: List[SplitResult] = []
        self._originals: Dict[int, List[Position]] = {}
        self._final: Dict[int, List[Position]] = {}
        self._offset = (0.0, 0.0)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self, x: float, y: float) -> None:
        self._originals = {id(element): list(element.nodes) for element in self.elements}
        anchor = self.target.nodes[0]
        self._offset = (x - anchor.x, y - anchor.y)
        self.axis = None
        self._active = True

    def move(self, x: float, y: float) -> None:
        if not self._active:
            return
        if self.mode is DragMode.NODE:
            self._move_node(x, y)
        else:
            self._move_rigid(x, y)
        moved_wires = [element for element in self.elements if element.type == WIRE]
        if self.splitter is not None and moved_wires:
            self.splits.extend(self.splitter.process(moved_wires))
        self.mutator.notify("dragElement", elementIds=[element.id for element in self.elements], mode=self.mode.value)

    def _move_node(self, x: float, y: float) -> None:
        originals = self._originals[id(self.target)]
        if self.axis is None:
            self.axis = lock_axis(originals[0], originals[-1])
        position = constrain_to_axis(originals[self.node_index], (x, y), self.axis, self.grid)
        self.mutator.set_node(self.target, self.node_index, position)

    def _move_rigid(self, x: float, y: float) -> None:
        origin = self._originals[id(self.target)][0]
        new_anchor = snap_point((x - self._offset[0], y - self._offset[1]), self.grid)
        dx = new_anchor.x - origin.x
        dy = new_anchor.y - origin.y
        for element in self.elements:
            self.mutator.set_nodes(element, translate_nodes(self._originals[id(element)], dx, dy))

    def stop(self) -> bool:
        if not self._active:
            return False
        self._active = False
        if self.splitter is not None:
            for element in list(self.elements):
                if element.type == WIRE:
                    self.splits.extend(self.splitter.split_at_foreign_nodes(element))
        self._final = {id(element): list(element.nodes) for element in self.elements}
        return True

    def cancel(self) -> None:
        """Put every dragged element back where it started."""
        for element in self.elements:
            originals = self._originals.get(id(element))
            if originals is not None:
                self.mutator.set_nodes(element, originals)
        self._active = False
        self.axis = None

    def execute(self) -> bool:
        applied = False
        for element in self.elements:
            final = self._final.get(id(element))
            if final is not None:
                applied = self.mutator.set_nodes(element, final) or applied
        return applied

    def undo(self) -> None:
        self.cancel()


class DrawWireCommand:
    """Rubber-band a new wire from the pointer-down point."""

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        mutator: GeometryMutator,
        grid: float = 10.0,
        splitter: Optional[WireSplitter] = None,
    ):
        self.circuit = circuit
        self.registry = registry
        self.mutator = mutator
        self.grid = grid
        self.splitter = splitter
        self.wire: Optional[Element] = None
        self.splits: List[SplitResult] = []
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self, x: float, y: float) -> None:
        anchor = snap_point((x, y), self.grid)
        self.wire = self.registry.create(WIRE, [anchor, anchor], taken=self.circuit.ids())
        self.circuit.add_element(self.wire)
        self._active = True

    def move(self, x: float, y: float) -> None:
        if not self._active or self.wire is None:
            return
        end = dominant_axis_point(self.wire.nodes[0], (x, y), self.grid)
        if self.mutator.set_node(self.wire, 1, end):
            self.mutator.notify("drawWire", elementId=self.wire.id)

    def stop(self) -> bool:
        """Commit the wire; a zero-length wire is discarded."""
        if not self._active or self.wire is None:
            return False
        self._active = False
        start, end = self.wire.nodes
        if start == end:
            self.circuit.delete_element(self.wire.id)
            return False
        if self.splitter is not None:
            self.splits.extend(self.splitter.process([self.wire]))
            self.splits.extend(self.splitter.split_at_foreign_nodes(self.wire))
        return True

    def cancel(self) -> None:
        if self.wire is not None:
            self.circuit.delete_element(self.wire.id)
        self._active = False

    def execute(self) -> bool:
        if self.wire is None or self.circuit.has_element(self.wire):
            return False
        self.circuit.add_element(self.wire)
        return True

    def undo(self) -> None:
        self.cancel()
