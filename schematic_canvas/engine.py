"""Interaction engine: turns pointer and key input into circuit edits.

Input arrives already converted to logical coordinates. The engine resolves
targets through the spatial index and hit-tester, drives at most one gesture
command at a time, records finished gestures in the command history and
coalesces redraws through the render scheduler.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from PySide6.QtCore import QObject, Signal

from .circuit import Circuit
from .commands import (
    AbsoluteRotateCommand,
    Command,
    Clipboard,
    CopyCommand,
    DeleteAllCommand,
    DeleteSelectionCommand,
    NudgeCommand,
    PasteCommand,
    RotateCommand,
    SelectAllCommand,
    UpdatePropertiesCommand,
)
from .elements import Element, ElementRegistry
from .geometry import Rect, normalize_rect, rect_contains
from .history import CommandHistory
from .hit_test import HitTester
from .mutator import CircuitMutator
from .placement import PlacementController
from .scheduling import RenderScheduler, Throttle
from .selection import SelectionModel
from .settings import EngineSettings
from .snapshot import Snapshot, has_state_changed
from .spatial_index import AdaptiveSpatialIndex, BoundingBox
from .tools import DragCommand, DrawWireCommand, GestureCommand
from .viewport import Viewport
from .wire_split import WireSplitter

logger = logging.getLogger(__name__)


class Button(IntEnum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


@dataclass(frozen=True)
class PointerEvent:
    x: float
    y: float
    button: Button = Button.LEFT
    shift: bool = False
    ctrl: bool = False
    alt: bool = False


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False


ROTATIONS = {"rotateRight": 90, "rotateLeft": -90, "rotateUp": 180, "rotateDown": 180, "rotateElement": 90}
NUDGES = {"nudgeRight": (1, 0), "nudgeLeft": (-1, 0), "nudgeUp": (0, -1), "nudgeDown": (0, 1)}
ARROWS = {"ArrowRight": "Right", "ArrowLeft": "Left", "ArrowUp": "Up", "ArrowDown": "Down"}


class InteractionEngine(QObject):
    """Entry point for hosts.

    Signals:
        changed: every circuit mutation event (a dict with a ``type`` key).
        selection_changed: list of selected element ids, fired on change.
        hovered_changed: the element under the pointer, or ``None``.
    """

    changed = Signal(object)
    selection_changed = Signal(object)
    hovered_changed = Signal(object)

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        settings: Optional[EngineSettings] = None,
        *,
        viewport: Optional[Viewport] = None,
        scheduler: Optional[RenderScheduler] = None,
        render: Optional[Callable[[], None]] = None,
        hover_clock: Optional[Callable[[], float]] = None,
        hover_schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.circuit = circuit
        self.registry = registry
        self.settings = settings or EngineSettings()
        s = self.settings
        self.viewport = viewport or Viewport(
            scale=s.zoom_initial, min_scale=s.zoom_min, max_scale=s.zoom_max, zoom_step=s.zoom_step
        )
        self.index = AdaptiveSpatialIndex(
            BoundingBox(*self.viewport.visible_world_rect()),
            padding=s.hit_aura,
            max_items=s.index_max_items,
            max_depth=s.index_max_depth,
            source=lambda: self.circuit.elements,
        )
        self.index.update_viewport(*self.viewport.as_tuple())
        self.hit_tester = HitTester(self.index, aura=s.hit_aura, node_proximity=s.node_proximity)
        self.selection = SelectionModel(circuit)
        self.mutator = CircuitMutator(circuit, on_change=self.index.mark_dirty)
        self.history = CommandHistory(circuit, limit=s.history_limit)
        self.splitter = WireSplitter(
            circuit,
            registry,
            self.mutator,
            tolerance=s.hit_aura,
            grid=s.grid_spacing,
            candidates=self.index.find_elements_at_point,
        )
        self.placement = PlacementController(
            circuit, registry, self.selection, self.history, self.mutator, grid=s.grid_spacing, span=s.component_span
        )
        self.clipboard = Clipboard()
        self.scheduler = scheduler or RenderScheduler()
        self._render = render
        throttle_kwargs: Dict[str, Any] = {}
        if hover_clock is not None:
            throttle_kwargs["clock"] = hover_clock
        if hover_schedule is not None:
            throttle_kwargs["schedule"] = hover_schedule
        self._hover = Throttle(self._update_hover, s.hover_interval_ms, **throttle_kwargs)

        self.hovered: Optional[Element] = None
        self.draw_wire_mode = False
        self._active: Optional[GestureCommand] = None
        self._before: Optional[Snapshot] = None
        self._press: Optional[Tuple[float, float]] = None
        self._has_dragged = False
        self._box_origin: Optional[Tuple[float, float]] = None
        self._box_current: Optional[Tuple[float, float]] = None
        self._box_modifiers = (False, False)
        self._last_pointer: Tuple[float, float] = (0.0, 0.0)
        self._last_selection: List[str] = []

        self._actions: Dict[str, Callable[[], bool]] = {
            "undo": self.undo,
            "redo": self.redo,
            "copy": self.copy,
            "paste": self.paste,
            "selectAll": self.select_all,
            "deselectAll": self.deselect_all,
            "deleteSelection": self.delete_selection,
            "deleteAll": self.delete_all,
            "drawWire": self.toggle_draw_wire,
            "zoomIn": self.zoom_in,
            "zoomOut": self.zoom_out,
            "recenter": self.recenter,
            "cancel": self.escape,
        }
        for name, degrees in ROTATIONS.items():
            self._actions[name] = lambda degrees=degrees: self.rotate_selection(degrees)
        for name, (sx, sy) in NUDGES.items():
            self._actions[name] = lambda sx=sx, sy=sy: self.nudge_selection(sx, sy)

        circuit.updated.connect(self._on_circuit_updated)

    # ------------------------------------------------------------------
    # Notifications and rendering
    def set_render_callback(self, render: Optional[Callable[[], None]]) -> None:
        self._render = render

    def request_render(self) -> None:
        self.scheduler.schedule(self._render_frame)

    def _render_frame(self) -> None:
        if self._render is not None:
            self._render()

    def _on_circuit_updated(self, event: dict) -> None:
        self.index.mark_dirty()
        if event.get("type") == "restoredFromSnapshot":
            self.selection.rebind()
            if self.hovered is not None and not self.circuit.has_element(self.hovered):
                self.hovered = None
                self.hovered_changed.emit(None)
        self.changed.emit(event)
        self._sync_selection()
        self.request_render()

    def _sync_selection(self) -> None:
        current = self.selection.selected_ids()
        if current != self._last_selection:
            self._last_selection = current
            self.selection_changed.emit(list(current))
            self.request_render()

    # ------------------------------------------------------------------
    # Query surface
    def get_selected_elements(self) -> List[Element]:
        return self.selection.get_selected_elements()

    def is_element_selected(self, element) -> bool:
        return self.selection.is_element_selected(element)

    @property
    def active_command(self):
        return self._active

    @property
    def selection_box(self) -> Optional[Rect]:
        if self._box_origin is None or self._box_current is None:
            return None
        return normalize_rect(self._box_origin, self._box_current)

    def element_at(self, x: float, y: float) -> Optional[Element]:
        return self.hit_tester.hit_test(x, y)

    # ------------------------------------------------------------------
    # Pointer input
    def pointer_down(self, event: PointerEvent) -> None:
        x, y = event.x, event.y
        self._last_pointer = (x, y)
        if self.placement.active:
            if event.button == Button.LEFT:
                self.placement.commit(x, y)
                self.circuit.rebuild_connections()
                self._sync_selection()
            return
        if self._active is not None or event.button != Button.LEFT:
            return
        self._press = (x, y)
        self._has_dragged = False
        self._hover.cancel()

        if self.draw_wire_mode:
            self._begin(DrawWireCommand(self.circuit, self.registry, self.mutator, self.settings.grid_spacing, self.splitter), x, y)
            return

        target = self.hit_tester.hit_test(x, y)
        if target is None:
            self._box_origin = (x, y)
            self._box_current = (x, y)
            self._box_modifiers = (event.shift, event.ctrl)
            return

        if event.ctrl or event.shift:
            self.selection.apply([target], additive=event.shift, toggle=event.ctrl)
            self._sync_selection()
            if not self.selection.is_element_selected(target):
                return
        elif not (self.selection.is_element_selected(target) and len(self.selection) > 1):
            self.selection.select(target)
            self._sync_selection()

        node_index = None
        if self.registry.get(target.type).allows_node_drag:
            node_index = self.hit_tester.find_node(target, x, y)
        command = DragCommand(
            self.mutator,
            target,
            selection=self.selection.get_selected_elements(),
            node_index=node_index,
            grid=self.settings.grid_spacing,
            splitter=self.splitter,
        )
        self._begin(command, x, y)

    def _begin(self, command: GestureCommand, x: float, y: float) -> None:
        self._before = self.circuit.export_state()
        self._active = command
        command.start(x, y)

    def pointer_move(self, event: PointerEvent) -> None:
        x, y = event.x, event.y
        self._last_pointer = (x, y)
        if self.placement.active:
            self.placement.move(x, y)
            return
        if self._press is not None and not self._has_dragged:
            if math.hypot(x - self._press[0], y - self._press[1]) > self.settings.jitter_threshold:
                self._has_dragged = True
        if self._active is not None:
            self._active.move(x, y)
            return
        if self._box_origin is not None:
            self._box_current = (x, y)
            self.request_render()
            return
        self._hover(x, y)

    def pointer_up(self, event: PointerEvent) -> None:
        self._last_pointer = (event.x, event.y)
        if self._box_origin is not None:
            self._finish_selection_box(event.x, event.y)
            return
        command = self._active
        if command is None:
            self._press = None
            return
        before = self._before
        self._active = None
        self._before = None
        self._press = None
        if not self._has_dragged:
            # a click, not a drag
            self._abort(command, before)
            return
        stopped = command.stop()
        # connectivity follows coincident terminals
        self.circuit.rebuild_connections()
        if stopped:
            self.history.record(command, before)
        self._sync_selection()
        self.request_render()

    def _abort(self, command: GestureCommand, before: Optional[Snapshot]) -> None:
        command.cancel()
        if before is not None and has_state_changed(before, self.circuit.export_state()):
            self.circuit.import_state(before)
        self.circuit.rebuild_connections()
        self._sync_selection()
        self.request_render()

    def _finish_selection_box(self, x: float, y: float) -> None:
        origin = self._box_origin
        additive, toggle = self._box_modifiers
        self._box_origin = None
        self._box_current = None
        self._press = None
        if self._has_dragged:
            rect = normalize_rect(origin, (x, y))
            hits = [
                element
                for element in self.index.find_elements_in_range(BoundingBox(*rect))
                if element.get_nodes() and all(rect_contains(rect, node) for node in element.get_nodes())
            ]
            self.selection.apply(hits, additive=additive or toggle, toggle=toggle)
        elif not additive and not toggle:
            self.selection.clear()
        self._sync_selection()
        self.request_render()

    def _update_hover(self, x: float, y: float) -> None:
        element = self.hit_tester.hit_test(x, y)
        if element is self.hovered:
            return
        self.hovered = element
        self.hovered_changed.emit(element)
        self.request_render()

    # ------------------------------------------------------------------
    # Keyboard input
    def key_press(self, event: KeyEvent) -> bool:
        action = self.action_for_key(event)
        if action is None:
            return False
        self.handle_action(action)
        return True

    @staticmethod
    def action_for_key(event: KeyEvent) -> Optional[str]:
        key = event.key
        lowered = key.lower() if len(key) == 1 else key
        if key == "Escape":
            return "cancel"
        if key in ("Delete", "Backspace"):
            return "deleteSelection"
        if key in ARROWS:
            return ("rotate" if event.ctrl else "nudge") + ARROWS[key]
        if event.ctrl:
            if lowered == "z":
                return "redo" if event.shift else "undo"
            return {"y": "redo", "c": "copy", "v": "paste", "a": "selectAll"}.get(lowered)
        if lowered == "w":
            return "drawWire"
        if lowered == "r":
            return "rotateElement"
        return None

    def handle_action(self, action_id: str) -> bool:
        action = self._actions.get(action_id)
        if action is None:
            logger.warning("Unknown action %r", action_id)
            return False
        return bool(action())

    # ------------------------------------------------------------------
    # Actions
    def _run(self, command: Command) -> bool:
        recorded = self.history.execute_command(command)
        if recorded:
            self.circuit.rebuild_connections()
        self._sync_selection()
        self.request_render()
        return recorded

    def undo(self) -> bool:
        if self._active is not None:
            return False
        done = self.history.undo()
        self._sync_selection()
        return done

    def redo(self) -> bool:
        if self._active is not None:
            return False
        done = self.history.redo()
        self._sync_selection()
        return done

    def escape(self) -> bool:
        if self.placement.cancel():
            self._sync_selection()
            return True
        if self._active is not None:
            command, before = self._active, self._before
            self._active = None
            self._before = None
            self._press = None
            self._abort(command, before)
            return True
        if self._box_origin is not None:
            self._box_origin = None
            self._box_current = None
            self._press = None
            self.request_render()
            return True
        if self.draw_wire_mode:
            self.draw_wire_mode = False
            return True
        return self.deselect_all()

    def rotate_selection(self, degrees: float) -> bool:
        if self.placement.active:
            return self.placement.rotate(degrees)
        ids = self.selection.selected_ids()
        return self._run(RotateCommand(self.circuit, self.mutator, ids, degrees, self.settings.grid_spacing))

    def rotate_elements(self, element_ids: Sequence[str], degrees: float) -> bool:
        return self._run(RotateCommand(self.circuit, self.mutator, element_ids, degrees, self.settings.grid_spacing))

    def rotate_element(self, element_id: str, target_orientation: float) -> bool:
        return self._run(
            AbsoluteRotateCommand(self.circuit, self.mutator, element_id, target_orientation, self.settings.grid_spacing)
        )

    def nudge_selection(self, steps_x: int, steps_y: int) -> bool:
        grid = self.settings.grid_spacing
        ids = self.selection.selected_ids()
        return self._run(NudgeCommand(self.circuit, self.mutator, ids, steps_x * grid, steps_y * grid))

    def delete_selection(self) -> bool:
        return self._run(DeleteSelectionCommand(self.circuit, self.selection))

    def delete_all(self) -> bool:
        return self._run(DeleteAllCommand(self.circuit, self.selection))

    def update_element_properties(
        self, element_id: str, properties: Mapping[str, Any], label: Optional[str] = None
    ) -> bool:
        return self._run(
            UpdatePropertiesCommand(self.circuit, self.mutator, element_id, properties, label, self.settings.grid_spacing)
        )

    def copy(self) -> bool:
        command = CopyCommand(self.selection, self.clipboard)
        command.execute()
        return command.copied > 0

    def paste(self) -> bool:
        return self._run(PasteCommand(self.circuit, self.registry, self.clipboard, self.selection, self.settings.paste_offset))

    def select_all(self) -> bool:
        SelectAllCommand(self.circuit, self.selection).execute()
        self._sync_selection()
        return True

    def deselect_all(self) -> bool:
        changed = self.selection.clear()
        self._sync_selection()
        return changed

    def toggle_draw_wire(self) -> bool:
        if self.placement.active or self._active is not None:
            return False
        self.draw_wire_mode = not self.draw_wire_mode
        self.request_render()
        return True

    def start_placement(
        self,
        type_name: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Element]:
        """Create an element of ``type_name`` that follows the pointer until committed."""
        if self._active is not None:
            return None
        self.draw_wire_mode = False
        px, py = self._last_pointer if x is None or y is None else (x, y)
        element = self.placement.begin(type_name, px, py, properties)
        self._sync_selection()
        return element

    # ------------------------------------------------------------------
    # Viewport
    def _viewport_changed(self) -> bool:
        self.index.update_viewport(*self.viewport.as_tuple())
        self.request_render()
        return True

    def zoom_at(self, factor: float, screen_x: float, screen_y: float) -> bool:
        return self.viewport.zoom_at(factor, screen_x, screen_y) and self._viewport_changed()

    def zoom_in(self) -> bool:
        return self.viewport.zoom_in() and self._viewport_changed()

    def zoom_out(self) -> bool:
        return self.viewport.zoom_out() and self._viewport_changed()

    def pan_by(self, dx: float, dy: float) -> bool:
        self.viewport.pan_by(dx, dy)
        return self._viewport_changed()

    def resize(self, width: float, height: float) -> bool:
        self.viewport.resize(width, height)
        return self._viewport_changed()

    def recenter(self) -> bool:
        points = [node for element in self.circuit.elements for node in element.get_nodes()]
        return self.viewport.recenter(points) and self._viewport_changed()
