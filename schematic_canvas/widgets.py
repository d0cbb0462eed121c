"""Qt widget hosting the interaction engine."""
from __future__ import annotations

import math
from typing import Dict, Optional

from PySide6.QtCore import QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget

from .circuit import Circuit
from .elements import Element, ElementRegistry
from .engine import Button, InteractionEngine, KeyEvent, PointerEvent
from .geometry import Point
from .scheduling import RenderScheduler
from .settings import EngineSettings

_BUTTONS = {
    Qt.LeftButton: Button.LEFT,
    Qt.MiddleButton: Button.MIDDLE,
    Qt.RightButton: Button.RIGHT,
}

_KEYS: Dict[int, str] = {
    Qt.Key_Escape: "Escape",
    Qt.Key_Delete: "Delete",
    Qt.Key_Backspace: "Backspace",
    Qt.Key_Left: "ArrowLeft",
    Qt.Key_Right: "ArrowRight",
    Qt.Key_Up: "ArrowUp",
    Qt.Key_Down: "ArrowDown",
}


class SchematicCanvas(QWidget):
    """Drawing surface: translates Qt input for the engine and paints the circuit."""

    status_changed = Signal(dict)

    def __init__(
        self,
        circuit: Circuit,
        registry: ElementRegistry,
        settings: Optional[EngineSettings] = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setObjectName("SchematicCanvas")
        self.setMinimumSize(QSize(640, 480))
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)

        self.engine = InteractionEngine(circuit, registry, settings, scheduler=RenderScheduler(), render=self.update)
        self.engine.selection_changed.connect(self._emit_status)
        self.engine.hovered_changed.connect(lambda _element: self._emit_status())
        self._pan_origin: Optional[Point] = None

    @property
    def circuit(self) -> Circuit:
        return self.engine.circuit

    def _emit_status(self, *_args) -> None:
        hovered = self.engine.hovered
        self.status_changed.emit(
            {
                "selected": len(self.engine.get_selected_elements()),
                "hovered": hovered.id if hovered is not None else None,
                "zoom": round(self.engine.viewport.scale, 3),
                "undo": self.engine.history.can_undo(),
                "redo": self.engine.history.can_redo(),
            }
        )

    # ------------------------------------------------------------------
    # Event translation
    def _pointer(self, event) -> PointerEvent:
        world = self.engine.viewport.screen_to_world((event.position().x(), event.position().y()))
        modifiers = event.modifiers()
        return PointerEvent(
            world.x,
            world.y,
            _BUTTONS.get(event.button(), Button.LEFT),
            shift=bool(modifiers & Qt.ShiftModifier),
            ctrl=bool(modifiers & Qt.ControlModifier),
            alt=bool(modifiers & Qt.AltModifier),
        )

    def resizeEvent(self, event):  # pragma: no cover - GUI layout handling
        super().resizeEvent(event)
        self.engine.resize(self.width(), self.height())

    def wheelEvent(self, event):  # pragma: no cover - GUI entry point
        delta = event.angleDelta().y()
        if delta == 0:
            event.accept()
            return
        factor = self.engine.viewport.zoom_step if delta > 0 else 1.0 / self.engine.viewport.zoom_step
        self.engine.zoom_at(factor, event.position().x(), event.position().y())
        self._emit_status()
        event.accept()

    def mousePressEvent(self, event):  # pragma: no cover - GUI entry point
        if event.button() == Qt.MiddleButton:
            self._pan_origin = (event.position().x(), event.position().y())
            return
        self.engine.pointer_down(self._pointer(event))

    def mouseMoveEvent(self, event):  # pragma: no cover - GUI entry point
        if self._pan_origin is not None:
            current = (event.position().x(), event.position().y())
            self.engine.pan_by(current[0] - self._pan_origin[0], current[1] - self._pan_origin[1])
            self._pan_origin = current
            return
        self.engine.pointer_move(self._pointer(event))

    def mouseReleaseEvent(self, event):  # pragma: no cover - GUI entry point
        if event.button() == Qt.MiddleButton:
            self._pan_origin = None
            return
        self.engine.pointer_up(self._pointer(event))
        self._emit_status()

    def keyPressEvent(self, event):  # pragma: no cover - GUI entry point
        modifiers = event.modifiers()
        key = _KEYS.get(event.key())
        if key is None and Qt.Key_A <= event.key() <= Qt.Key_Z:
            # text() carries control characters while Ctrl is held
            key = chr(event.key()).lower()
        if key is None:
            key = event.text()
        handled = self.engine.key_press(
            KeyEvent(
                key,
                ctrl=bool(modifiers & Qt.ControlModifier),
                shift=bool(modifiers & Qt.ShiftModifier),
                alt=bool(modifiers & Qt.AltModifier),
            )
        )
        if handled:
            self._emit_status()
            event.accept()
            return
        super().keyPressEvent(event)

    # ------------------------------------------------------------------
    # Painting
    def paintEvent(self, event):  # pragma: no cover - GUI entry point
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor(250, 250, 250))
        self._draw_grid(painter)

        engine = self.engine
        placing = engine.selection.placing
        for element in engine.circuit.elements:
            color = QColor(30, 30, 30)
            width = 2
            if element is placing:
                color = QColor(200, 80, 80)
            elif engine.is_element_selected(element):
                color = QColor(50, 120, 215)
                width = 3
            elif element is engine.hovered:
                color = QColor(90, 160, 90)
            self._draw_element(painter, element, color, width)

        box = engine.selection_box
        if box is not None:
            x0, y0 = engine.viewport.world_to_screen((box[0], box[1]))
            x1, y1 = engine.viewport.world_to_screen((box[2], box[3]))
            pen = QPen(QColor(50, 120, 215), 1, Qt.DashLine)
            painter.setPen(pen)
            painter.setBrush(QColor(50, 120, 215, 40))
            painter.drawRect(QRectF(x0, y0, x1 - x0, y1 - y0))

    def _screen(self, node) -> QPointF:
        sx, sy = self.engine.viewport.world_to_screen(node)
        return QPointF(sx, sy)

    def _draw_element(self, painter: QPainter, element: Element, color: QColor, width: int) -> None:
        nodes = [self._screen(node) for node in element.get_nodes()]
        if not nodes:
            return
        painter.setPen(QPen(color, width))
        painter.setBrush(Qt.NoBrush)
        if len(nodes) == 1:
            self._draw_terminal_glyph(painter, element, nodes[0])
        elif element.is_wire:
            painter.drawPolyline(nodes)
        else:
            self._draw_two_terminal(painter, element, nodes[0], nodes[-1])
        painter.setBrush(color)
        radius = 2.5 if element.is_wire else 3.0
        for point in nodes:
            painter.drawEllipse(point, radius, radius)

    def _draw_two_terminal(self, painter: QPainter, element: Element, a: QPointF, b: QPointF) -> None:
        dx, dy = b.x() - a.x(), b.y() - a.y()
        length = math.hypot(dx, dy)
        if length <= 1e-6:
            return
        ux, uy = dx / length, dy / length
        nx, ny = -uy, ux
        body = length * 0.5
        lead = (length - body) / 2.0
        p0 = QPointF(a.x() + ux * lead, a.y() + uy * lead)
        p1 = QPointF(b.x() - ux * lead, b.y() - uy * lead)
        painter.drawLine(a, p0)
        painter.drawLine(p1, b)
        half = 0.12 * length
        if element.type == "capacitor":
            mid = QPointF((p0.x() + p1.x()) / 2.0, (p0.y() + p1.y()) / 2.0)
            gap = 0.06 * length
            for sign in (-1.0, 1.0):
                cx, cy = mid.x() + sign * ux * gap, mid.y() + sign * uy * gap
                painter.drawLine(QPointF(cx - nx * half, cy - ny * half), QPointF(cx + nx * half, cy + ny * half))
            painter.drawLine(p0, QPointF(mid.x() - ux * gap, mid.y() - uy * gap))
            painter.drawLine(QPointF(mid.x() + ux * gap, mid.y() + uy * gap), p1)
            return
        if element.type == "inductor":
            loops = 4
            step = body / loops
            for i in range(loops):
                cx = p0.x() + ux * step * (i + 0.5)
                cy = p0.y() + uy * step * (i + 0.5)
                painter.drawEllipse(QPointF(cx, cy), step / 2.0, step / 2.0)
            return
        # resistor and anything unknown: zigzag
        points = [p0]
        teeth = 6
        for i in range(1, teeth):
            t = i / teeth
            sign = 1.0 if i % 2 else -1.0
            points.append(
                QPointF(p0.x() + ux * body * t + nx * half * sign, p0.y() + uy * body * t + ny * half * sign)
            )
        points.append(p1)
        painter.drawPolyline(points)

    def _draw_terminal_glyph(self, painter: QPainter, element: Element, point: QPointF) -> None:
        scale = self.engine.viewport.scale
        if element.type == "ground":
            radians = math.radians(element.get_orientation() + 90.0)
            ux, uy = math.cos(radians), math.sin(radians)
            nx, ny = -uy, ux
            stem = 10.0 * scale
            base = QPointF(point.x() + ux * stem, point.y() + uy * stem)
            painter.drawLine(point, base)
            for i, half in enumerate((8.0, 5.0, 2.0)):
                off = i * 3.0 * scale
                cx, cy = base.x() + ux * off, base.y() + uy * off
                h = half * scale
                painter.drawLine(QPointF(cx - nx * h, cy - ny * h), QPointF(cx + nx * h, cy + ny * h))
            return
        painter.drawEllipse(point, 4.0, 4.0)

    def _draw_grid(self, painter: QPainter) -> None:
        g = float(self.engine.settings.grid_spacing)
        scale = self.engine.viewport.scale
        if g <= 0.0 or scale <= 0.0:
            return
        pen_minor = QPen(QColor(235, 235, 235), 1)
        pen_major = QPen(QColor(220, 220, 220), 1)
        pen_minor.setCosmetic(True)
        pen_major.setCosmetic(True)

        x0, y0, x1, y1 = self.engine.viewport.visible_world_rect()
        width = self.width()
        height = self.height()
        skip_minor = g * scale < 6.0

        for idx in range(int(math.floor(x0 / g)), int(math.ceil(x1 / g)) + 1):
            if skip_minor and idx % 5 != 0:
                continue
            screen_x, _ = self.engine.viewport.world_to_screen((idx * g, 0.0))
            painter.setPen(pen_major if idx % 5 == 0 else pen_minor)
            painter.drawLine(int(round(screen_x)), 0, int(round(screen_x)), height)

        for idx in range(int(math.floor(y0 / g)), int(math.ceil(y1 / g)) + 1):
            if skip_minor and idx % 5 != 0:
                continue
            _, screen_y = self.engine.viewport.world_to_screen((0.0, idx * g))
            painter.setPen(pen_major if idx % 5 == 0 else pen_minor)
            painter.drawLine(0, int(round(screen_y)), width, int(round(screen_y)))
