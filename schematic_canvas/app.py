"""Application bootstrap for the schematic canvas."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QStatusBar, QToolBar

from .circuit import Circuit
from .elements import build_default_registry
from .logging_config import setup_logging
from .settings import EngineSettings, load_settings
from .widgets import SchematicCanvas

logger = logging.getLogger(__name__)

PALETTE = ("resistor", "capacitor", "inductor", "junction", "ground")


class Main(QMainWindow):
    """Top-level window wiring the canvas to a toolbar and status bar."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        super().__init__()
        self.setWindowTitle("Schematic Canvas")

        self.registry = build_default_registry()
        self.circuit = Circuit(self.registry)
        self.canvas = SchematicCanvas(self.circuit, self.registry, settings)
        self.engine = self.canvas.engine
        self.setCentralWidget(self.canvas)

        self._status_label = QLabel("Ready")
        status = QStatusBar(self)
        status.addPermanentWidget(self._status_label)
        self.setStatusBar(status)
        self.canvas.status_changed.connect(self._on_status)

        self._build_toolbar()

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Edit", self)
        self.addToolBar(toolbar)
        for type_name in PALETTE:
            action = QAction(type_name.capitalize(), self)
            action.triggered.connect(lambda _checked=False, name=type_name: self._place(name))
            toolbar.addAction(action)
        wire = QAction("Wire", self)
        wire.setCheckable(True)
        wire.triggered.connect(lambda _checked=False: self.engine.handle_action("drawWire"))
        toolbar.addAction(wire)
        self._wire_action = wire
        toolbar.addSeparator()
        for label, action_id, shortcut in (
            ("Undo", "undo", QKeySequence.Undo),
            ("Redo", "redo", QKeySequence.Redo),
            ("Rotate", "rotateRight", None),
            ("Delete", "deleteSelection", None),
            ("Recenter", "recenter", None),
        ):
            action = QAction(label, self)
            if shortcut is not None:
                action.setShortcut(shortcut)
            action.triggered.connect(lambda _checked=False, aid=action_id: self._trigger(aid))
            toolbar.addAction(action)

    def _place(self, type_name: str) -> None:  # pragma: no cover - GUI entry point
        self._wire_action.setChecked(False)
        self.engine.start_placement(type_name)
        self.canvas.setFocus()

    def _trigger(self, action_id: str) -> None:  # pragma: no cover - GUI entry point
        self.engine.handle_action(action_id)
        self._wire_action.setChecked(self.engine.draw_wire_mode)
        self.canvas.setFocus()

    def _on_status(self, status: dict) -> None:  # pragma: no cover - GUI entry point
        hovered = status.get("hovered") or "-"
        self._status_label.setText(
            f"selected: {status.get('selected', 0)}  hover: {hovered}  zoom: {status.get('zoom', 1.0):.2f}"
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Interactive schematic editor")
    parser.add_argument("--config", help="JSON file with engine settings")
    parser.add_argument("--log-file", help="also write logs to this file")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    args, qt_args = parser.parse_known_args(argv)

    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)
    settings = load_settings(args.config)

    app = QApplication([sys.argv[0], *qt_args])
    window = Main(settings)
    window.resize(1100, 760)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
