"""Interaction engine for a 2-D schematic editor."""

from .circuit import Circuit
from .elements import Element, ElementRegistry, ElementType, build_default_registry
from .engine import Button, InteractionEngine, KeyEvent, PointerEvent
from .geometry import Position, snap_point, snap_value
from .history import CommandHistory
from .settings import EngineSettings, load_settings
from .snapshot import Snapshot, has_state_changed

__all__ = [
    "Button",
    "Circuit",
    "CommandHistory",
    "Element",
    "ElementRegistry",
    "ElementType",
    "EngineSettings",
    "InteractionEngine",
    "KeyEvent",
    "PointerEvent",
    "Position",
    "Snapshot",
    "build_default_registry",
    "has_state_changed",
    "load_settings",
    "snap_point",
    "snap_value",
]

__version__ = "0.1.0"
