import os
import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from schematic_canvas.circuit import Circuit  # noqa: E402
from schematic_canvas.elements import build_default_registry  # noqa: E402
from schematic_canvas.engine import InteractionEngine  # noqa: E402
from schematic_canvas.scheduling import RenderScheduler  # noqa: E402
from schematic_canvas.settings import EngineSettings  # noqa: E402


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000.0


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def circuit(registry):
    return Circuit(registry)


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(circuit, registry, settings, clock):
    frames = []
    deferred = []
    eng = InteractionEngine(
        circuit,
        registry,
        settings,
        scheduler=RenderScheduler(frames.append),
        hover_clock=clock,
        hover_schedule=lambda delay_ms, fn: deferred.append((delay_ms, fn)),
    )
    eng.requested_frames = frames
    eng.deferred_hover = deferred
    return eng


def add(circuit, registry, type_name, nodes, **properties):
    element = registry.create(type_name, nodes, properties=properties or None, taken=circuit.ids())
    circuit.add_element(element)
    return element
