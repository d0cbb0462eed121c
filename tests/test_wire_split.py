from conftest import add

from schematic_canvas.engine import PointerEvent
from schematic_canvas.geometry import Position
from schematic_canvas.mutator import CircuitMutator
from schematic_canvas.wire_split import WireSplitter


def _wires(circuit):
    return [element for element in circuit.elements if element.is_wire]


def test_dragging_a_terminal_onto_a_wire_splits_it(engine, circuit, registry):
    target = add(circuit, registry, "wire", [(180, 200), (260, 200)])
    mover = add(circuit, registry, "wire", [(220, 100), (220, 150)])
    before = circuit.export_state()

    engine.pointer_down(PointerEvent(220, 150))
    engine.pointer_move(PointerEvent(220, 170))
    engine.pointer_move(PointerEvent(220, 200))
    engine.pointer_up(PointerEvent(220, 200))

    wires = _wires(circuit)
    assert len(wires) == 3
    assert circuit.get_element(target.id) is None
    assert mover.nodes[1] == Position(220, 200)
    halves = [wire for wire in wires if wire is not mover]
    assert sorted(tuple(w.nodes[0]) + tuple(w.nodes[1]) for w in halves) == [
        (180, 200, 220, 200),
        (220, 200, 260, 200),
    ]
    assert target.id not in [wire.id for wire in halves]
    for half in halves:
        assert mover.id in circuit.connections[half.id]

    assert engine.undo()
    assert circuit.export_state() == before
    assert circuit.get_element(target.id).nodes == [Position(180, 200), Position(260, 200)]


def test_parallel_track_one_grid_away_is_left_alone(engine, circuit, registry):
    add(circuit, registry, "wire", [(180, 200), (260, 200)])
    mover = add(circuit, registry, "wire", [(220, 100), (220, 150)])

    engine.pointer_down(PointerEvent(220, 150))
    engine.pointer_move(PointerEvent(220, 190))
    engine.pointer_up(PointerEvent(220, 190))

    assert len(_wires(circuit)) == 2
    assert mover.nodes[1] == Position(220, 190)


def test_endpoint_contact_only_connects(circuit, registry):
    target = add(circuit, registry, "wire", [(0, 0), (40, 0)])
    mover = add(circuit, registry, "wire", [(40, 0), (40, 40)])
    splitter = WireSplitter(circuit, registry, CircuitMutator(circuit))
    assert splitter.process([mover]) == []
    assert circuit.get_element(target.id) is target
    assert target.id in circuit.connections[mover.id]


def test_split_wire_keeps_render_slot_and_links(circuit, registry):
    first = add(circuit, registry, "wire", [(0, 0), (100, 0)])
    resistor = add(circuit, registry, "resistor", [(100, 0), (150, 0)])
    circuit.connect(first.id, resistor.id)
    splitter = WireSplitter(circuit, registry, CircuitMutator(circuit))

    result = splitter.split_wire(first, Position(50, 0))
    assert result.removed_id == "W1"
    assert result.created == ("W2", "W3")
    assert circuit.ids() == ["W2", "W3", resistor.id]
    assert circuit.connections["W2"] == {"W3"}
    assert circuit.connections["W3"] == {"W2", resistor.id}
    assert splitter.split_wire(circuit.get_element("W2"), Position(0, 0)) is None


def test_new_wire_is_split_where_terminals_sit_on_it(circuit, registry):
    add(circuit, registry, "junction", [(50, 0)])
    add(circuit, registry, "resistor", [(80, 0), (80, 50)])
    wire = add(circuit, registry, "wire", [(0, 0), (100, 0)])
    splitter = WireSplitter(circuit, registry, CircuitMutator(circuit))

    results = splitter.split_at_foreign_nodes(wire)
    assert len(results) == 2
    spans = sorted((w.nodes[0].x, w.nodes[1].x) for w in _wires(circuit))
    assert spans == [(0, 50), (50, 80), (80, 100)]


def test_contact_point_requires_interior(circuit, registry):
    wire = add(circuit, registry, "wire", [(0, 0), (100, 0)])
    splitter = WireSplitter(circuit, registry, CircuitMutator(circuit), tolerance=10, grid=10)
    assert splitter.contact_point(Position(48, 4), wire) == Position(50, 0)
    assert splitter.contact_point(Position(50, 10), wire) is None
    assert splitter.contact_point(Position(-5, 0), wire) is None


def _links(circuit):
    return {element_id: set(linked) for element_id, linked in circuit.connections.items()}


def test_connections_match_restored_state_after_leaving_contact(engine, circuit, registry):
    add(circuit, registry, "wire", [(180, 200), (260, 200)])
    mover = add(circuit, registry, "wire", [(220, 100), (220, 150)])

    engine.pointer_down(PointerEvent(220, 150))
    engine.pointer_move(PointerEvent(220, 170))
    engine.pointer_move(PointerEvent(220, 200))
    engine.pointer_move(PointerEvent(220, 160))
    engine.pointer_move(PointerEvent(220, 150))
    engine.pointer_up(PointerEvent(220, 150))

    assert len(_wires(circuit)) == 3
    live = _links(circuit)
    assert live[mover.id] == set()
    halves = [wire.id for wire in _wires(circuit) if wire.id != mover.id]
    assert live[halves[0]] == {halves[1]}

    assert engine.undo()
    assert engine.redo()
    assert _links(circuit) == live


def test_nudging_away_drops_stale_links(engine, circuit, registry):
    first = add(circuit, registry, "wire", [(0, 0), (40, 0)])
    second = add(circuit, registry, "wire", [(40, 0), (40, 40)])
    circuit.connect(first.id, second.id)
    engine.selection.select(second)
    assert engine.nudge_selection(1, 0)
    assert circuit.connections[first.id] == set()
    assert circuit.connections[second.id] == set()
