import pytest

from conftest import add

from schematic_canvas.engine import Button, KeyEvent, PointerEvent
from schematic_canvas.geometry import Position
from schematic_canvas.tools import DragCommand, DragMode


def drag(engine, start, *points, **modifiers):
    engine.pointer_down(PointerEvent(*start, **modifiers))
    for point in points:
        engine.pointer_move(PointerEvent(*point))
    engine.pointer_up(PointerEvent(*(points[-1] if points else start)))


# ----------------------------------------------------------------------
# Dragging
def test_horizontal_wire_node_drag_keeps_its_row(engine, circuit, registry):
    wire = add(circuit, registry, "wire", [(200, 200), (240, 200)])
    drag(engine, (200, 200), (200, 220), (200, 240))
    assert wire.nodes == [Position(200, 200), Position(240, 200)]
    assert not engine.history.can_undo()


def test_node_drag_follows_free_axis(engine, circuit, registry):
    wire = add(circuit, registry, "wire", [(200, 200), (240, 200)])
    drag(engine, (240, 200), (263, 217))
    assert wire.nodes[1] == Position(260, 200)
    assert engine.undo()
    assert circuit.get_element(wire.id).nodes[1] == Position(240, 200)


def test_shape_drag_snaps_the_anchor(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    drag(engine, (125, 102), (140, 115), (157, 131))
    assert resistor.nodes == [Position(130, 130), Position(180, 130)]
    assert engine.get_selected_elements() == [resistor]
    assert engine.undo()
    assert circuit.get_element(resistor.id).nodes[0] == Position(100, 100)


def test_components_never_drag_single_terminals(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.pointer_down(PointerEvent(100, 100))
    command = engine.active_command
    assert isinstance(command, DragCommand)
    assert command.mode is DragMode.SHAPE
    engine.pointer_up(PointerEvent(100, 100))
    assert engine.active_command is None


def test_group_drag_preserves_relative_offsets(engine, circuit, registry):
    first = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    second = add(circuit, registry, "capacitor", [(100, 200), (150, 200)])
    engine.select_all()
    engine.pointer_down(PointerEvent(125, 100))
    assert engine.active_command.mode is DragMode.GROUP
    engine.pointer_move(PointerEvent(145, 130))
    engine.pointer_up(PointerEvent(145, 130))
    assert first.nodes[0] == Position(120, 130)
    assert second.nodes[0] == Position(120, 230)
    assert second.nodes[0].y - first.nodes[0].y == 100
    assert engine.history.undo_depth == 1


def test_jitter_click_restores_state(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(104, 100), (154, 100)])
    before = circuit.export_state()
    engine.pointer_down(PointerEvent(120, 100))
    engine.pointer_move(PointerEvent(121, 100))
    engine.pointer_up(PointerEvent(121, 100))
    assert circuit.export_state() == before
    assert resistor.nodes[0] == Position(104, 100)
    assert not engine.history.can_undo()
    assert engine.get_selected_elements() == [resistor]


def test_second_gesture_is_ignored(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    add(circuit, registry, "resistor", [(300, 100), (350, 100)])
    engine.pointer_down(PointerEvent(125, 100))
    first = engine.active_command
    engine.pointer_down(PointerEvent(325, 100))
    assert engine.active_command is first
    assert not engine.undo()


def test_escape_cancels_a_drag(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.pointer_down(PointerEvent(125, 100))
    engine.pointer_move(PointerEvent(185, 140))
    assert resistor.nodes[0] == Position(160, 140)
    assert engine.key_press(KeyEvent("Escape"))
    assert engine.active_command is None
    assert circuit.get_element(resistor.id).nodes[0] == Position(100, 100)
    assert not engine.history.can_undo()


# ----------------------------------------------------------------------
# Selection
def test_modifier_clicks_toggle_and_extend(engine, circuit, registry):
    first = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    second = add(circuit, registry, "resistor", [(300, 100), (350, 100)])
    drag(engine, (125, 100))
    drag(engine, (325, 100), shift=True)
    assert engine.get_selected_elements() == [first, second]
    drag(engine, (125, 100), ctrl=True)
    assert engine.get_selected_elements() == [second]
    assert engine.is_element_selected(second.id)


def test_selection_box_picks_fully_enclosed_elements(engine, circuit, registry):
    inside = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    add(circuit, registry, "wire", [(180, 120), (260, 120)])
    seen = []
    engine.selection_changed.connect(seen.append)

    engine.pointer_down(PointerEvent(50, 50))
    engine.pointer_move(PointerEvent(200, 150))
    assert engine.selection_box == (50, 50, 200, 150)
    engine.pointer_up(PointerEvent(200, 150))

    assert engine.selection_box is None
    assert engine.get_selected_elements() == [inside]
    assert seen == [[inside.id]]


def test_click_on_empty_canvas_clears_selection(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    drag(engine, (400, 400))
    assert engine.get_selected_elements() == []


def test_hover_is_throttled(engine, circuit, registry, clock):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    hovered = []
    engine.hovered_changed.connect(hovered.append)

    engine.pointer_move(PointerEvent(400, 400))
    engine.pointer_move(PointerEvent(125, 100))
    assert hovered == []
    assert len(engine.deferred_hover) == 1

    clock.advance(20)
    delay, fire = engine.deferred_hover[-1]
    fire()
    assert hovered == [resistor]
    assert engine.hovered is resistor


# ----------------------------------------------------------------------
# Placement
def test_placement_follows_pointer_and_commits(engine, circuit):
    element = engine.start_placement("resistor", 100, 100)
    assert element.nodes == [Position(80, 100), Position(130, 100)]
    assert engine.get_selected_elements() == []

    engine.pointer_move(PointerEvent(200, 200))
    assert element.nodes == [Position(180, 200), Position(230, 200)]
    engine.rotate_selection(90)
    assert element.get_orientation() == 90
    assert element.nodes == [Position(200, 180), Position(200, 230)]

    engine.pointer_down(PointerEvent(300, 300))
    assert element.nodes == [Position(300, 280), Position(300, 330)]
    assert engine.get_selected_elements() == [element]
    assert not engine.placement.active

    assert engine.undo()
    assert len(circuit) == 0


def test_escape_cancels_placement_without_history(engine, circuit):
    engine.start_placement("capacitor", 100, 100)
    assert engine.key_press(KeyEvent("Escape"))
    assert len(circuit) == 0
    assert not engine.history.can_undo()


def test_placement_clears_an_existing_selection(engine, circuit, registry):
    add(circuit, registry, "resistor", [(300, 300), (350, 300)])
    add(circuit, registry, "capacitor", [(300, 400), (350, 400)])
    seen = []
    engine.selection_changed.connect(seen.append)
    engine.select_all()
    assert len(engine.get_selected_elements()) == 2

    element = engine.start_placement("resistor", 100, 100)
    assert engine.get_selected_elements() == []
    assert not engine.is_element_selected(element)
    assert seen == [["R1", "C1"], []]
    engine.rotate_selection(90)
    assert circuit.get_element("R1").get_orientation() == 0


def test_placing_element_is_never_selected(engine, circuit, registry):
    add(circuit, registry, "resistor", [(300, 300), (350, 300)])
    element = engine.start_placement("inductor", 100, 100)
    engine.select_all()
    assert element not in engine.get_selected_elements()


# ----------------------------------------------------------------------
# Drawing wires
def test_draw_wire_mode(engine, circuit):
    assert engine.key_press(KeyEvent("w"))
    assert engine.draw_wire_mode
    drag(engine, (101, 99), (130, 104), (152, 106))
    (wire,) = circuit.elements
    assert wire.nodes == [Position(100, 100), Position(150, 100)]
    assert engine.undo()
    assert len(circuit) == 0


def test_zero_length_wire_is_discarded(engine, circuit):
    engine.toggle_draw_wire()
    drag(engine, (100, 100))
    assert len(circuit) == 0
    assert not engine.history.can_undo()


def test_drawn_wire_splits_the_wire_it_ends_on(engine, circuit, registry):
    add(circuit, registry, "wire", [(100, 200), (200, 200)])
    engine.toggle_draw_wire()
    drag(engine, (150, 100), (150, 150), (150, 198))
    assert len(circuit) == 3
    spans = sorted((w.nodes[0].x, w.nodes[1].x) for w in circuit.elements if w.nodes[0].y == w.nodes[1].y)
    assert spans == [(100, 150), (150, 200)]


# ----------------------------------------------------------------------
# Keyboard
def test_undo_redo_keys(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    assert engine.key_press(KeyEvent("ArrowRight"))
    assert resistor.nodes[0] == Position(110, 100)
    assert engine.key_press(KeyEvent("z", ctrl=True))
    assert circuit.get_element(resistor.id).nodes[0] == Position(100, 100)
    assert engine.key_press(KeyEvent("Z", ctrl=True, shift=True))
    assert circuit.get_element(resistor.id).nodes[0] == Position(110, 100)


def test_ctrl_arrow_rotates(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    engine.key_press(KeyEvent("ArrowLeft", ctrl=True))
    assert resistor.get_orientation() == 270
    assert resistor.nodes[1] == Position(100, 50)


def test_delete_and_clipboard_keys(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    engine.key_press(KeyEvent("c", ctrl=True))
    engine.key_press(KeyEvent("v", ctrl=True))
    assert circuit.ids() == ["R1", "R2"]
    assert engine.get_selected_elements() == [circuit.get_element("R2")]
    engine.key_press(KeyEvent("Delete"))
    assert circuit.ids() == [resistor.id]


@pytest.mark.parametrize(
    "event, action",
    [
        (KeyEvent("Escape"), "cancel"),
        (KeyEvent("Backspace"), "deleteSelection"),
        (KeyEvent("ArrowUp"), "nudgeUp"),
        (KeyEvent("ArrowDown", ctrl=True), "rotateDown"),
        (KeyEvent("y", ctrl=True), "redo"),
        (KeyEvent("a", ctrl=True), "selectAll"),
        (KeyEvent("r"), "rotateElement"),
        (KeyEvent("q"), None),
    ],
)
def test_key_map(engine, event, action):
    assert engine.action_for_key(event) == action


def test_unknown_action_is_reported(engine, caplog):
    assert not engine.handle_action("launchRocket")
    assert "launchRocket" in caplog.text


# ----------------------------------------------------------------------
# Programmatic API
def test_rotate_element_to_absolute_orientation(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    assert engine.rotate_element(resistor.id, 180)
    assert resistor.get_orientation() == 180
    assert resistor.nodes[1] == Position(50, 100)


def test_update_properties_via_engine(engine, circuit, registry):
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    assert engine.update_element_properties(resistor.id, {"resistance": 220.0})
    assert resistor.properties["resistance"] == 220.0
    assert engine.undo()
    assert circuit.get_element(resistor.id).properties["resistance"] == 1000.0


def test_undo_restore_rebinds_selection(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    engine.nudge_selection(1, 0)
    engine.undo()
    (selected,) = engine.get_selected_elements()
    assert selected is circuit.get_element("R1")


# ----------------------------------------------------------------------
# Rendering and viewport
def test_render_requests_coalesce(engine, circuit, registry):
    renders = []
    engine.set_render_callback(lambda: renders.append(True))
    resistor = add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.select_all()
    for _ in range(5):
        engine.nudge_selection(1, 0)
    assert len(engine.requested_frames) == 1
    engine.scheduler.flush()
    assert renders == [True]
    assert resistor.nodes[0] == Position(150, 100)


def test_zoom_keeps_world_point_under_cursor(engine):
    anchor = engine.viewport.screen_to_world((200, 150))
    assert engine.zoom_at(1.1, 200, 150)
    after = engine.viewport.screen_to_world((200, 150))
    assert after.x == pytest.approx(anchor.x)
    assert after.y == pytest.approx(anchor.y)


def test_right_button_does_not_start_gestures(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    engine.pointer_down(PointerEvent(125, 100, button=Button.RIGHT))
    assert engine.active_command is None


def test_copy_reports_whether_anything_was_copied(engine, circuit, registry):
    add(circuit, registry, "resistor", [(100, 100), (150, 100)])
    assert not engine.copy()
    engine.select_all()
    assert engine.copy()
    engine.deselect_all()
    assert not engine.copy()
    assert engine.clipboard
