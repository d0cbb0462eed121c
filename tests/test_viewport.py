import pytest

from schematic_canvas.geometry import Position
from schematic_canvas.viewport import Viewport


def test_round_trip_between_spaces():
    view = Viewport(800, 600, scale=1.5)
    view.pan_by(40, -25)
    screen = view.world_to_screen((120.0, 80.0))
    assert view.screen_to_world(screen) == Position(pytest.approx(120.0), pytest.approx(80.0))


def test_zoom_keeps_point_under_cursor():
    view = Viewport(800, 600, scale=1.5)
    before = view.screen_to_world((300, 200))
    assert view.zoom_at(1.1, 300, 200)
    after = view.screen_to_world((300, 200))
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)
    assert view.scale == pytest.approx(1.65)


def test_zoom_is_clamped():
    view = Viewport(800, 600, scale=1.5, min_scale=1.0, max_scale=3.0)
    for _ in range(50):
        view.zoom_in()
    assert view.scale == 3.0
    assert not view.zoom_in()
    for _ in range(50):
        view.zoom_out()
    assert view.scale == 1.0


def test_recenter_and_visible_rect():
    view = Viewport(800, 600, scale=2.0)
    assert not view.recenter([])
    assert view.recenter([(0, 0), (100, 50)])
    assert view.world_to_screen((50, 25)) == (400.0, 300.0)
    x0, y0, x1, y1 = view.visible_world_rect()
    assert (x1 - x0, y1 - y0) == (400.0, 300.0)


def test_reset():
    view = Viewport(scale=2.0)
    view.pan_by(10, 10)
    view.zoom_in()
    view.reset()
    assert (view.scale, view.offset_x, view.offset_y) == (2.0, 0.0, 0.0)
