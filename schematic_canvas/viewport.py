"""Pan/zoom transform between screen pixels and logical coordinates."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from .geometry import Point, Position, Rect, bounding_box_of, rect_center


class Viewport:
    """``screen = logical * scale + offset``; the offset is in screen pixels."""

    def __init__(
        self,
        width: float = 800.0,
        height: float = 600.0,
        scale: float = 1.5,
        min_scale: float = 1.0,
        max_scale: float = 3.0,
        zoom_step: float = 1.1,
    ):
        self.width = float(width)
        self.height = float(height)
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.zoom_step = zoom_step
        self.initial_scale = max(min_scale, min(max_scale, scale))
        self.scale = self.initial_scale
        self.offset_x = 0.0
        self.offset_y = 0.0

    # ------------------------------------------------------------------
    # Transforms
    def world_to_screen(self, point: Sequence[float]) -> Point:
        return (float(point[0]) * self.scale + self.offset_x, float(point[1]) * self.scale + self.offset_y)

    def screen_to_world(self, point: Sequence[float]) -> Position:
        return Position((float(point[0]) - self.offset_x) / self.scale, (float(point[1]) - self.offset_y) / self.scale)

    def visible_world_rect(self) -> Rect:
        top_left = self.screen_to_world((0.0, 0.0))
        bottom_right = self.screen_to_world((self.width, self.height))
        return (top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        """Arguments for ``AdaptiveSpatialIndex.update_viewport``."""
        return (self.offset_x, self.offset_y, self.scale, self.width, self.height)

    # ------------------------------------------------------------------
    # Zoom and pan
    def _apply_zoom(self, target_scale: float, pivot_screen: Optional[Sequence[float]]) -> bool:
        target_scale = max(self.min_scale, min(self.max_scale, target_scale))
        if abs(target_scale - self.scale) <= 1e-9:
            return False
        if pivot_screen is None:
            pivot_screen = (self.width / 2.0, self.height / 2.0)
        pivot_world = self.screen_to_world(pivot_screen)
        self.scale = target_scale
        # keep the logical point under the pivot fixed on screen
        self.offset_x = float(pivot_screen[0]) - pivot_world.x * target_scale
        self.offset_y = float(pivot_screen[1]) - pivot_world.y * target_scale
        return True

    def zoom_at(self, factor: float, screen_x: float, screen_y: float) -> bool:
        return self._apply_zoom(self.scale * factor, (screen_x, screen_y))

    def zoom_in(self) -> bool:
        return self._apply_zoom(self.scale * self.zoom_step, None)

    def zoom_out(self) -> bool:
        return self._apply_zoom(self.scale / self.zoom_step, None)

    def pan_by(self, dx: float, dy: float) -> None:
        self.offset_x += dx
        self.offset_y += dy

    def resize(self, width: float, height: float) -> None:
        self.width = max(1.0, float(width))
        self.height = max(1.0, float(height))

    def recenter(self, points: Iterable[Sequence[float]]) -> bool:
        """Move the centre of ``points`` to the centre of the viewport."""
        box = bounding_box_of(points)
        if box is None:
            return False
        center = rect_center(box)
        self.offset_x = self.width / 2.0 - center.x * self.scale
        self.offset_y = self.height / 2.0 - center.y * self.scale
        return True

    def reset(self) -> None:
        self.scale = self.initial_scale
        self.offset_x = 0.0
        self.offset_y = 0.0
