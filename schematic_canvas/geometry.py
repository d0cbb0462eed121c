"""Geometry primitives for the schematic canvas.

Everything here works in logical (document) units. Positions are immutable
values; snapping and rotation always return new positions.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from .intersect2d import project_point_to_segment

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Position:
    """A point in logical coordinates."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y)[index]

    def __len__(self) -> int:
        return 2

    def as_tuple(self) -> Point:
        return (self.x, self.y)

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def distance_to(self, other: Sequence[float]) -> float:
        return math.hypot(self.x - float(other[0]), self.y - float(other[1]))

    @classmethod
    def of(cls, value) -> "Position":
        if isinstance(value, Position):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]))
        return cls(float(value[0]), float(value[1]))


def snap_value(value: float, spacing: float) -> float:
    """Round ``value`` to the nearest multiple of ``spacing``."""
    if spacing <= 0:
        return float(value)
    # half-up, so a span centred between grid points keeps its length
    return float(math.floor(value / spacing + 0.5) * spacing)


def snap_point(point: Sequence[float], spacing: float) -> Position:
    return Position(snap_value(float(point[0]), spacing), snap_value(float(point[1]), spacing))


def normalize_angle(degrees: float) -> float:
    """Map ``degrees`` onto [0, 360)."""
    value = math.fmod(float(degrees), 360.0)
    if value < 0:
        value += 360.0
    if value >= 360.0:
        value = 0.0
    # fmod keeps the sign, so -360 would give -0.0
    return value + 0.0


_QUARTER_TURNS = {0: (1, 0), 1: (0, 1), 2: (-1, 0), 3: (0, -1)}


def rotation_terms(degrees: float) -> Tuple[float, float]:
    """Return ``(cos, sin)`` for ``degrees``.

    Multiples of 90 degrees yield exact integers so repeated quarter turns
    never accumulate floating drift.
    """
    if float(degrees).is_integer() and int(degrees) % 90 == 0:
        return _QUARTER_TURNS[(int(degrees) // 90) % 4]
    radians = math.radians(degrees)
    return math.cos(radians), math.sin(radians)


def rotate_point(point: Sequence[float], pivot: Sequence[float], degrees: float) -> Position:
    """Rotate ``point`` about ``pivot`` (y axis pointing down, as on screen)."""
    cos_a, sin_a = rotation_terms(degrees)
    dx = float(point[0]) - float(pivot[0])
    dy = float(point[1]) - float(pivot[1])
    return Position(
        float(pivot[0]) + dx * cos_a - dy * sin_a,
        float(pivot[1]) + dx * sin_a + dy * cos_a,
    )


def point_to_segment_distance(point: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    """Perpendicular distance to the segment ``a``-``b``; point distance when degenerate."""
    proj, _ = project_point_to_segment(
        (float(point[0]), float(point[1])),
        (float(a[0]), float(a[1])),
        (float(b[0]), float(b[1])),
    )
    return math.hypot(float(point[0]) - proj[0], float(point[1]) - proj[1])


def point_to_polyline_distance(point: Sequence[float], polyline: np.ndarray) -> float:
    """Compute the minimum distance from ``point`` to the given ``polyline``."""
    if polyline.shape[0] == 0:
        return float("inf")
    if polyline.shape[0] == 1:
        return float(np.hypot(point[0] - polyline[0, 0], point[1] - polyline[0, 1]))
    seg_vec = polyline[1:] - polyline[:-1]
    seg_len_sq = np.sum(seg_vec ** 2, axis=1)
    to_point = np.asarray(tuple(point), dtype=float) - polyline[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.sum(to_point * seg_vec, axis=1) / seg_len_sq
    # zero-length segments produce nan, clamp them onto their start point
    t = np.nan_to_num(t, nan=0.0)
    t = np.clip(t, 0.0, 1.0)
    projection = polyline[:-1] + seg_vec * t[:, None]
    dist = np.hypot(point[0] - projection[:, 0], point[1] - projection[:, 1])
    return float(np.min(dist))


def as_array(points: Iterable[Sequence[float]]) -> np.ndarray:
    return np.asarray([(float(p[0]), float(p[1])) for p in points], dtype=float).reshape(-1, 2)


def bounding_box_of(points: Iterable[Sequence[float]], pad: float = 0.0) -> Optional[Rect]:
    """Return ``(x0, y0, x1, y1)`` enclosing ``points`` or ``None`` if empty."""
    arr = as_array(points)
    if arr.shape[0] == 0:
        return None
    x0, y0 = arr.min(axis=0)
    x1, y1 = arr.max(axis=0)
    return (float(x0) - pad, float(y0) - pad, float(x1) + pad, float(y1) + pad)


def rect_center(rect: Rect) -> Position:
    return Position((rect[0] + rect[2]) / 2.0, (rect[1] + rect[3]) / 2.0)


def rect_contains(rect: Rect, point: Sequence[float]) -> bool:
    return rect[0] <= point[0] <= rect[2] and rect[1] <= point[1] <= rect[3]


def normalize_rect(a: Sequence[float], b: Sequence[float]) -> Rect:
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))
