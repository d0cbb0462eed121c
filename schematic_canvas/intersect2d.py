"""Segment projection helpers used by hit-testing and wire splitting."""
from __future__ import annotations

import math
from typing import Tuple

Point = Tuple[float, float]
EPS = 1e-9


def dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1])


def add(a: Point, b: Point) -> Point:
    return (a[0] + b[0], a[1] + b[1])


def mul(a: Point, s: float) -> Point:
    return (a[0] * s, a[1] * s)


def norm(a: Point) -> float:
    return math.hypot(a[0], a[1])


def project_point_to_segment(p: Point, a: Point, b: Point) -> Tuple[Point, float]:
    """Closest point on ``a``-``b`` to ``p`` and its clamped parameter ``t``."""
    ab = sub(b, a)
    ab2 = dot(ab, ab)
    if ab2 < EPS:
        return a, 0.0
    t = dot(sub(p, a), ab) / ab2
    t = max(0.0, min(1.0, t))
    return add(a, mul(ab, t)), t


def points_coincide(a: Point, b: Point, tol: float = EPS) -> bool:
    return norm(sub(a, b)) <= tol


def point_on_segment_interior(p: Point, a: Point, b: Point, tol: float) -> bool:
    """True when ``p`` lies within ``tol`` of ``a``-``b`` but on neither endpoint."""
    if points_coincide(p, a) or points_coincide(p, b):
        return False
    if norm(sub(b, a)) < EPS:
        return False
    proj, t = project_point_to_segment(p, a, b)
    if t <= 0.0 or t >= 1.0:
        return False
    return norm(sub(p, proj)) <= tol
