"""Planar vector helpers operating on Point values."""

from __future__ import annotations

import math

from ..core.model import Point


def add(a: Point, b: Point) -> Point:
    return Point(a.x + b.x, a.y + b.y)


def sub(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def scale(v: Point, s: float) -> Point:
    return Point(v.x * s, v.y * s)


def dot(a: Point, b: Point) -> float:
    return a.x * b.x + a.y * b.y


def cross(a: Point, b: Point) -> float:
    """Z component of the 3D cross product."""
    return a.x * b.y - a.y * b.x


def length(v: Point) -> float:
    return math.hypot(v.x, v.y)


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def normalize(v: Point) -> Point:
    n = length(v)
    return Point(v.x / n, v.y / n) if n > 0 else Point(0.0, 0.0)


def perp_ccw(v: Point) -> Point:
    """Rotate 90 degrees counter-clockwise: (x, y) -> (-y, x)."""
    return Point(-v.y, v.x)


def midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def almost_equal(a: Point, b: Point, epsilon: float = 1e-6) -> bool:
    return abs(a.x - b.x) <= epsilon and abs(a.y - b.y) <= epsilon
