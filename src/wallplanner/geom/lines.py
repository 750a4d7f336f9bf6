"""Segment, line and ray intersection primitives."""

from __future__ import annotations

from typing import NamedTuple

from ..core.model import Point
from . import vector as vec

PARALLEL_EPSILON = 1e-9


class Segment(NamedTuple):
    start: Point
    end: Point


class Line(NamedTuple):
    point: Point
    direction: Point


def intersect_segments(seg1: Segment, seg2: Segment, epsilon: float = PARALLEL_EPSILON) -> Point | None:
    """Intersect two finite segments, endpoints included.

    Returns None when the segments are parallel or miss each other.
    """
    d1 = vec.sub(seg1.end, seg1.start)
    d2 = vec.sub(seg2.end, seg2.start)
    denominator = vec.cross(d1, d2)
    if abs(denominator) < epsilon:
        return None

    delta = vec.sub(seg2.start, seg1.start)
    t1 = vec.cross(delta, d2) / denominator
    t2 = vec.cross(delta, d1) / denominator
    if 0.0 <= t1 <= 1.0 and 0.0 <= t2 <= 1.0:
        return vec.add(seg1.start, vec.scale(d1, t1))
    return None


def intersect_lines(line1: Line, line2: Line, epsilon: float = PARALLEL_EPSILON) -> Point | None:
    """Intersect two infinite lines; None if parallel."""
    denominator = vec.cross(line1.direction, line2.direction)
    if abs(denominator) < epsilon:
        return None
    delta = vec.sub(line2.point, line1.point)
    t = vec.cross(delta, line2.direction) / denominator
    return vec.add(line1.point, vec.scale(line1.direction, t))


def project_point_to_segment(point: Point, a: Point, b: Point) -> tuple[Point, float]:
    """Project ``point`` onto segment ``ab``.

    Returns:
        The clamped projection and its parameter ``t`` in [0, 1].
    """
    ab = vec.sub(b, a)
    length_sq = vec.dot(ab, ab)
    if length_sq == 0:
        return a, 0.0
    t = vec.dot(vec.sub(point, a), ab) / length_sq
    t = max(0.0, min(1.0, t))
    return vec.add(a, vec.scale(ab, t)), t


def distance_to_line(point: Point, line: Line) -> float:
    """Perpendicular distance from ``point`` to an infinite line."""
    direction = vec.normalize(line.direction)
    to_point = vec.sub(point, line.point)
    along = vec.scale(direction, vec.dot(to_point, direction))
    return vec.distance(to_point, along)


def intersect_ray_segment(
    origin: Point, direction: Point, a: Point, b: Point, epsilon: float = PARALLEL_EPSILON
) -> Point | None:
    """Intersect the ray ``origin + t * direction`` (t >= 0) with segment ``ab``."""
    segment_dir = vec.sub(b, a)
    if vec.length(segment_dir) < epsilon:
        return None
    denominator = vec.cross(direction, segment_dir)
    if abs(denominator) < epsilon:
        return None

    delta = vec.sub(a, origin)
    t = vec.cross(delta, segment_dir) / denominator
    s = vec.cross(delta, direction) / denominator
    if t < 0 or s < 0 or s > 1:
        return None
    return vec.add(origin, vec.scale(direction, t))


def intersect_ray_axis(
    origin: Point, direction: Point, horizontal: bool, value: float, epsilon: float = PARALLEL_EPSILON
) -> Point | None:
    """Intersect a ray with the axis-aligned line ``y = value`` or ``x = value``."""
    if horizontal:
        if abs(direction.y) < epsilon:
            return None
        t = (value - origin.y) / direction.y
        if t < 0:
            return None
        return Point(origin.x + t * direction.x, value)

    if abs(direction.x) < epsilon:
        return None
    t = (value - origin.x) / direction.x
    if t < 0:
        return None
    return Point(value, origin.y + t * direction.y)
