"""Polygon measurement and inner room outlines.

Metric properties are delegated to shapely. The signed area stays a plain
shoelace sum because face classification depends on its sign.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon
from shapely.ops import unary_union

from ..config import DEFAULT_TOL, POINT_EQUAL_TOLERANCE, Tolerances
from ..core.model import Point, Scene
from ..tracing import NULL_TRACE, TraceHook
from . import vector as vec
from .miter import WallCorners, compute_node_corners

if TYPE_CHECKING:
    from ..core.topology import HalfEdge

# Global parameters
MIN_POLYGON_VERTICES = 3


def signed_area(points: Sequence[Point]) -> float:
    """Shoelace signed area; positive for counter-clockwise vertex order."""
    total = 0.0
    count = len(points)
    for i in range(count):
        current = points[i]
        following = points[(i + 1) % count]
        total += current.x * following.y - following.x * current.y
    return total / 2


def to_shapely(points: Sequence[Point], holes: Sequence[Sequence[Point]] = ()) -> Polygon | None:
    """Convert vertices to a shapely Polygon, or None when degenerate."""
    if len(points) < MIN_POLYGON_VERTICES:
        return None
    rings = [[(p.x, p.y) for p in hole] for hole in holes if len(hole) >= MIN_POLYGON_VERTICES]
    return Polygon([(p.x, p.y) for p in points], rings)


def polygon_area(points: Sequence[Point], holes: Sequence[Sequence[Point]] = ()) -> float:
    polygon = to_shapely(points, holes)
    return polygon.area if polygon is not None else 0.0


def polygon_perimeter(points: Sequence[Point], holes: Sequence[Sequence[Point]] = ()) -> float:
    polygon = to_shapely(points, holes)
    return polygon.length if polygon is not None else 0.0


def polygon_centroid(points: Sequence[Point], holes: Sequence[Sequence[Point]] = ()) -> Point | None:
    """Area-weighted centroid, falling back to the vertex mean for zero-area outlines."""
    if not points:
        return None
    polygon = to_shapely(points, holes)
    if polygon is None or polygon.area == 0:
        return Point(sum(p.x for p in points) / len(points), sum(p.y for p in points) / len(points))
    centroid = polygon.centroid
    return Point(centroid.x, centroid.y)


def contains_point(points: Sequence[Point], point: Point, holes: Sequence[Sequence[Point]] = ()) -> bool:
    """Check whether ``point`` lies inside or on the boundary of a polygon."""
    polygon = to_shapely(points, holes)
    if polygon is None:
        return False
    return polygon.covers(ShapelyPoint(point.x, point.y))


def island_holes(
    points: Sequence[Point], footprints: Sequence[Sequence[Point]]
) -> tuple[tuple[Point, ...], ...]:
    """Outlines of free-standing wall groups that sit inside a room.

    Footprints are merged, and every merged shape lying inside the room
    polygon contributes its exterior ring as a hole. Shapes nested inside
    another hole are dropped, since the outer hole already removes them.

    Args:
        points: Inner polygon of the room.
        footprints: Outline polygons of walls not connected to the room.

    Returns:
        Hole rings in a stable order, without the closing vertex.
    """
    shell = to_shapely(points)
    shapes = [polygon for polygon in (to_shapely(footprint) for footprint in footprints) if polygon is not None]
    shapes = [shape if shape.is_valid else shape.buffer(0) for shape in shapes]
    if shell is None or not shapes:
        return ()

    merged = unary_union(shapes)
    parts = list(merged.geoms) if hasattr(merged, "geoms") else [merged]
    outlines = [Polygon(part.exterior) for part in parts if part.geom_type == "Polygon" and shell.contains(part)]
    kept = [
        outline
        for i, outline in enumerate(outlines)
        if not any(j != i and other.contains(outline) for j, other in enumerate(outlines))
    ]
    kept.sort(key=lambda outline: (outline.bounds[0], outline.bounds[1]))
    return tuple(tuple(Point(x, y) for x, y in outline.exterior.coords[:-1]) for outline in kept)


def _butt_point(scene: Scene, node_id: str, wall_id: str, side: str) -> Point:
    """Unmitered offset point of a wall at ``node_id``, sides taken away from the node."""
    wall = scene.wall(wall_id)
    origin = scene.node(node_id).position
    far = scene.node(wall.other_node(node_id)).position
    offset = vec.scale(vec.perp_ccw(vec.normalize(vec.sub(far, origin))), wall.thickness / 2)
    return vec.add(origin, offset) if side == "left" else vec.sub(origin, offset)


def inner_room_polygon(
    cycle: Sequence[HalfEdge],
    scene: Scene,
    tol: Tolerances = DEFAULT_TOL,
    trace: TraceHook = NULL_TRACE,
    corner_cache: dict[str, dict[str, WallCorners]] | None = None,
) -> tuple[Point, ...]:
    """Trace the thickness-aware interior outline of a face.

    The face lies to the left of every half-edge. At each vertex the
    incoming wall contributes its room-side corner (its right corner seen
    from the vertex) and the outgoing wall its left corner. Both points are
    emitted unless they coincide.

    Args:
        cycle: Half-edges of the face in traversal order.
        scene: Scene holding the walls referenced by the half-edges.
        tol: Numeric tolerances.
        trace: Hook receiving miter decisions.
        corner_cache: Optional per-call memo of node corners.

    Returns:
        Inner polygon vertices, counter-clockwise for interior faces.
    """
    if corner_cache is None:
        corner_cache = {}

    def corners(node_id: str, wall_id: str) -> WallCorners:
        if node_id not in corner_cache:
            corner_cache[node_id] = compute_node_corners(node_id, scene, tol, trace)
        return corner_cache[node_id].get(wall_id, WallCorners())

    points: list[Point] = []
    count = len(cycle)
    for i in range(count):
        incoming = cycle[i]
        outgoing = cycle[(i + 1) % count]
        vertex = incoming.target

        arriving = corners(vertex, incoming.wall_id).right
        leaving = corners(vertex, outgoing.wall_id).left
        p1 = arriving.point if arriving.resolved else _butt_point(scene, vertex, incoming.wall_id, "right")
        p2 = leaving.point if leaving.resolved else _butt_point(scene, vertex, outgoing.wall_id, "left")

        points.append(p1)
        if not vec.almost_equal(p1, p2, POINT_EQUAL_TOLERANCE):
            points.append(p2)

    return tuple(points)
