"""Point snapping for interactive edits.

Given a pointer position in scene units, every snap strategy proposes
candidates and the strongest one wins. Strength is a pair ``(tier, kind)``:
the kind order is fixed by :class:`SnapKind`, and candidates lying on an
angle-constrained ray are lifted into a separate tier rather than having
their priority bumped by an offset.

    NODE > GUIDELINE_INTERSECTION > MIDPOINT > EDGE > GRID > GUIDELINE > ANGLE

Ties go to the candidate closest to the pointer on screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import IntEnum
from itertools import combinations

from ..config import (
    ANGLE_INCREMENT_DEG,
    DEFAULT_PIXELS_PER_UNIT,
    DEFAULT_TOL,
    EDGE_SNAP_MARGIN,
    GRID_SPACING,
    GUIDELINE_INTERSECTION_TOLERANCE,
    GUIDELINE_TOLERANCE,
    MIN_ANGLE_RAY_LENGTH,
    ON_ANGLE_RAY_TOLERANCE,
    SAME_POSITION_TOLERANCE,
    Tolerances,
)
from ..core.model import Point, Scene
from ..geom import vector as vec
from ..geom.lines import Line, distance_to_line, intersect_ray_segment, project_point_to_segment
from ..tracing import NULL_TRACE, TraceHook
from .guides import Guideline, GuidelineAxis, find_closest_guideline, generate_node_guidelines


class SnapKind(IntEnum):
    """Snap strategies, weakest first."""

    ANGLE = 1
    GUIDELINE = 2
    GRID = 3
    EDGE = 4
    MIDPOINT = 5
    GUIDELINE_INTERSECTION = 6
    NODE = 7


class SnapTier(IntEnum):
    FREE = 0
    ANGLE = 1


@dataclass(frozen=True)
class SnapCandidate:
    """A proposed position for a dragged point.

    Attributes:
        point: Snapped position in scene units.
        kind: Strategy that produced the candidate.
        distance_px: Screen distance from the pointer.
        tier: ANGLE when the candidate lies on the angle-constrained ray.
        entity_id: Node, wall or guideline node(s) the candidate came from.
        guidelines: Guidelines involved in a guideline snap.
    """

    point: Point
    kind: SnapKind
    distance_px: float
    tier: SnapTier = SnapTier.FREE
    entity_id: str | None = None
    guidelines: tuple[Guideline, ...] = ()

    @property
    def priority(self) -> tuple[int, int]:
        return (int(self.tier), int(self.kind))


@dataclass(frozen=True)
class SnapResult:
    snapped: bool
    point: Point
    candidate: SnapCandidate | None = None


@dataclass(frozen=True)
class SnapOptions:
    """Which strategies run, and the context they need.

    Attributes:
        snap_to_grid: Propose the nearest grid point.
        snap_to_nodes: Propose nearby nodes.
        snap_to_edges: Propose wall projections and wall midpoints.
        snap_to_angles: Constrain to 15 degree rays from ``angle_origin``.
        snap_to_guidelines: Propose node alignment guidelines and their crossings.
        angle_origin: Ray origin for angle snapping.
        guideline_origin: Point whose own X/Y guidelines are suppressed.
        exclude_node_ids: Nodes that are never snap targets.
        pixels_per_unit: View scale used to convert the pixel snap radius.
        tol: Numeric tolerances.
    """

    snap_to_grid: bool = True
    snap_to_nodes: bool = True
    snap_to_edges: bool = True
    snap_to_angles: bool = False
    snap_to_guidelines: bool = False
    angle_origin: Point | None = None
    guideline_origin: Point | None = None
    exclude_node_ids: frozenset[str] = frozenset()
    pixels_per_unit: float = DEFAULT_PIXELS_PER_UNIT
    tol: Tolerances = DEFAULT_TOL

    @property
    def snap_radius(self) -> float:
        """Snap radius in scene units."""
        return self.tol.snap_px / self.pixels_per_unit


def _rank(candidate: SnapCandidate) -> tuple[int, int, float, str, float, float]:
    # Exact ties fall back to the source entity, so record order never decides.
    return (
        -candidate.tier,
        -candidate.kind,
        candidate.distance_px,
        candidate.entity_id or "",
        candidate.point.x,
        candidate.point.y,
    )


def _grid_point(point: Point) -> Point:
    # Half-way values round up, not to even.
    return Point(
        math.floor(point.x / GRID_SPACING + 0.5) * GRID_SPACING,
        math.floor(point.y / GRID_SPACING + 0.5) * GRID_SPACING,
    )


def _guideline_candidates(cursor: Point, guidelines: list[Guideline], ppu: float) -> list[SnapCandidate]:
    candidates = []
    horizontals = [g for g in guidelines if g.axis is GuidelineAxis.HORIZONTAL]
    verticals = [g for g in guidelines if g.axis is GuidelineAxis.VERTICAL]
    for horizontal in horizontals:
        for vertical in verticals:
            point = horizontal.crossing(vertical)
            distance = vec.distance(cursor, point)
            if distance <= GUIDELINE_INTERSECTION_TOLERANCE:
                candidates.append(
                    SnapCandidate(
                        point,
                        SnapKind.GUIDELINE_INTERSECTION,
                        distance * ppu,
                        entity_id=f"{horizontal.node_id}-{vertical.node_id}",
                        guidelines=(horizontal, vertical),
                    )
                )

    closest = find_closest_guideline(cursor, guidelines, GUIDELINE_TOLERANCE)
    if closest is not None:
        guideline, point = closest
        candidates.append(
            SnapCandidate(
                point,
                SnapKind.GUIDELINE,
                vec.distance(cursor, point) * ppu,
                entity_id=guideline.node_id,
                guidelines=(guideline,),
            )
        )
    return candidates


def _free_candidates(cursor: Point, scene: Scene, options: SnapOptions) -> list[SnapCandidate]:
    """Every candidate within reach of the pointer, ignoring angle constraints."""
    ppu = options.pixels_per_unit
    radius = options.snap_radius
    candidates = []

    if options.snap_to_guidelines:
        guidelines = generate_node_guidelines(scene, options.exclude_node_ids, options.guideline_origin)
        candidates.extend(_guideline_candidates(cursor, guidelines, ppu))

    if options.snap_to_grid:
        point = _grid_point(cursor)
        distance = vec.distance(cursor, point)
        if distance <= radius:
            candidates.append(SnapCandidate(point, SnapKind.GRID, distance * ppu))

    if options.snap_to_edges:
        for wall in scene.walls.values():
            if wall.node_a not in scene.nodes or wall.node_b not in scene.nodes:
                continue
            a, b = scene.endpoints(wall)

            point, t = project_point_to_segment(cursor, a, b)
            distance = vec.distance(cursor, point)
            if distance <= radius and EDGE_SNAP_MARGIN < t < 1 - EDGE_SNAP_MARGIN:
                candidates.append(SnapCandidate(point, SnapKind.EDGE, distance * ppu, entity_id=wall.id))

            middle = vec.midpoint(a, b)
            distance = vec.distance(cursor, middle)
            if distance <= radius:
                candidates.append(SnapCandidate(middle, SnapKind.MIDPOINT, distance * ppu, entity_id=wall.id))

    if options.snap_to_nodes:
        for node in scene.nodes.values():
            if node.id in options.exclude_node_ids:
                continue
            distance = vec.distance(cursor, node.position)
            if distance <= radius:
                candidates.append(SnapCandidate(node.position, SnapKind.NODE, distance * ppu, entity_id=node.id))

    return candidates


def _angle_direction(cursor: Point, origin: Point) -> Point | None:
    """Unit direction of the pointer from ``origin``, rounded to the angle increment."""
    delta = vec.sub(cursor, origin)
    if vec.length(delta) < MIN_ANGLE_RAY_LENGTH:
        return None
    increment = math.radians(ANGLE_INCREMENT_DEG)
    angle = round(math.atan2(delta.y, delta.x) / increment) * increment
    return Point(math.cos(angle), math.sin(angle))


def _angle_candidates(
    cursor: Point, scene: Scene, options: SnapOptions, direction: Point, free: list[SnapCandidate]
) -> list[SnapCandidate]:
    """Candidates on the angle-constrained ray, strongest first.

    A horizontal and a vertical guideline crossing the ray at the same point
    win outright. Otherwise candidates are kept only where they meet the ray
    (edges are moved to their crossing with it), and the plain constrained
    pointer is the fallback.
    """
    origin = options.angle_origin
    ppu = options.pixels_per_unit
    on_ray: list[SnapCandidate] = []

    if options.snap_to_guidelines:
        hits = []
        for guideline in generate_node_guidelines(scene, options.exclude_node_ids, options.guideline_origin):
            point = guideline.intersect_ray(origin, direction)
            if point is not None and guideline.distance_to(cursor) <= GUIDELINE_TOLERANCE:
                hits.append((guideline, point))

        crossings = []
        for (first, p1), (second, p2) in combinations(hits, 2):
            if first.axis is second.axis or vec.distance(p1, p2) >= SAME_POSITION_TOLERANCE:
                continue
            horizontal, vertical = (first, second) if first.axis is GuidelineAxis.HORIZONTAL else (second, first)
            crossings.append(
                SnapCandidate(
                    p1,
                    SnapKind.GUIDELINE_INTERSECTION,
                    vec.distance(cursor, p1) * ppu,
                    tier=SnapTier.ANGLE,
                    entity_id=f"{horizontal.node_id}-{vertical.node_id}",
                    guidelines=(horizontal, vertical),
                )
            )
        if crossings:
            return [min(crossings, key=_rank)]

        if hits:
            guideline, point = min(hits, key=lambda hit: (vec.distance(cursor, hit[1]), hit[0].node_id))
            on_ray.append(
                SnapCandidate(
                    point,
                    SnapKind.GUIDELINE,
                    vec.distance(cursor, point) * ppu,
                    tier=SnapTier.ANGLE,
                    entity_id=guideline.node_id,
                    guidelines=(guideline,),
                )
            )

    ray = Line(origin, direction)
    for candidate in free:
        if candidate.kind in (SnapKind.GUIDELINE, SnapKind.GUIDELINE_INTERSECTION):
            continue
        if candidate.kind is SnapKind.EDGE:
            a, b = scene.endpoints(scene.wall(candidate.entity_id))
            point = intersect_ray_segment(origin, direction, a, b)
            if point is None:
                continue
            candidate = replace(candidate, point=point, distance_px=vec.distance(cursor, point) * ppu)
        elif distance_to_line(candidate.point, ray) >= ON_ANGLE_RAY_TOLERANCE:
            continue
        on_ray.append(replace(candidate, tier=SnapTier.ANGLE))

    if on_ray:
        return sorted(on_ray, key=_rank)

    reach = vec.distance(cursor, origin)
    point = vec.add(origin, vec.scale(direction, reach))
    return [SnapCandidate(point, SnapKind.ANGLE, vec.distance(cursor, point) * ppu, tier=SnapTier.ANGLE)]


def find_all_snap_candidates(
    cursor: Point, scene: Scene, options: SnapOptions | None = None
) -> list[SnapCandidate]:
    """Every qualifying snap candidate, strongest first.

    Args:
        cursor: Pointer position in scene units.
        scene: Scene supplying snap targets.
        options: Strategy switches; defaults to grid, node and edge snapping.

    Returns:
        Candidates ordered by tier, kind and screen distance. The first one
        is what :func:`find_snap_candidate` picks.
    """
    if options is None:
        options = SnapOptions()

    free = _free_candidates(cursor, scene, options)
    if options.snap_to_angles and options.angle_origin is not None:
        direction = _angle_direction(cursor, options.angle_origin)
        if direction is not None:
            return _angle_candidates(cursor, scene, options, direction, free)

    return sorted(free, key=_rank)


def find_snap_candidate(
    cursor: Point,
    scene: Scene,
    options: SnapOptions | None = None,
    trace: TraceHook = NULL_TRACE,
) -> SnapResult:
    """Snap a pointer position to the strongest candidate.

    Args:
        cursor: Pointer position in scene units.
        scene: Scene supplying snap targets.
        options: Strategy switches; defaults to grid, node and edge snapping.
        trace: Hook receiving the decision.

    Returns:
        SnapResult; ``snapped`` is False and ``point`` is the pointer itself
        when nothing qualifies.
    """
    candidates = find_all_snap_candidates(cursor, scene, options)
    if not candidates:
        trace("snap.none", cursor=cursor)
        return SnapResult(snapped=False, point=cursor)

    best = candidates[0]
    trace("snap.best", kind=best.kind.name, tier=best.tier.name, point=best.point, considered=len(candidates))
    return SnapResult(snapped=True, point=best.point, candidate=best)
