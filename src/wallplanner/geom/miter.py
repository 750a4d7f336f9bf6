"""Wall mitering for clean corner joins.

For every node, the offset edges of all incident walls are intersected to
find where each wall outline should end. Each of a wall's two edge corners
at a node moves through a small state machine:

    UNRESOLVED -> SEGMENT     finite offset segments cross
    UNRESOLVED -> EXTENSION   only the infinite offset lines cross
    UNRESOLVED -> COLLINEAR   straight-through junction, corner is the offset origin

Corners still UNRESOLVED at the end fall back to the unmitered butt point.
An apex vertex is added only for walls whose two corners are both SEGMENT.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from itertools import combinations

from ..config import DEFAULT_TOL, MAX_MITER_LENGTH_RATIO, POINT_EQUAL_TOLERANCE, Tolerances
from ..core.model import Point, Scene, Wall
from ..tracing import NULL_TRACE, TraceHook
from . import vector as vec
from .lines import Line, Segment, intersect_lines, intersect_segments

LEFT = "left"
RIGHT = "right"
SIDES = (LEFT, RIGHT)


class CornerState(Enum):
    UNRESOLVED = "unresolved"
    SEGMENT = "segment"
    EXTENSION = "extension"
    COLLINEAR = "collinear"


# A corner may only leave UNRESOLVED; once resolved it is final.
_TRANSITIONS = {
    CornerState.UNRESOLVED: {CornerState.SEGMENT, CornerState.EXTENSION, CornerState.COLLINEAR},
    CornerState.SEGMENT: set(),
    CornerState.EXTENSION: set(),
    CornerState.COLLINEAR: set(),
}


@dataclass(frozen=True)
class Corner:
    """One edge corner of a wall at a node."""

    state: CornerState = CornerState.UNRESOLVED
    point: Point | None = None

    @property
    def resolved(self) -> bool:
        return self.state is not CornerState.UNRESOLVED


@dataclass(frozen=True)
class WallCorners:
    """Corner points of one wall at one node.

    ``left`` and ``right`` are relative to the direction pointing away from
    the node.
    """

    left: Corner = Corner()
    right: Corner = Corner()
    apex: Point | None = None

    def side(self, side: str) -> Corner:
        return self.left if side == LEFT else self.right


@dataclass(frozen=True)
class _WallEdges:
    wall: Wall
    direction: Point
    left: Segment
    right: Segment

    def edge(self, side: str) -> Segment:
        return self.left if side == LEFT else self.right

    def line(self, side: str) -> Line:
        edge = self.edge(side)
        return Line(edge.start, self.direction)


@dataclass(frozen=True)
class _Hit:
    side_a: str
    side_b: str
    point: Point


def _edges_at_node(wall: Wall, node_id: str, scene: Scene) -> _WallEdges | None:
    far = wall.other_node(node_id)
    if far not in scene.nodes:
        return None
    start = scene.node(node_id).position
    end = scene.node(far).position
    direction = vec.normalize(vec.sub(end, start))
    if direction == Point(0.0, 0.0):
        return None

    offset = vec.scale(vec.perp_ccw(direction), wall.thickness / 2)
    return _WallEdges(
        wall=wall,
        direction=direction,
        left=Segment(vec.add(start, offset), vec.add(end, offset)),
        right=Segment(vec.sub(start, offset), vec.sub(end, offset)),
    )


def _are_collinear(first: _WallEdges, second: _WallEdges, tol: Tolerances) -> bool:
    """Two walls leaving a node in opposite directions, within the angular tolerance."""
    return vec.dot(first.direction, second.direction) <= -math.cos(tol.collinear_tol_rad)


def _drop_wrong_side_hits(hits: list[_Hit]) -> list[_Hit]:
    """Discard same-side crossings when that edge also meets the opposite side.

    When one edge of a wall crosses both edges of its neighbour, the crossing
    with the neighbour's opposite-named edge is the real corner.
    """
    if len(hits) < 2:
        return hits

    kept = []
    for hit in hits:
        same_side = hit.side_a == hit.side_b
        shadowed_a = any(other.side_a == hit.side_a and other.side_b != hit.side_b for other in hits)
        shadowed_b = any(other.side_b == hit.side_b and other.side_a != hit.side_a for other in hits)
        if same_side and (shadowed_a or shadowed_b):
            continue
        kept.append(hit)
    return kept


class _NodeCornerSolver:
    """Working state for the corners of every wall incident to one node."""

    def __init__(self, node_id: str, scene: Scene, tol: Tolerances, trace: TraceHook):
        self.node_id = node_id
        self.origin = scene.node(node_id).position
        self.tol = tol
        self.trace = trace

        edges = (_edges_at_node(wall, node_id, scene) for wall in scene.walls_at_node(node_id))
        self.edges = [edge for edge in edges if edge is not None]
        self.by_wall = {edge.wall.id: edge for edge in self.edges}
        self.corners: dict[tuple[str, str], Corner] = {
            (edge.wall.id, side): Corner() for edge in self.edges for side in SIDES
        }
        self.apex: dict[str, Point] = {}

        self.collinear_pairs = {
            frozenset((first.wall.id, second.wall.id))
            for first, second in combinations(self.edges, 2)
            if _are_collinear(first, second, tol)
        }
        self.collinear_ids = set().union(*self.collinear_pairs) if self.collinear_pairs else set()
        self.avg_thickness = (
            sum(edge.wall.thickness for edge in self.edges) / len(self.edges) if self.edges else 0.0
        )

    # State machine

    def state(self, key: tuple[str, str]) -> CornerState:
        return self.corners[key].state

    def resolve(self, key: tuple[str, str], state: CornerState, point: Point) -> bool:
        current = self.corners[key]
        if state not in _TRANSITIONS[current.state]:
            return False
        self.corners[key] = Corner(state, point)
        self.trace("miter.corner", node=self.node_id, wall=key[0], side=key[1], state=state.value, point=point)
        return True

    def clamp(self, point: Point | None, limit: float) -> Point | None:
        if point is None:
            return None
        distance = vec.distance(self.origin, point)
        if distance > limit:
            self.trace("miter.clamp_rejected", node=self.node_id, distance=distance, limit=limit)
            return None
        return point

    def limit_for(self, *wall_ids: str) -> float:
        thickness = sum(self.by_wall[wall_id].wall.thickness for wall_id in wall_ids) / len(wall_ids)
        return MAX_MITER_LENGTH_RATIO * thickness

    def is_collinear_pair(self, first: str, second: str) -> bool:
        return frozenset((first, second)) in self.collinear_pairs

    # Steps

    def solve(self) -> dict[str, WallCorners]:
        if not self.edges:
            return {}

        if len(self.edges) == 2 and len(self.collinear_pairs) == 1:
            self._straight_through()
            return self._result()

        self._segment_intersections()
        non_segment = [key for key in self.corners if self.state(key) is not CornerState.SEGMENT]
        self._line_extensions(non_segment)
        self._cross_junction_apex()
        for edge in self.edges:
            self._wall_apex(edge.wall.id, non_segment)
        return self._result()

    def _straight_through(self) -> None:
        self.trace("miter.straight_through", node=self.node_id)
        for edge in self.edges:
            for side in SIDES:
                self.resolve((edge.wall.id, side), CornerState.COLLINEAR, edge.edge(side).start)

    def _segment_intersections(self) -> None:
        candidates: dict[tuple[str, str], list[tuple[float, Point, float]]] = {key: [] for key in self.corners}

        for first, second in combinations(self.edges, 2):
            if self.is_collinear_pair(first.wall.id, second.wall.id):
                continue

            hits = []
            for side_a in SIDES:
                for side_b in SIDES:
                    point = intersect_segments(first.edge(side_a), second.edge(side_b))
                    if point is not None:
                        hits.append(_Hit(side_a, side_b, point))

            limit = self.limit_for(first.wall.id, second.wall.id)
            for hit in _drop_wrong_side_hits(hits):
                distance = vec.distance(self.origin, hit.point)
                candidates[(first.wall.id, hit.side_a)].append((distance, hit.point, limit))
                candidates[(second.wall.id, hit.side_b)].append((distance, hit.point, limit))

        # Farthest crossing that survives the clamp wins.
        for key, found in candidates.items():
            for _, point, limit in sorted(found, key=lambda item: item[0], reverse=True):
                accepted = self.clamp(point, limit)
                if accepted is not None:
                    self.resolve(key, CornerState.SEGMENT, accepted)
                    break

    def _line_extensions(self, non_segment: list[tuple[str, str]]) -> None:
        for key_a, key_b in combinations(non_segment, 2):
            wall_a, side_a = key_a
            wall_b, side_b = key_b
            if wall_a == wall_b or self.is_collinear_pair(wall_a, wall_b):
                continue
            if self.state(key_a) is not CornerState.UNRESOLVED and self.state(key_b) is not CornerState.UNRESOLVED:
                continue

            point = intersect_lines(self.by_wall[wall_a].line(side_a), self.by_wall[wall_b].line(side_b))
            accepted = self.clamp(point, self.limit_for(wall_a, wall_b))
            if accepted is None:
                continue
            for key in (key_a, key_b):
                if self.state(key) is CornerState.UNRESOLVED:
                    self.resolve(key, CornerState.EXTENSION, accepted)

    def _cross_junction_apex(self) -> None:
        if len(self.edges) < 4 or len(self.collinear_ids) != len(self.edges):
            return
        if not all(corner.resolved for corner in self.corners.values()):
            return
        self.trace("miter.cross_junction", node=self.node_id, walls=len(self.edges))
        for edge in self.edges:
            self.apex.setdefault(edge.wall.id, self.origin)

    def _both_segment(self, wall_id: str) -> bool:
        return all(self.state((wall_id, side)) is CornerState.SEGMENT for side in SIDES)

    def _is_new_apex(self, wall_id: str, point: Point | None) -> bool:
        if point is None:
            return False
        return not any(
            vec.almost_equal(point, self.corners[(wall_id, side)].point, POINT_EQUAL_TOLERANCE) for side in SIDES
        )

    def _wall_apex(self, wall_id: str, non_segment: list[tuple[str, str]]) -> None:
        if wall_id in self.apex or not self._both_segment(wall_id):
            return
        limit = MAX_MITER_LENGTH_RATIO * self.avg_thickness

        # A wall branching off a straight run takes its apex on the run's far side.
        if self.collinear_ids and wall_id not in self.collinear_ids:
            run_edges = [key for key in non_segment if key[0] in self.collinear_ids]
            if len(run_edges) == 2:
                line_a = self.by_wall[run_edges[0][0]].line(run_edges[0][1])
                line_b = self.by_wall[run_edges[1][0]].line(run_edges[1][1])
                if vec.almost_equal(line_a.point, line_b.point):
                    apex = line_a.point
                else:
                    apex = intersect_lines(line_a, line_b)
                if self._is_new_apex(wall_id, apex):
                    apex = self.clamp(apex, limit)
                    if apex is not None:
                        self.apex[wall_id] = apex
                        return

        others = [key for key in non_segment if key[0] != wall_id]
        for key_a, key_b in combinations(others, 2):
            apex = intersect_lines(self.by_wall[key_a[0]].line(key_a[1]), self.by_wall[key_b[0]].line(key_b[1]))
            if self._is_new_apex(wall_id, apex):
                apex = self.clamp(apex, limit)
                if apex is not None:
                    self.apex[wall_id] = apex
                    return

        if len(self.edges) >= 3 and all(self._both_segment(edge.wall.id) for edge in self.edges):
            self.apex[wall_id] = self.origin

    def _result(self) -> dict[str, WallCorners]:
        return {
            edge.wall.id: WallCorners(
                left=self.corners[(edge.wall.id, LEFT)],
                right=self.corners[(edge.wall.id, RIGHT)],
                apex=self.apex.get(edge.wall.id),
            )
            for edge in self.edges
        }


def compute_node_corners(
    node_id: str,
    scene: Scene,
    tol: Tolerances = DEFAULT_TOL,
    trace: TraceHook = NULL_TRACE,
) -> dict[str, WallCorners]:
    """Compute mitered corners for every wall incident to a node.

    Args:
        node_id: ID of the junction node.
        scene: Scene containing the node and its walls.
        tol: Numeric tolerances.
        trace: Hook receiving intermediate decisions.

    Returns:
        Mapping of wall ID to its corners at this node. Zero-length walls
        and walls whose far node is missing are omitted.

    Raises:
        NodeNotFound: If the node itself is missing.
    """
    return _NodeCornerSolver(node_id, scene, tol, trace).solve()


def build_wall_polygon(
    wall: Wall | str,
    scene: Scene,
    tol: Tolerances = DEFAULT_TOL,
    trace: TraceHook = NULL_TRACE,
    corner_cache: dict[str, dict[str, WallCorners]] | None = None,
) -> tuple[Point, ...]:
    """Build the outline polygon of a wall with mitered ends.

    Vertices run ``A_left, [A_apex], A_right, B_right, [B_apex], B_left`` where
    left and right follow the A->B direction. Missing corners fall back to the
    unmitered butt points.

    Args:
        wall: The wall, or its ID.
        scene: Scene containing the wall.
        tol: Numeric tolerances.
        trace: Hook receiving intermediate decisions.
        corner_cache: Optional per-call memo of node corners, shared when
            building several walls of the same scene.

    Raises:
        WallNotFound: If ``wall`` is an ID missing from the scene.
        NodeNotFound: If the wall references a missing node.
    """
    if isinstance(wall, str):
        wall = scene.wall(wall)
    if corner_cache is None:
        corner_cache = {}

    a, b = scene.endpoints(wall)
    offset = vec.scale(vec.perp_ccw(vec.normalize(vec.sub(b, a))), wall.thickness / 2)
    base_left_a, base_right_a = vec.add(a, offset), vec.sub(a, offset)
    base_left_b, base_right_b = vec.add(b, offset), vec.sub(b, offset)

    def corners_at(node_id: str) -> WallCorners:
        if node_id not in corner_cache:
            corner_cache[node_id] = compute_node_corners(node_id, scene, tol, trace)
        return corner_cache[node_id].get(wall.id, WallCorners())

    at_a = corners_at(wall.node_a)
    at_b = corners_at(wall.node_b)

    a_left = at_a.left.point if at_a.left.resolved else base_left_a
    a_right = at_a.right.point if at_a.right.resolved else base_right_a
    # Seen from B the wall runs the other way, so its sides swap.
    b_left = at_b.right.point if at_b.right.resolved else base_left_b
    b_right = at_b.left.point if at_b.left.resolved else base_right_b

    polygon = [a_left]
    if at_a.apex is not None:
        polygon.append(at_a.apex)
    polygon.extend([a_right, b_right])
    if at_b.apex is not None:
        polygon.append(at_b.apex)
    polygon.append(b_left)

    trace("miter.polygon", wall=wall.id, vertices=len(polygon))
    return tuple(polygon)


def build_wall_polygons(
    scene: Scene, tol: Tolerances = DEFAULT_TOL, trace: TraceHook = NULL_TRACE
) -> dict[str, tuple[Point, ...]]:
    """Build outline polygons for every wall in the scene.

    Walls referencing a missing node have no outline and are left out, the
    same walls half-edge construction skips.
    """
    cache: dict[str, dict[str, WallCorners]] = {}
    return {
        wall_id: build_wall_polygon(wall, scene, tol, trace, cache)
        for wall_id, wall in scene.walls.items()
        if wall.node_a in scene.nodes and wall.node_b in scene.nodes
    }
