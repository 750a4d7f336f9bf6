"""Split walls where their centerlines cross.

Room detection needs every enclosing loop to share explicit nodes. Two walls
crossing mid-span without a shared node are cut at the crossing, reusing an
existing node there when one is close enough.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from shapely.geometry import LineString
from shapely.strtree import STRtree

from ..config import (
    DEDUPE_TOLERANCE,
    INTERSECTION_TOLERANCE,
    MIN_SPLIT_WALL_LENGTH,
    SNAP_TO_NODE_TOLERANCE,
    SPLIT_SUFFIX,
)
from ..core.model import Node, Point, Scene, Wall, original_wall_id
from ..geom import vector as vec
from ..geom.lines import Segment, intersect_segments
from ..tracing import NULL_TRACE, TraceHook

LOGGER = logging.getLogger(__name__)

SYNTHETIC_NODE_PREFIX = "vnode-"
PARAMETER_EPSILON = 1e-6

__all__ = ["SplitResult", "original_wall_id", "split_walls_at_intersections"]


@dataclass(frozen=True)
class SplitResult:
    """Outcome of splitting a scene at wall crossings.

    Attributes:
        scene: Scene with split walls and any synthetic nodes.
        segments: Original wall ID -> IDs of the walls it became, A to B.
            Only walls that were actually cut appear here.
        synthetic_nodes: IDs of nodes created at crossings.
    """

    scene: Scene
    segments: dict[str, tuple[str, ...]] = field(default_factory=dict)
    synthetic_nodes: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.segments)


def _usable(wall: Wall, scene: Scene) -> bool:
    if wall.node_a not in scene.nodes or wall.node_b not in scene.nodes:
        return False
    a, b = scene.endpoints(wall)
    return vec.distance(a, b) >= MIN_SPLIT_WALL_LENGTH


def _parameter(point: Point, a: Point, b: Point) -> float:
    ab = vec.sub(b, a)
    return vec.dot(vec.sub(point, a), ab) / vec.dot(ab, ab)


def _centerline(wall: Wall, scene: Scene) -> LineString:
    a, b = scene.endpoints(wall)
    return LineString([(a.x, a.y), (b.x, b.y)])


def _crossings(wall: Wall, usable: list[Wall], tree: STRtree, scene: Scene) -> list[tuple[float, Point]]:
    """Interior crossings of ``wall`` with ``usable``, sorted by parameter and deduplicated.

    Candidates come from ``tree``, an index over the ``usable`` centerlines;
    the exact test runs on the indexed candidates only.
    """
    a, b = scene.endpoints(wall)
    found = []
    for index in sorted(tree.query(_centerline(wall, scene).buffer(INTERSECTION_TOLERANCE))):
        other = usable[int(index)]
        if other.id == wall.id:
            continue
        if other.touches(wall.node_a) or other.touches(wall.node_b):
            continue
        point = intersect_segments(Segment(a, b), Segment(*scene.endpoints(other)))
        if point is None:
            continue
        # Near an endpoint of this wall the walls already meet; the other wall
        # may still be cut there (T-junction).
        if vec.distance(point, a) < INTERSECTION_TOLERANCE or vec.distance(point, b) < INTERSECTION_TOLERANCE:
            continue
        t = _parameter(point, a, b)
        if PARAMETER_EPSILON < t < 1 - PARAMETER_EPSILON:
            found.append((t, point))

    found.sort(key=lambda item: item[0])
    deduped: list[tuple[float, Point]] = []
    for t, point in found:
        if deduped and vec.distance(deduped[-1][1], point) < DEDUPE_TOLERANCE:
            continue
        deduped.append((t, point))
    return deduped


def _nearest_node(point: Point, nodes: dict[str, Node]) -> str | None:
    best_id, best_distance = None, SNAP_TO_NODE_TOLERANCE
    for node in nodes.values():
        distance = vec.distance(point, node.position)
        if distance <= best_distance:
            best_id, best_distance = node.id, distance
    return best_id


def split_walls_at_intersections(scene: Scene, trace: TraceHook = NULL_TRACE) -> SplitResult:
    """Cut crossing walls into segments that share explicit nodes.

    Walls with missing nodes or zero length pass through unchanged. The
    first segment of a cut wall keeps its ID; the rest are named
    ``{id}-split-{i}``. Synthetic nodes are named ``vnode-{n}`` in scene
    order, so identical inputs give identical outputs. Running the split
    again on its own output changes nothing.

    Args:
        scene: Scene to preprocess. Not modified.
        trace: Hook receiving each cut.

    Returns:
        SplitResult holding the new scene and the segment mapping.
    """
    usable = [wall for wall in scene.walls.values() if _usable(wall, scene)]
    usable_ids = {wall.id for wall in usable}
    tree = STRtree([_centerline(wall, scene) for wall in usable]) if usable else None
    nodes = dict(scene.nodes)
    walls: dict[str, Wall] = {}
    segments: dict[str, tuple[str, ...]] = {}
    synthetic: list[str] = []
    counter = 0

    for wall in scene.walls.values():
        if wall.id not in usable_ids:
            walls[wall.id] = wall
            continue

        crossings = _crossings(wall, usable, tree, scene)
        if not crossings:
            walls[wall.id] = wall
            continue

        chain = [wall.node_a]
        for _, point in crossings:
            node_id = _nearest_node(point, nodes)
            if node_id is None:
                counter += 1
                while f"{SYNTHETIC_NODE_PREFIX}{counter}" in nodes:
                    counter += 1
                node_id = f"{SYNTHETIC_NODE_PREFIX}{counter}"
                nodes[node_id] = Node(node_id, point.x, point.y)
                synthetic.append(node_id)
            if node_id != chain[-1]:
                chain.append(node_id)
        if chain[-1] != wall.node_b:
            chain.append(wall.node_b)

        if len(chain) < 3:
            walls[wall.id] = wall
            continue

        ids = []
        for i, (start, end) in enumerate(zip(chain, chain[1:])):
            segment_id = wall.id if i == 0 else f"{wall.id}{SPLIT_SUFFIX}{i}"
            walls[segment_id] = replace(wall, id=segment_id, node_a=start, node_b=end)
            ids.append(segment_id)
        segments[wall.id] = tuple(ids)
        trace("split.wall", wall=wall.id, segments=len(ids), nodes=chain[1:-1])

    if segments:
        LOGGER.debug("Split %d walls, created %d nodes", len(segments), len(synthetic))
    return SplitResult(
        scene=scene.replace(nodes=nodes, walls=walls),
        segments=segments,
        synthetic_nodes=tuple(synthetic),
    )
