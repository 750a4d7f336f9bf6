"""Rigid-body snapping for multi-node drags.

When several connected nodes move under one translation, snapping each node
on its own would distort the shape. Instead every node's own best snap
proposes a shared delta, and the strongest delta that keeps all pairwise
distances is applied to the whole group.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

import numpy as np

from ..config import RIGID_BODY_SNAP_TOLERANCE, SAME_POSITION_TOLERANCE
from ..core.model import NodeNotFound, Point, Scene
from ..geom import vector as vec
from ..tracing import NULL_TRACE, TraceHook
from .snapping import SnapCandidate, SnapKind, SnapOptions, find_snap_candidate

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapTarget:
    """A position one dragged node could snap to."""

    point: Point
    candidate: SnapCandidate


@dataclass(frozen=True)
class RigidBodySnap:
    """Shared translation for a dragged group.

    Attributes:
        delta: Translation applied to every dragged node.
        snapped_nodes: Dragged node ID -> the target it lands on under ``delta``.
    """

    delta: Point
    snapped_nodes: dict[str, SnapTarget] = field(default_factory=dict)

    @property
    def snapped(self) -> bool:
        return bool(self.snapped_nodes)


@dataclass(frozen=True)
class DragResolution:
    """Final positions of a rigid-body drag."""

    delta: Point
    positions: dict[str, Point]
    snapped_nodes: dict[str, SnapTarget] = field(default_factory=dict)

    @property
    def snapped(self) -> bool:
        return bool(self.snapped_nodes)


def _as_array(positions: Iterable[Point]) -> np.ndarray:
    return np.array([[p.x, p.y] for p in positions], dtype=float).reshape(-1, 2)


def _pairwise_distances(coords: np.ndarray) -> np.ndarray:
    return np.linalg.norm(coords[:, None, :] - coords[None, :, :], axis=-1)


def validate_rigid_body_delta(
    original_positions: Mapping[str, Point],
    delta: Point,
    tolerance: float = RIGID_BODY_SNAP_TOLERANCE,
) -> bool:
    """Check that translating every node by ``delta`` keeps all pairwise distances."""
    coords = _as_array(original_positions.values())
    if len(coords) < 2:
        return True
    moved = coords + np.array([delta.x, delta.y])
    deviation = np.abs(_pairwise_distances(moved) - _pairwise_distances(coords))
    return bool(np.all(deviation <= tolerance))


def find_rigid_body_snap_delta(
    original_positions: Mapping[str, Point],
    proposed_delta: Point,
    snap_targets: Mapping[str, Sequence[SnapTarget]],
    tolerance: float = RIGID_BODY_SNAP_TOLERANCE,
    trace: TraceHook = NULL_TRACE,
) -> RigidBodySnap | None:
    """Pick the strongest snap delta that moves the group rigidly.

    Each target of each node proposes the delta that would land that node on
    it. Deltas are tried strongest candidate first, then closest to the
    proposed delta. The first one that validates is returned together with
    every other node that also lands on one of its own targets.

    Args:
        original_positions: Dragged node ID -> position before the drag.
        proposed_delta: Unsnapped translation from the pointer.
        snap_targets: Dragged node ID -> its snap targets.
        tolerance: Allowed distance deviation and landing distance.
        trace: Hook receiving the decision.

    Returns:
        The accepted snap, or None when no delta validates.

    Raises:
        NodeNotFound: If a snap target names a node without an original position.
    """
    proposals = []
    for node_id, targets in snap_targets.items():
        if node_id not in original_positions:
            raise NodeNotFound(node_id)
        origin = original_positions[node_id]
        for target in targets:
            proposals.append((vec.sub(target.point, origin), node_id, target))

    proposals.sort(
        key=lambda item: (
            -item[2].candidate.tier,
            -item[2].candidate.kind,
            vec.distance(item[0], proposed_delta),
        )
    )

    for delta, node_id, target in proposals:
        if not validate_rigid_body_delta(original_positions, delta, tolerance):
            trace("rigid.rejected", node=node_id, delta=delta)
            continue

        snapped = {node_id: target}
        for other_id, targets in snap_targets.items():
            if other_id == node_id:
                continue
            landed = vec.add(original_positions[other_id], delta)
            for other_target in targets:
                if vec.distance(landed, other_target.point) < tolerance:
                    snapped[other_id] = other_target
                    break

        trace("rigid.accepted", node=node_id, delta=delta, snapped=len(snapped))
        return RigidBodySnap(delta, snapped)

    return None


def filter_snap_candidates_for_display(candidates: Iterable[SnapCandidate]) -> list[SnapCandidate]:
    """Keep the strongest candidate per resolved position.

    Candidates within 1 unit of each other form one group. When a group's
    winner is a guideline crossing, its two guidelines follow it, marked
    visual-only so they are drawn without labels.
    """
    groups: list[list[SnapCandidate]] = []
    for candidate in candidates:
        for group in groups:
            if vec.distance(candidate.point, group[0].point) < SAME_POSITION_TOLERANCE:
                group.append(candidate)
                break
        else:
            groups.append([candidate])

    shown = []
    for group in groups:
        best = max(group, key=lambda candidate: candidate.priority)
        shown.append(best)
        if best.kind is SnapKind.GUIDELINE_INTERSECTION:
            for guideline in best.guidelines:
                shown.append(
                    replace(
                        best,
                        kind=SnapKind.GUIDELINE,
                        entity_id=guideline.node_id,
                        guidelines=(guideline.as_visual(),),
                    )
                )
    return shown


# Drag helpers


def drag_node_positions(scene: Scene, wall_ids: Iterable[str]) -> dict[str, Point]:
    """Original positions of every node of the dragged walls.

    Raises:
        WallNotFound: If a wall ID is missing.
        NodeNotFound: If a dragged wall references a missing node.
    """
    positions: dict[str, Point] = {}
    for wall_id in wall_ids:
        wall = scene.wall(wall_id)
        for node_id in (wall.node_a, wall.node_b):
            if node_id not in positions:
                positions[node_id] = scene.node(node_id).position
    return positions


def excluded_wall_ids(scene: Scene, wall_ids: Iterable[str]) -> set[str]:
    """Dragged walls plus every wall touching a dragged node; none may be a snap target."""
    wall_ids = set(wall_ids)
    dragged_nodes = set()
    for wall_id in wall_ids:
        wall = scene.walls.get(wall_id)
        if wall is not None:
            dragged_nodes.update((wall.node_a, wall.node_b))

    excluded = set(wall_ids)
    for wall in scene.walls.values():
        if wall.node_a in dragged_nodes or wall.node_b in dragged_nodes:
            excluded.add(wall.id)
    return excluded


def _snap_scene(scene: Scene, wall_ids: Iterable[str]) -> Scene:
    excluded = excluded_wall_ids(scene, wall_ids)
    return scene.replace(walls={wall_id: wall for wall_id, wall in scene.walls.items() if wall_id not in excluded})


def collect_snap_targets(
    scene: Scene,
    wall_ids: Iterable[str],
    delta: Point,
    options: SnapOptions | None = None,
) -> dict[str, list[SnapTarget]]:
    """Best individual snap of each dragged node after moving it by ``delta``.

    Dragged nodes and the walls attached to them are never targets.
    """
    wall_ids = list(wall_ids)
    positions = drag_node_positions(scene, wall_ids)
    if options is None:
        options = SnapOptions(snap_to_guidelines=True)
    options = replace(options, exclude_node_ids=frozenset(options.exclude_node_ids) | frozenset(positions))
    targets_scene = _snap_scene(scene, wall_ids)

    targets: dict[str, list[SnapTarget]] = {}
    for node_id, position in positions.items():
        result = find_snap_candidate(vec.add(position, delta), targets_scene, options)
        if result.snapped and result.candidate is not None:
            targets[node_id] = [SnapTarget(result.point, result.candidate)]
    return targets


def resolve_rigid_body_drag(
    scene: Scene,
    wall_ids: Iterable[str],
    delta: Point,
    options: SnapOptions | None = None,
    trace: TraceHook = NULL_TRACE,
) -> DragResolution:
    """Resolve a multi-wall drag into final node positions.

    Falls back to the unsnapped ``delta`` when no snap keeps the dragged
    group rigid.

    Args:
        scene: Scene before the drag.
        wall_ids: Walls being dragged.
        delta: Pointer translation since the drag started.
        options: Snap strategy switches.
        trace: Hook receiving solver decisions.

    Returns:
        DragResolution with the applied delta and each dragged node's position.
    """
    wall_ids = list(wall_ids)
    positions = drag_node_positions(scene, wall_ids)
    targets = collect_snap_targets(scene, wall_ids, delta, options)
    solved = find_rigid_body_snap_delta(positions, delta, targets, trace=trace)
    if solved is None:
        LOGGER.debug("No rigid snap for %d nodes, moving freely", len(positions))
        solved = RigidBodySnap(delta)

    return DragResolution(
        delta=solved.delta,
        positions={node_id: vec.add(position, solved.delta) for node_id, position in positions.items()},
        snapped_nodes=solved.snapped_nodes,
    )
