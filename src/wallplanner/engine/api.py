"""Core API for wall planning.

This module provides the main interface for applying edit operations to a
scene and for running the full geometry pipeline over it.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Set

import networkx as nx

from ..config import DEFAULT_TOL, Tolerances
from ..core.model import Point, Room, Scene
from ..core.topology import build_node_graph, build_room_graph, wall_sides
from ..geom.miter import build_wall_polygons
from ..tracing import NULL_TRACE, TraceHook
from .ops import get_operation
from .rooms import detect_rooms, with_rooms
from .validators import InvalidOperation, validate_all

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Analysis:
    """Everything derived from a scene in one pass.

    Attributes:
        wall_polygons: Wall ID -> mitered outline.
        rooms: Detected rooms, ascending by area.
        wall_sides: User wall ID -> (left room ID, right room ID).
        room_graph: Rooms joined by shared walls.
        components: Number of connected pieces of the wall network.
    """

    wall_polygons: dict[str, tuple[Point, ...]]
    rooms: list[Room]
    wall_sides: dict[str, tuple[str | None, str | None]] = field(default_factory=dict)
    room_graph: nx.Graph = field(default_factory=nx.Graph)
    components: int = 0


def apply(scene: Scene, operation: dict, fixed_entities: Set[str] | None = None) -> Scene:
    """Apply an operation to a scene and return the modified scene.

    Rooms of the result are re-detected, keeping the identity of rooms whose
    boundary did not change.

    Args:
        scene: The scene to modify.
        operation: Dictionary describing the operation, e.g.
            ``{"op": "move_node", "node": "n1", "to": [0, 500]}``.
        fixed_entities: Set of node or wall IDs that should remain unchanged.

    Returns:
        A new Scene with the operation applied.

    Raises:
        ValueError: If the operation type is not recognized or malformed.
        SceneError: If the operation references a missing node or wall.
        InvalidOperation: If the operation violates scene invariants.
    """
    operation_type = operation.get("op") or operation.get("type")

    if operation_type is None:
        raise ValueError("Operation must have an 'op' or 'type' field")

    try:
        op = get_operation(operation_type)
    except KeyError:
        raise ValueError(f"Unknown operation type: {operation_type}") from None

    params = {k: v for k, v in operation.items() if k not in ["op", "type"]}

    for method in (op.precheck, op.apply):
        try:
            inspect.signature(method).bind(scene, **params)
        except TypeError as e:
            raise ValueError(f"Invalid parameters for '{operation_type}': {e}") from e

    op.precheck(scene, **params)
    new_scene = op.apply(scene, **params)

    try:
        validate_all(new_scene, scene, fixed_entities)
    except InvalidOperation as e:
        raise InvalidOperation(f"Operation failed validation: {e}") from e

    LOGGER.info("Applied %s", operation_type)
    return with_rooms(new_scene)


def apply_operations(scene: Scene, operations: list, fixed_entities: Set[str] | None = None) -> Scene:
    """Apply operations in order; the first failure aborts the whole batch."""
    for operation in operations:
        scene = apply(scene, operation, fixed_entities)
    return scene


def analyze(scene: Scene, tol: Tolerances = DEFAULT_TOL, trace: TraceHook = NULL_TRACE) -> Analysis:
    """Run mitering, room detection and graph building over a scene.

    Args:
        scene: Scene to analyze. Its current rooms seed room identity.
        tol: Numeric tolerances.
        trace: Hook receiving intermediate decisions.

    Returns:
        Analysis of the scene.

    Raises:
        NodeNotFound: If a wall references a missing node.
    """
    rooms = detect_rooms(scene, previous=scene.rooms, tol=tol, trace=trace)
    return Analysis(
        wall_polygons=build_wall_polygons(scene, tol, trace),
        rooms=rooms,
        wall_sides=wall_sides(rooms),
        room_graph=build_room_graph(rooms),
        components=nx.number_connected_components(build_node_graph(scene)),
    )
