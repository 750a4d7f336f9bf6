"""Hit testing at the interaction boundary."""

from __future__ import annotations

from collections.abc import Iterable

from ..core.model import Point, Room, Scene
from . import vector as vec
from .lines import project_point_to_segment
from .polygon import contains_point


def hit_test_walls(point: Point, scene: Scene, radius: float) -> str | None:
    """Closest wall whose body, grown by ``radius``, contains ``point``."""
    best_id = None
    best_distance = float("inf")
    for wall in scene.walls.values():
        if wall.node_a not in scene.nodes or wall.node_b not in scene.nodes:
            continue
        a, b = scene.endpoints(wall)
        if vec.distance(a, b) == 0:
            continue
        projected, _ = project_point_to_segment(point, a, b)
        distance = vec.distance(point, projected)
        if distance <= wall.thickness / 2 + radius and distance < best_distance:
            best_id, best_distance = wall.id, distance
    return best_id


def hit_test_nodes(point: Point, scene: Scene, radius: float) -> str | None:
    best_id = None
    best_distance = radius
    for node in scene.nodes.values():
        distance = vec.distance(point, node.position)
        if distance <= best_distance:
            best_id, best_distance = node.id, distance
    return best_id


def hit_test_rooms(point: Point, rooms: Iterable[Room]) -> str | None:
    """Smallest room whose floor, holes excluded, contains ``point``."""
    hits = [room for room in rooms if contains_point(room.polygon, point, room.holes)]
    if not hits:
        return None
    return min(hits, key=lambda room: room.area).id
