"""Geometric editing functions for wall networks.

Every function takes a Scene and returns a new one; inputs are never
modified. Derived rooms are carried over untouched and should be re-detected
by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..config import DEFAULT_TOL, DEFAULT_WALL_HEIGHT, DEFAULT_WALL_RAISE, DEFAULT_WALL_THICKNESS
from ..core.model import Node, Point, Scene, Wall
from . import vector as vec


def _next_id(prefix: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    n = len(taken) + 1
    while f"{prefix}{n}" in taken:
        n += 1
    return f"{prefix}{n}"


def find_node_at_position(
    position: Point,
    scene: Scene,
    exclude_ids: Iterable[str] = (),
    tolerance: float = DEFAULT_TOL.merge_tol,
) -> str | None:
    """Find the closest node strictly within ``tolerance`` of ``position``.

    Args:
        position: Position to search around.
        scene: Scene to search.
        exclude_ids: Node IDs to ignore, e.g. the nodes being dragged.
        tolerance: Search radius.

    Returns:
        Node ID if one is close enough, None otherwise.
    """
    excluded = set(exclude_ids)
    closest_id = None
    closest_distance = tolerance
    for node in scene.nodes.values():
        if node.id in excluded:
            continue
        distance = vec.distance(position, node.position)
        if distance < closest_distance:
            closest_id, closest_distance = node.id, distance
    return closest_id


def merge_nodes(scene: Scene, from_id: str, to_id: str) -> Scene:
    """Merge ``from_id`` into ``to_id``.

    Walls referencing the source node are rewired to the target. Walls that
    would then join the target to itself are deleted, and so is the source
    node.

    Raises:
        NodeNotFound: If either node is missing.
    """
    scene.node(from_id)
    scene.node(to_id)

    walls = {}
    for wall_id, wall in scene.walls.items():
        node_a = to_id if wall.node_a == from_id else wall.node_a
        node_b = to_id if wall.node_b == from_id else wall.node_b
        if node_a == node_b:
            continue
        walls[wall_id] = replace(wall, node_a=node_a, node_b=node_b)

    nodes = {node_id: node for node_id, node in scene.nodes.items() if node_id != from_id}
    return scene.replace(nodes=nodes, walls=walls)


def delete_walls(scene: Scene, wall_ids: Iterable[str]) -> Scene:
    """Delete walls and any node left without walls.

    Nodes that were already free-standing before the deletion are kept.

    Raises:
        WallNotFound: If a wall ID is missing.
    """
    doomed = {scene.wall(wall_id).id for wall_id in wall_ids}
    walls = {wall_id: wall for wall_id, wall in scene.walls.items() if wall_id not in doomed}

    touched = set()
    for wall_id in doomed:
        wall = scene.walls[wall_id]
        touched.update((wall.node_a, wall.node_b))
    still_used = {node_id for wall in walls.values() for node_id in (wall.node_a, wall.node_b)}
    orphans = touched - still_used

    nodes = {node_id: node for node_id, node in scene.nodes.items() if node_id not in orphans}
    return scene.replace(nodes=nodes, walls=walls)


def move_node(scene: Scene, node_id: str, position: Point) -> Scene:
    """Move a node; every wall attached to it follows.

    Raises:
        NodeNotFound: If the node is missing.
    """
    node = scene.node(node_id)
    nodes = dict(scene.nodes)
    nodes[node_id] = replace(node, x=position.x, y=position.y)
    return scene.replace(nodes=nodes)


def add_wall(
    scene: Scene,
    start: Point,
    end: Point,
    thickness: float = DEFAULT_WALL_THICKNESS,
    height: float = DEFAULT_WALL_HEIGHT,
    raise_from_floor: float = DEFAULT_WALL_RAISE,
    wall_id: str | None = None,
) -> tuple[Scene, str]:
    """Add a wall between two positions.

    Endpoints reuse an existing node within the merge tolerance; otherwise
    a new node is created.

    Returns:
        The new scene and the ID of the added wall.
    """
    nodes = dict(scene.nodes)
    endpoint_ids = []
    for position in (start, end):
        node_id = find_node_at_position(position, scene.replace(nodes=nodes))
        if node_id is None:
            node_id = _next_id("node-", nodes)
            nodes[node_id] = Node(node_id, position.x, position.y)
        endpoint_ids.append(node_id)

    if wall_id is None:
        wall_id = _next_id("wall-", scene.walls)
    walls = dict(scene.walls)
    walls[wall_id] = Wall(wall_id, endpoint_ids[0], endpoint_ids[1], thickness, height, raise_from_floor)
    return scene.replace(nodes=nodes, walls=walls), wall_id
