"""Topology analysis for wall networks.

This module builds the half-edge structure of a planar wall network,
walks its faces, and derives graphs over nodes and rooms with networkx.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import networkx as nx

from ..geom.polygon import signed_area
from .model import Point, Room, Scene, original_wall_id

FORWARD = "forward"
REVERSE = "reverse"
MIN_FACE_EDGES = 3


@dataclass
class HalfEdge:
    """Directed side of a wall.

    Attributes:
        id: ``{wall_id}-forward`` or ``{wall_id}-reverse``.
        wall_id: ID of the wall this half-edge belongs to.
        origin: Node the half-edge leaves.
        target: Node the half-edge arrives at.
        twin: ID of the opposite half-edge.
        next: ID of the following half-edge around the face on its left.
    """

    id: str
    wall_id: str
    origin: str
    target: str
    twin: str
    next: str | None = None


@dataclass(frozen=True)
class Face:
    """Closed cycle of half-edges.

    Attributes:
        half_edges: Half-edge IDs in traversal order.
        nodes: Origin node of each half-edge, in the same order.
        signed_area: Shoelace area of the centerline cycle.
        is_outer: Whether the face is an unbounded (outer) face.
    """

    half_edges: tuple[str, ...]
    nodes: tuple[str, ...]
    signed_area: float
    is_outer: bool = False

    @property
    def wall_ids(self) -> tuple[str, ...]:
        return tuple(edge_id.rsplit("-", 1)[0] for edge_id in self.half_edges)


def half_edge_id(wall_id: str, direction: str) -> str:
    return f"{wall_id}-{direction}"


def build_half_edges(scene: Scene) -> dict[str, HalfEdge]:
    """Create linked half-edges for every usable wall of the scene.

    Walls referencing missing nodes, or joining a node to itself, are
    ignored. Outgoing half-edges at each node are sorted counter-clockwise;
    the successor of a half-edge arriving at a node is the outgoing edge
    clockwise-before its twin, so bounded faces run counter-clockwise.

    Args:
        scene: Scene to analyze.

    Returns:
        Mapping of half-edge ID to HalfEdge, in wall order.
    """
    edges: dict[str, HalfEdge] = {}
    for wall in scene.walls.values():
        if wall.node_a == wall.node_b or wall.node_a not in scene.nodes or wall.node_b not in scene.nodes:
            continue
        forward = half_edge_id(wall.id, FORWARD)
        reverse = half_edge_id(wall.id, REVERSE)
        edges[forward] = HalfEdge(forward, wall.id, wall.node_a, wall.node_b, twin=reverse)
        edges[reverse] = HalfEdge(reverse, wall.id, wall.node_b, wall.node_a, twin=forward)

    outgoing: dict[str, list[HalfEdge]] = {}
    for edge in edges.values():
        outgoing.setdefault(edge.origin, []).append(edge)

    for node_id, fan in outgoing.items():
        origin = scene.node(node_id).position

        def angle(edge: HalfEdge, origin: Point = origin) -> float:
            target = scene.node(edge.target).position
            return math.atan2(target.y - origin.y, target.x - origin.x)

        fan.sort(key=angle)
        for i, edge in enumerate(fan):
            edges[edge.twin].next = fan[i - 1].id

    return edges


def detect_faces(scene: Scene, edges: dict[str, HalfEdge] | None = None) -> list[Face]:
    """Walk every face cycle of the half-edge structure.

    Cycles shorter than three half-edges are dropped. The face with the most
    negative signed area is the outer face; any other face with non-positive
    area bounds a disconnected component from outside and is outer as well.
    Room detection turns such components into holes of the room around them.

    Args:
        scene: Scene the half-edges were built from.
        edges: Prebuilt half-edges; built from ``scene`` when omitted.

    Returns:
        Faces in discovery order.
    """
    if edges is None:
        edges = build_half_edges(scene)

    visited: set[str] = set()
    cycles: list[list[HalfEdge]] = []
    for start in edges.values():
        if start.id in visited:
            continue
        cycle = []
        current: HalfEdge | None = start
        while current is not None and current.id not in visited:
            visited.add(current.id)
            cycle.append(current)
            current = edges.get(current.next) if current.next is not None else None
        if current is start and len(cycle) >= MIN_FACE_EDGES:
            cycles.append(cycle)

    areas = [signed_area([scene.node(edge.origin).position for edge in cycle]) for cycle in cycles]
    outer_index = areas.index(min(areas)) if areas else -1

    return [
        Face(
            half_edges=tuple(edge.id for edge in cycle),
            nodes=tuple(edge.origin for edge in cycle),
            signed_area=area,
            is_outer=(i == outer_index or area <= 0),
        )
        for i, (cycle, area) in enumerate(zip(cycles, areas))
    ]


def wall_sides(rooms: Iterable[Room]) -> dict[str, tuple[str | None, str | None]]:
    """Map each user wall to the rooms on its left and right.

    A room whose cycle uses a wall's forward half-edge lies on the wall's
    left. Split segments are folded back onto their original wall.

    Returns:
        Dictionary mapping wall_id to ``(left_room_id, right_room_id)``.
    """
    sides: dict[str, list[str | None]] = {}
    for room in rooms:
        for edge_id in room.half_edges:
            segment_id, _, direction = edge_id.rpartition("-")
            slot = sides.setdefault(original_wall_id(segment_id), [None, None])
            slot[0 if direction == FORWARD else 1] = room.id
    return {wall_id: (left, right) for wall_id, (left, right) in sides.items()}


def build_node_graph(scene: Scene) -> nx.Graph:
    """Build the connectivity graph of the wall network.

    Nodes are scene nodes carrying their position; edges are walls whose
    endpoints both exist.
    """
    G = nx.Graph()
    for node in scene.nodes.values():
        G.add_node(node.id, x=node.x, y=node.y)
    for wall in scene.walls.values():
        if wall.node_a in scene.nodes and wall.node_b in scene.nodes:
            G.add_edge(wall.node_a, wall.node_b, wall_id=wall.id, thickness=wall.thickness)
    return G


def build_room_graph(rooms: Iterable[Room]) -> nx.Graph:
    """Build a graph representing room adjacency.

    Creates a NetworkX graph where nodes are rooms and edges join two rooms
    that share at least one wall.

    Args:
        rooms: Detected rooms.

    Returns:
        NetworkX Graph with room adjacency; each edge lists the shared wall IDs.
    """
    rooms = list(rooms)
    G = nx.Graph()
    for room in rooms:
        G.add_node(room.id, number=room.number, area=room.area)

    for wall_id, (left, right) in sorted(wall_sides(rooms).items()):
        if left is None or right is None or left == right:
            continue
        if G.has_edge(left, right):
            G.edges[left, right]["wall_ids"].append(wall_id)
        else:
            G.add_edge(left, right, wall_ids=[wall_id])
    return G
