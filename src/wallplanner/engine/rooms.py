"""Room detection over the wall network.

Rooms are the bounded faces of the planar half-edge structure built from the
scene after crossing walls have been split. Each room is measured on its
inner, thickness-aware outline and carries the IDs of the user walls around it.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

import networkx as nx

from ..config import DEFAULT_TOL, MIN_ROOM_AREA, Tolerances
from ..core.model import Room, Scene, original_wall_id
from ..core.topology import build_half_edges, build_node_graph, detect_faces
from ..geom.miter import WallCorners, build_wall_polygon
from ..geom.polygon import inner_room_polygon, island_holes, polygon_area, polygon_centroid, polygon_perimeter
from ..tracing import NULL_TRACE, TraceHook
from .splitting import split_walls_at_intersections

LOGGER = logging.getLogger(__name__)

MIN_ROOM_WALLS = 3


def room_id_for(signature: tuple[str, ...]) -> str:
    """Deterministic room ID derived from a boundary signature."""
    digest = hashlib.sha1("|".join(signature).encode("utf-8")).hexdigest()
    return f"room-{digest[:10]}"


def _unique_in_order(items: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return tuple(seen)


def _node_groups(scene: Scene) -> dict[str, int]:
    """Index of the connected wall group each node belongs to."""
    groups = {}
    for index, component in enumerate(nx.connected_components(build_node_graph(scene))):
        for node_id in component:
            groups[node_id] = index
    return groups


def _reconcile(rooms: list[Room], previous: Iterable[Room]) -> list[Room]:
    """Carry IDs, labels, elevations and numbering over from earlier rooms.

    A room matches an earlier one when their sorted boundary signatures are
    equal. Display numbers survive only when the set of signatures is
    unchanged; otherwise rooms are renumbered by ascending area.
    """
    by_signature: dict[tuple[str, ...], Room] = {}
    for room in previous:
        by_signature.setdefault(room.signature, room)

    unchanged = bool(by_signature) and {room.signature for room in rooms} == set(by_signature)

    used_ids: set[str] = set()
    result = []
    for number, room in enumerate(rooms, start=1):
        match = by_signature.pop(room.signature, None)
        if match is not None:
            room_id = match.id
            room = replace(
                room,
                number=match.number if unchanged else number,
                label_position=match.label_position,
                elevation=match.elevation,
            )
        else:
            room_id = room_id_for(room.signature)
            room = replace(room, number=number)

        candidate, suffix = room_id, 2
        while candidate in used_ids:
            candidate = f"{room_id}-{suffix}"
            suffix += 1
        used_ids.add(candidate)
        result.append(replace(room, id=candidate))
    return result


def detect_rooms(
    scene: Scene,
    previous: Mapping[str, Room] | Iterable[Room] | None = None,
    tol: Tolerances = DEFAULT_TOL,
    trace: TraceHook = NULL_TRACE,
) -> list[Room]:
    """Detect enclosed rooms in a scene.

    Args:
        scene: Scene to analyze. Not modified.
        previous: Rooms from an earlier detection whose identity should be
            preserved; defaults to none.
        tol: Numeric tolerances.
        trace: Hook receiving intermediate decisions.

    Returns:
        Rooms sorted by ascending area. Empty when the scene has fewer than
        three walls. Walls referencing a missing node are ignored, wherever
        they sit; they never bound a room nor bend a corner.
    """
    if len(scene.walls) < MIN_ROOM_WALLS:
        return []

    working = split_walls_at_intersections(scene, trace).scene
    edges = build_half_edges(working)
    faces = detect_faces(working, edges)
    corner_cache: dict[str, dict[str, WallCorners]] = {}

    # Footprints of every wall group; rooms subtract the groups standing inside them.
    groups = _node_groups(working)
    footprints: dict[int, list[tuple]] = {}
    if len(set(groups.values())) > 1:
        for wall in working.walls.values():
            if wall.node_a in groups and wall.node_b in working.nodes:
                footprints.setdefault(groups[wall.node_a], []).append(
                    build_wall_polygon(wall, working, tol, trace, corner_cache)
                )

    rooms = []
    for face in faces:
        if face.is_outer:
            continue

        boundary = _unique_in_order(original_wall_id(wall_id) for wall_id in face.wall_ids)
        if len(boundary) < MIN_ROOM_WALLS:
            trace("rooms.skip_face", reason="walls", walls=len(boundary))
            continue

        polygon = inner_room_polygon([edges[edge_id] for edge_id in face.half_edges], working, tol, trace, corner_cache)
        holes: tuple = ()
        if footprints:
            own = groups[face.nodes[0]]
            others = [shape for group, shapes in footprints.items() if group != own for shape in shapes]
            holes = island_holes(polygon, others)
            if holes:
                trace("rooms.holes", walls=len(boundary), holes=len(holes))
        area = polygon_area(polygon, holes)
        if area < MIN_ROOM_AREA:
            trace("rooms.skip_face", reason="area", area=area)
            continue

        rooms.append(
            Room(
                id="",
                number=0,
                boundary=boundary,
                half_edges=face.half_edges,
                area=area,
                perimeter=polygon_perimeter(polygon, holes),
                polygon=polygon,
                centroid=polygon_centroid(polygon, holes),
                holes=holes,
            )
        )

    rooms.sort(key=lambda room: (room.area, room.signature))

    if previous is None:
        previous = ()
    elif isinstance(previous, Mapping):
        previous = previous.values()
    rooms = _reconcile(rooms, previous)

    LOGGER.debug("Detected %d rooms from %d faces", len(rooms), len(faces))
    return rooms


def with_rooms(scene: Scene, tol: Tolerances = DEFAULT_TOL, trace: TraceHook = NULL_TRACE) -> Scene:
    """Return a copy of ``scene`` whose rooms are freshly detected and reconciled."""
    rooms = detect_rooms(scene, previous=scene.rooms, tol=tol, trace=trace)
    return scene.replace(rooms={room.id: room for room in rooms})

