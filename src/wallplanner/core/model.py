"""Core data models for wall planning.

This module defines the planar scene model consumed by the geometry engine:
nodes, thick walls between nodes, and the rooms derived from them. Every
record is immutable; edits produce a new Scene.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from ..config import (
    DEFAULT_ROOM_ELEVATION,
    DEFAULT_WALL_HEIGHT,
    DEFAULT_WALL_RAISE,
    DEFAULT_WALL_THICKNESS,
    SPLIT_SUFFIX,
)


class SceneError(Exception):
    """Raised when a scene is internally inconsistent."""

    pass


class NodeNotFound(SceneError, KeyError):
    """Raised when a node id does not exist in the scene."""

    def __init__(self, node_id: str):
        super().__init__(f"Node '{node_id}' does not exist")
        self.node_id = node_id

    def __str__(self) -> str:
        return self.args[0]


class WallNotFound(SceneError, KeyError):
    """Raised when a wall id does not exist in the scene."""

    def __init__(self, wall_id: str):
        super().__init__(f"Wall '{wall_id}' does not exist")
        self.wall_id = wall_id

    def __str__(self) -> str:
        return self.args[0]


@dataclass(frozen=True)
class Point:
    """Represents a 2D point in space.

    Attributes:
        x: The x-coordinate of the point.
        y: The y-coordinate of the point.
    """

    x: float
    y: float


@dataclass(frozen=True)
class Node:
    """Represents a wall endpoint shared by one or more walls.

    Attributes:
        id: Unique identifier for the node.
        x: The x-coordinate of the node.
        y: The y-coordinate of the node.
        locked: Whether interactive edits may move this node.
    """

    id: str
    x: float
    y: float
    locked: bool = False

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Wall:
    """Represents a thick wall between two nodes.

    The direction from ``node_a`` to ``node_b`` defines the wall's left and
    right sides.

    Attributes:
        id: Unique identifier for the wall.
        node_a: ID of the start node.
        node_b: ID of the end node.
        thickness: Full wall thickness.
        height: Wall height.
        raise_from_floor: Elevation of the wall base above the floor.
    """

    id: str
    node_a: str
    node_b: str
    thickness: float = DEFAULT_WALL_THICKNESS
    height: float = DEFAULT_WALL_HEIGHT
    raise_from_floor: float = DEFAULT_WALL_RAISE

    def other_node(self, node_id: str) -> str:
        """Return the endpoint opposite to ``node_id``."""
        return self.node_b if node_id == self.node_a else self.node_a

    def touches(self, node_id: str) -> bool:
        return node_id in (self.node_a, self.node_b)


@dataclass(frozen=True)
class Room:
    """Represents a room derived from an enclosed cycle of walls.

    Attributes:
        id: Unique identifier for the room.
        number: Display number, assigned by ascending area.
        boundary: Ordered IDs of the user walls enclosing the room.
        half_edges: Ordered half-edge IDs of the room's face cycle.
        area: Area of the inner, thickness-aware polygon.
        perimeter: Perimeter of the inner polygon.
        elevation: Floor elevation of the room.
        label_position: Custom label position, if the user placed one.
        polygon: Inner polygon vertices.
        centroid: Area-weighted centroid of the inner polygon.
        holes: Outlines of free-standing wall groups inside the room; their
            footprint is excluded from the area.
    """

    id: str
    number: int
    boundary: tuple[str, ...]
    half_edges: tuple[str, ...] = ()
    area: float = 0.0
    perimeter: float = 0.0
    elevation: float = DEFAULT_ROOM_ELEVATION
    label_position: Point | None = None
    polygon: tuple[Point, ...] = ()
    centroid: Point | None = None
    holes: tuple[tuple[Point, ...], ...] = ()

    @property
    def signature(self) -> tuple[str, ...]:
        """Order-independent identity of the room's boundary."""
        return tuple(sorted(set(self.boundary)))

    @property
    def label_anchor(self) -> Point | None:
        return self.label_position if self.label_position is not None else self.centroid


@dataclass(frozen=True)
class Scene:
    """Represents a complete floor plan.

    Attributes:
        nodes: Mapping of node ID to Node objects.
        walls: Mapping of wall ID to Wall objects.
        rooms: Mapping of room ID to Room objects (derived).
    """

    nodes: Mapping[str, Node]
    walls: Mapping[str, Wall]
    rooms: Mapping[str, Room] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", dict(self.nodes))
        object.__setattr__(self, "walls", dict(self.walls))
        object.__setattr__(self, "rooms", dict(self.rooms))

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Node],
        walls: Iterable[Wall],
        rooms: Iterable[Room] = (),
    ) -> Scene:
        return cls(
            nodes={node.id: node for node in nodes},
            walls={wall.id: wall for wall in walls},
            rooms={room.id: room for room in rooms},
        )

    def node(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NodeNotFound(node_id) from None

    def wall(self, wall_id: str) -> Wall:
        try:
            return self.walls[wall_id]
        except KeyError:
            raise WallNotFound(wall_id) from None

    def endpoints(self, wall: Wall) -> tuple[Point, Point]:
        """Return the centerline endpoints of ``wall``.

        Raises:
            NodeNotFound: If the wall references a missing node.
        """
        return self.node(wall.node_a).position, self.node(wall.node_b).position

    def walls_at_node(self, node_id: str) -> list[Wall]:
        return [wall for wall in self.walls.values() if wall.touches(node_id)]

    def replace(self, **changes) -> Scene:
        return replace(self, **changes)


def original_wall_id(wall_id: str) -> str:
    """Strip the split suffix from a segment ID, e.g. ``w1-split-2`` -> ``w1``."""
    head, sep, _ = wall_id.partition(SPLIT_SUFFIX)
    return head if sep else wall_id
