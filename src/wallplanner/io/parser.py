"""Parser for wall plan JSON files.

This module converts between JSON scene fixtures and Scene objects. The
format keys every record by its ID:

    {
      "nodes": {"n1": {"x": 0, "y": 0}, ...},
      "walls": {"w1": {"a": "n1", "b": "n2", "thickness": 200}, ...},
      "rooms": {"room-1": {"number": 1, "boundary": ["w1", ...]}, ...}
    }

Rooms are optional; when present they seed room identity on re-detection.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..config import DEFAULT_ROOM_ELEVATION, DEFAULT_WALL_HEIGHT, DEFAULT_WALL_RAISE, DEFAULT_WALL_THICKNESS
from ..core.model import Node, Point, Room, Scene, Wall


def _parse_point(data: Any) -> Point | None:
    if data is None:
        return None
    return Point(float(data["x"]), float(data["y"]))


def scene_from_dict(data: dict) -> Scene:
    """Build a Scene from parsed JSON data.

    Args:
        data: Mapping with ``nodes``, ``walls`` and optional ``rooms``.

    Returns:
        Scene holding the parsed records.

    Raises:
        ValueError: If a record is malformed.
    """
    nodes = {}
    for node_id, node_data in data.get("nodes", {}).items():
        try:
            nodes[node_id] = Node(
                id=node_id,
                x=float(node_data["x"]),
                y=float(node_data["y"]),
                locked=bool(node_data.get("locked", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid node data for {node_id}: {e}") from e

    walls = {}
    for wall_id, wall_data in data.get("walls", {}).items():
        try:
            walls[wall_id] = Wall(
                id=wall_id,
                node_a=str(wall_data["a"]),
                node_b=str(wall_data["b"]),
                thickness=float(wall_data.get("thickness", DEFAULT_WALL_THICKNESS)),
                height=float(wall_data.get("height", DEFAULT_WALL_HEIGHT)),
                raise_from_floor=float(wall_data.get("raise_from_floor", DEFAULT_WALL_RAISE)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid wall data for {wall_id}: {e}") from e

    rooms = {}
    for room_id, room_data in data.get("rooms", {}).items():
        try:
            rooms[room_id] = Room(
                id=room_id,
                number=int(room_data.get("number", 0)),
                boundary=tuple(room_data["boundary"]),
                area=float(room_data.get("area", 0.0)),
                perimeter=float(room_data.get("perimeter", 0.0)),
                elevation=float(room_data.get("elevation", DEFAULT_ROOM_ELEVATION)),
                label_position=_parse_point(room_data.get("label_position")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid room data for {room_id}: {e}") from e

    return Scene(nodes=nodes, walls=walls, rooms=rooms)


def scene_to_dict(scene: Scene) -> dict:
    """Serialize a Scene to JSON-compatible data."""
    data: dict[str, Any] = {
        "nodes": {
            node.id: {"x": node.x, "y": node.y, **({"locked": True} if node.locked else {})}
            for node in scene.nodes.values()
        },
        "walls": {
            wall.id: {
                "a": wall.node_a,
                "b": wall.node_b,
                "thickness": wall.thickness,
                "height": wall.height,
                "raise_from_floor": wall.raise_from_floor,
            }
            for wall in scene.walls.values()
        },
    }
    if scene.rooms:
        data["rooms"] = {
            room.id: {
                "number": room.number,
                "boundary": list(room.boundary),
                "area": room.area,
                "perimeter": room.perimeter,
                "elevation": room.elevation,
                **(
                    {"label_position": {"x": room.label_position.x, "y": room.label_position.y}}
                    if room.label_position is not None
                    else {}
                ),
            }
            for room in scene.rooms.values()
        }
    return data


def load_scene(path: str | Path) -> Scene:
    """Load a scene from a JSON file.

    Args:
        path: Path to the JSON file containing scene data.

    Returns:
        Scene object representing the plan.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the scene data is malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Scene file must contain a JSON object: {path}")
    return scene_from_dict(data)


def save_scene(scene: Scene, path: str | Path) -> None:
    with open(Path(path), "w", encoding="utf-8") as f:
        json.dump(scene_to_dict(scene), f, indent=2)
