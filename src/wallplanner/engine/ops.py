"""Operations engine for scene edits.

This module provides the edits that can be applied to a scene, such as
adding walls, moving and merging nodes, and deleting walls. Every operation
returns a new Scene.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol

from ..config import DEFAULT_WALL_HEIGHT, DEFAULT_WALL_RAISE, DEFAULT_WALL_THICKNESS, MIN_WALL_LENGTH
from ..core.model import Point, Scene
from ..geom import vector as vec
from ..geom.edit import add_wall, delete_walls, merge_nodes, move_node
from .validators import InvalidOperation


class Operation(Protocol):
    """Protocol for scene operations.

    All operations must implement this interface to be compatible
    with the operation registry and execution engine.
    """

    def precheck(self, scene: Scene, **kwargs: Any) -> bool:
        """Validate that the operation can be applied to the scene.

        Args:
            scene: The scene to validate against.
            **kwargs: Operation-specific parameters.

        Returns:
            True if the operation can be applied.

        Raises:
            SceneError: If a referenced node or wall does not exist.
            InvalidOperation: If the operation would violate constraints.
        """
        ...

    def apply(self, scene: Scene, **kwargs: Any) -> Scene:
        """Apply the operation to the scene.

        Args:
            scene: The scene to modify.
            **kwargs: Operation-specific parameters.

        Returns:
            A new Scene with the operation applied.
        """
        ...


def _point(value: Any, name: str) -> Point:
    if isinstance(value, Point):
        return value
    try:
        if isinstance(value, dict):
            return Point(float(value["x"]), float(value["y"]))
        x, y = value
        return Point(float(x), float(y))
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid point for '{name}': {value!r}") from e


class AddWallOp:
    """Operation to add a wall between two positions.

    Endpoints snap onto existing nodes within the merge tolerance.
    """

    def precheck(self, scene: Scene, start: Any, end: Any, **kwargs: Any) -> bool:
        length = vec.distance(_point(start, "start"), _point(end, "end"))
        if length < MIN_WALL_LENGTH:
            raise InvalidOperation(f"Wall length {length:.1f} is below the minimum of {MIN_WALL_LENGTH:g}")
        wall_id = kwargs.get("id")
        if wall_id is not None and wall_id in scene.walls:
            raise InvalidOperation(f"Wall '{wall_id}' already exists")
        return True

    def apply(self, scene: Scene, start: Any, end: Any, **kwargs: Any) -> Scene:
        new_scene, _ = add_wall(
            scene,
            _point(start, "start"),
            _point(end, "end"),
            thickness=float(kwargs.get("thickness", DEFAULT_WALL_THICKNESS)),
            height=float(kwargs.get("height", DEFAULT_WALL_HEIGHT)),
            raise_from_floor=float(kwargs.get("raise_from_floor", DEFAULT_WALL_RAISE)),
            wall_id=kwargs.get("id"),
        )
        return new_scene


class MoveNodeOp:
    """Operation to move a node to a new position; attached walls follow."""

    def precheck(self, scene: Scene, node: str, to: Any, **kwargs: Any) -> bool:
        if scene.node(node).locked:
            raise InvalidOperation(f"Node '{node}' is locked")
        _point(to, "to")
        return True

    def apply(self, scene: Scene, node: str, to: Any, **kwargs: Any) -> Scene:
        return move_node(scene, node, _point(to, "to"))


class MergeNodesOp:
    """Operation to merge one node into another.

    Walls that would collapse onto a single node are removed.
    """

    def precheck(self, scene: Scene, source: str, target: str, **kwargs: Any) -> bool:
        if scene.node(source).locked:
            raise InvalidOperation(f"Node '{source}' is locked")
        scene.node(target)
        if source == target:
            raise InvalidOperation("Cannot merge a node into itself")
        return True

    def apply(self, scene: Scene, source: str, target: str, **kwargs: Any) -> Scene:
        return merge_nodes(scene, source, target)


class DeleteWallsOp:
    """Operation to delete walls, dropping nodes left without walls."""

    def precheck(self, scene: Scene, walls: list, **kwargs: Any) -> bool:
        if not walls:
            raise InvalidOperation("No walls given")
        for wall_id in walls:
            scene.wall(wall_id)
        return True

    def apply(self, scene: Scene, walls: list, **kwargs: Any) -> Scene:
        return delete_walls(scene, walls)


# Operation registry
_OPERATIONS: Dict[str, Operation] = {
    "add_wall": AddWallOp(),
    "move_node": MoveNodeOp(),
    "merge_nodes": MergeNodesOp(),
    "delete_walls": DeleteWallsOp(),
}


def register_operation(name: str, operation: Operation) -> None:
    """Register a new operation type.

    Args:
        name: Name of the operation.
        operation: Operation instance to register.
    """
    _OPERATIONS[name] = operation


def get_operation(name: str) -> Operation:
    """Get an operation by name.

    Raises:
        KeyError: If the operation is not registered.
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Operation '{name}' is not registered")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    return list(_OPERATIONS.keys())
