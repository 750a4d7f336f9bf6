"""Post-apply validation functions for scene edits.

These run after an operation produced a new Scene and reject results that
would leave the wall network inconsistent.
"""

from __future__ import annotations

from typing import Set

from ..core.model import Scene


class InvalidOperation(Exception):
    """Raised when an operation violates scene invariants."""

    pass


def validate_references(scene: Scene) -> bool:
    """Check that every wall references two existing nodes.

    Args:
        scene: The scene to validate.

    Returns:
        True if no wall dangles, False otherwise.
    """
    return all(wall.node_a in scene.nodes and wall.node_b in scene.nodes for wall in scene.walls.values())


def validate_distinct_endpoints(scene: Scene) -> bool:
    """Check that no wall joins a node to itself."""
    return all(wall.node_a != wall.node_b for wall in scene.walls.values())


def validate_fixed(original: Scene, scene: Scene, fixed_entities: Set[str]) -> bool:
    """Validate that fixed nodes and walls were not modified.

    Locked nodes are always treated as fixed.

    Args:
        original: The scene before the operation.
        scene: The scene after the operation.
        fixed_entities: Node or wall IDs that must stay unchanged.

    Returns:
        True if every fixed entity is present and unchanged.
    """
    fixed = set(fixed_entities) | {node.id for node in original.nodes.values() if node.locked}
    for entity_id in fixed:
        if entity_id in original.nodes and scene.nodes.get(entity_id) != original.nodes[entity_id]:
            return False
        if entity_id in original.walls and scene.walls.get(entity_id) != original.walls[entity_id]:
            return False
    return True


def validate_all(scene: Scene, original: Scene | None = None, fixed_entities: Set[str] | None = None) -> bool:
    """Run all validators on the scene.

    Args:
        scene: The scene to validate.
        original: The scene before the operation, for the fixed-entity check.
        fixed_entities: Set of entity IDs that should remain unchanged.

    Returns:
        True if all validations pass.

    Raises:
        InvalidOperation: If any validation fails with details about the failure.
    """
    if fixed_entities is None:
        fixed_entities = set()

    if not validate_references(scene):
        dangling = sorted(
            wall.id
            for wall in scene.walls.values()
            if wall.node_a not in scene.nodes or wall.node_b not in scene.nodes
        )
        raise InvalidOperation(f"Walls reference missing nodes: {', '.join(dangling)}")

    if not validate_distinct_endpoints(scene):
        raise InvalidOperation("A wall starts and ends at the same node")

    if original is not None and not validate_fixed(original, scene, fixed_entities):
        raise InvalidOperation("Fixed entities validation failed: fixed entities were modified")

    return True
