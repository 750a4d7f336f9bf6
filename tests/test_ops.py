"""Tests for edit operations and the engine API."""

from __future__ import annotations

from dataclasses import replace

import pytest

from wallplanner.core.model import NodeNotFound, Point, WallNotFound
from wallplanner.engine import ops
from wallplanner.engine.api import analyze, apply, apply_operations
from wallplanner.engine.rooms import with_rooms
from wallplanner.engine.validators import InvalidOperation
from wallplanner.geom.edit import add_wall, find_node_at_position
from wallplanner.geom.hit import hit_test_nodes, hit_test_walls


def test_registry_lists_builtin_operations():
    assert set(ops.list_operations()) >= {"add_wall", "move_node", "merge_nodes", "delete_walls"}


def test_register_operation(monkeypatch, rectangle):
    class Rename:
        def precheck(self, scene, node, **kwargs):
            scene.node(node)
            return True

        def apply(self, scene, node, **kwargs):
            return scene

    monkeypatch.setattr(ops, "_OPERATIONS", dict(ops._OPERATIONS))
    ops.register_operation("noop", Rename())

    result = apply(rectangle, {"op": "noop", "node": "n1"})

    assert set(result.walls) == set(rectangle.walls)
    assert len(result.rooms) == 1


def test_unknown_operation_is_rejected(rectangle):
    with pytest.raises(ValueError, match="Unknown operation"):
        apply(rectangle, {"op": "teleport"})


def test_operation_type_is_required(rectangle):
    with pytest.raises(ValueError):
        apply(rectangle, {"node": "n1"})


def test_missing_parameters_are_reported(rectangle):
    with pytest.raises(ValueError, match="Invalid parameters"):
        apply(rectangle, {"op": "move_node", "node": "n1"})


def test_move_node_redetects_rooms(rectangle):
    result = apply(rectangle, {"op": "move_node", "node": "n3", "to": [4500, 3500]})

    assert result.nodes["n3"].position == Point(4500.0, 3500.0)
    assert len(result.rooms) == 1
    assert rectangle.nodes["n3"].position == Point(4000.0, 3000.0)


def test_move_missing_node_raises(rectangle):
    with pytest.raises(NodeNotFound):
        apply(rectangle, {"op": "move_node", "node": "nope", "to": {"x": 0, "y": 0}})


def test_locked_node_cannot_move(rectangle):
    scene = rectangle.replace(nodes={**rectangle.nodes, "n1": replace(rectangle.nodes["n1"], locked=True)})

    with pytest.raises(InvalidOperation, match="locked"):
        apply(scene, {"op": "move_node", "node": "n1", "to": [10, 10]})


def test_fixed_entities_are_protected(rectangle):
    with pytest.raises(InvalidOperation, match="Fixed entities"):
        apply(rectangle, {"op": "move_node", "node": "n1", "to": [10, 10]}, fixed_entities={"n1"})


def test_add_wall_reuses_nearby_nodes(rectangle):
    opened = apply(rectangle, {"op": "delete_walls", "walls": ["w1"]})
    assert opened.rooms == {}

    closed = apply(opened, {"op": "add_wall", "start": [0, 0], "end": [4000.5, 0]})

    (new_wall,) = set(closed.walls) - set(opened.walls)
    assert (closed.walls[new_wall].node_a, closed.walls[new_wall].node_b) == ("n1", "n2")
    assert set(closed.nodes) == set(rectangle.nodes)
    (room,) = closed.rooms.values()
    assert set(room.boundary) == {"w2", "w3", "w4", new_wall}


def test_add_wall_rejects_short_walls(rectangle):
    with pytest.raises(InvalidOperation, match="minimum"):
        apply(rectangle, {"op": "add_wall", "start": [0, 0], "end": [50, 0]})


def test_add_wall_rejects_duplicate_id(rectangle):
    with pytest.raises(InvalidOperation, match="already exists"):
        apply(rectangle, {"op": "add_wall", "start": [0, 0], "end": [0, 5000], "id": "w1"})


def test_add_wall_creates_numbered_nodes(rectangle):
    scene, wall_id = add_wall(rectangle, Point(10000.0, 0.0), Point(12000.0, 0.0), thickness=120.0)

    assert wall_id == "wall-5"
    wall = scene.walls[wall_id]
    assert (wall.node_a, wall.node_b) == ("node-5", "node-6")
    assert wall.thickness == 120.0


def test_merge_nodes_drops_collapsed_walls(rectangle):
    result = apply(rectangle, {"op": "merge_nodes", "source": "n2", "target": "n1"})

    assert "n2" not in result.nodes
    assert "w1" not in result.walls
    assert (result.walls["w2"].node_a, result.walls["w2"].node_b) == ("n1", "n3")


def test_merge_node_into_itself_is_rejected(rectangle):
    with pytest.raises(InvalidOperation):
        apply(rectangle, {"op": "merge_nodes", "source": "n1", "target": "n1"})


def test_delete_walls_removes_orphaned_nodes(rectangle):
    scene = rectangle.replace(
        nodes={**rectangle.nodes, "n5": replace(rectangle.nodes["n1"], id="n5", x=-2000.0)},
    )
    scene, spur = add_wall(scene, Point(0.0, 0.0), Point(-2000.0, 0.0))
    assert scene.walls[spur].node_b == "n5"

    result = apply(scene, {"op": "delete_walls", "walls": [spur]})

    assert "n5" not in result.nodes
    assert "n1" in result.nodes


def test_delete_unknown_wall_raises(rectangle):
    with pytest.raises(WallNotFound):
        apply(rectangle, {"op": "delete_walls", "walls": ["nope"]})


def test_apply_operations_runs_in_order(rectangle):
    result = apply_operations(
        rectangle,
        [
            {"op": "move_node", "node": "n3", "to": [5000, 3000]},
            {"op": "move_node", "node": "n2", "to": [5000, 0]},
        ],
    )

    assert result.nodes["n2"].x == 5000.0
    assert result.nodes["n3"].x == 5000.0
    (room,) = result.rooms.values()
    assert room.area == pytest.approx(4800 * 2800)


def test_analyze_reports_everything(two_rooms):
    result = analyze(with_rooms(two_rooms))

    assert set(result.wall_polygons) == set(two_rooms.walls)
    assert len(result.rooms) == 2
    assert result.room_graph.number_of_edges() == 1
    assert result.components == 1
    assert result.wall_sides["w7"][0] is not None


def test_hit_tests(rectangle):
    assert hit_test_walls(Point(2000.0, 50.0), rectangle, radius=0.0) == "w1"
    assert hit_test_walls(Point(2000.0, 1500.0), rectangle, radius=0.0) is None
    assert hit_test_nodes(Point(3.0, 4.0), rectangle, radius=10.0) == "n1"
    assert find_node_at_position(Point(0.5, 0.0), rectangle) == "n1"
    assert find_node_at_position(Point(5.0, 0.0), rectangle) is None
    assert find_node_at_position(Point(0.5, 0.0), rectangle, exclude_ids={"n1"}) is None


def test_errors_raised_inside_an_operation_propagate(monkeypatch, rectangle):
    class Broken:
        def precheck(self, scene, node, **kwargs):
            return True

        def apply(self, scene, node, **kwargs):
            return scene.node(node).x + "oops"

    monkeypatch.setattr(ops, "_OPERATIONS", dict(ops._OPERATIONS))
    ops.register_operation("broken", Broken())

    with pytest.raises(TypeError):
        apply(rectangle, {"op": "broken", "node": "n1"})
    with pytest.raises(ValueError, match="Invalid parameters"):
        apply(rectangle, {"op": "broken"})
