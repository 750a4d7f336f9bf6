"""Tests for room detection and room identity."""

from __future__ import annotations

from dataclasses import replace

import pytest

from wallplanner.core.model import Point, Wall
from wallplanner.engine.rooms import detect_rooms, room_id_for, with_rooms
from wallplanner.geom.edit import delete_walls, move_node
from wallplanner.geom.hit import hit_test_rooms

INNER_AREA = 3800 * 2800


def test_rectangle_yields_one_room_measured_inside_the_walls(rectangle):
    rooms = detect_rooms(rectangle)

    assert len(rooms) == 1
    room = rooms[0]
    assert room.area == pytest.approx(INNER_AREA)
    assert room.perimeter == pytest.approx(2 * (3800 + 2800))
    assert room.boundary == ("w1", "w2", "w3", "w4")
    assert room.number == 1
    assert (room.centroid.x, room.centroid.y) == pytest.approx((2000.0, 1500.0))


def test_room_id_is_derived_from_boundary(rectangle):
    room = detect_rooms(rectangle)[0]

    assert room.id == room_id_for(("w1", "w2", "w3", "w4"))
    assert room.id.startswith("room-")


def test_removing_a_wall_opens_the_room(rectangle):
    assert detect_rooms(delete_walls(rectangle, ["w3"])) == []


def test_fewer_than_three_walls_never_form_a_room(crossing_pair):
    assert detect_rooms(crossing_pair) == []


def test_shared_wall_separates_two_rooms(two_rooms):
    rooms = detect_rooms(two_rooms)

    assert len(rooms) == 2
    assert [room.number for room in rooms] == [1, 2]
    assert {room.signature for room in rooms} == {("w1", "w5", "w6", "w7"), ("w2", "w3", "w4", "w7")}
    for room in rooms:
        assert room.area == pytest.approx(INNER_AREA)


def test_rooms_are_sorted_by_area(two_rooms):
    scene = move_node(move_node(two_rooms, "n3", Point(9000, 0)), "n4", Point(9000, 3000))

    rooms = detect_rooms(scene)

    assert rooms[0].signature == ("w1", "w5", "w6", "w7")
    assert rooms[0].area < rooms[1].area


def test_crossing_wall_is_split_into_two_rooms(scene_factory):
    scene = scene_factory(
        {
            "n1": (0, 0),
            "n2": (4000, 0),
            "n3": (4000, 3000),
            "n4": (0, 3000),
            "n5": (2000, -1000),
            "n6": (2000, 4000),
        },
        [
            ("w1", "n1", "n2"),
            ("w2", "n2", "n3"),
            ("w3", "n3", "n4"),
            ("w4", "n4", "n1"),
            ("w5", "n5", "n6"),
        ],
    )

    rooms = detect_rooms(scene)

    assert len(rooms) == 2
    assert {room.signature for room in rooms} == {("w1", "w3", "w4", "w5"), ("w1", "w2", "w3", "w5")}
    for room in rooms:
        assert room.area == pytest.approx(1800 * 2800)
    # The input scene itself is never split.
    assert set(scene.walls) == {"w1", "w2", "w3", "w4", "w5"}


def test_tiny_enclosures_are_ignored(scene_factory):
    scene = scene_factory(
        {"n1": (0, 0), "n2": (500, 0), "n3": (500, 500), "n4": (0, 500)},
        [("w1", "n1", "n2"), ("w2", "n2", "n3"), ("w3", "n3", "n4"), ("w4", "n4", "n1")],
    )

    assert detect_rooms(scene) == []


def test_moving_a_node_keeps_room_identity(rectangle):
    first = with_rooms(rectangle)
    (room,) = first.rooms.values()
    labelled = replace(room, label_position=Point(500.0, 500.0), elevation=50.0)
    scene = first.replace(rooms={room.id: labelled})

    moved = with_rooms(move_node(scene, "n3", Point(4500.0, 3000.0)))

    (after,) = moved.rooms.values()
    assert after.id == room.id
    assert after.number == 1
    assert after.label_position == Point(500.0, 500.0)
    assert after.label_anchor == Point(500.0, 500.0)
    assert after.elevation == 50.0
    assert after.area > room.area


def test_previous_ids_survive_when_a_new_room_appears(two_rooms):
    left_only = delete_walls(two_rooms, ["w3"])
    before = detect_rooms(left_only)
    assert len(before) == 1

    after = detect_rooms(two_rooms, previous=before)

    kept = [room for room in after if room.signature == before[0].signature]
    assert kept[0].id == before[0].id
    assert sorted(room.number for room in after) == [1, 2]


def test_hit_test_finds_room_under_point(two_rooms):
    rooms = detect_rooms(two_rooms)
    right = next(room for room in rooms if "w2" in room.boundary)

    assert hit_test_rooms(Point(6000.0, 1500.0), rooms) == right.id
    assert hit_test_rooms(Point(-500.0, 1500.0), rooms) is None


def _reordered(scene):
    return scene.replace(
        nodes=dict(reversed(list(scene.nodes.items()))),
        walls=dict(reversed(list(scene.walls.items()))),
    )


def _summary(rooms):
    return [(room.id, room.number, room.signature, round(room.area, 3)) for room in rooms]


def test_detection_is_repeatable(two_rooms):
    assert detect_rooms(two_rooms) == detect_rooms(two_rooms)


@pytest.fixture
def crossed_rectangle(scene_factory):
    """The rectangle with a wall running straight through it, unsplit."""
    return scene_factory(
        {"n1": (0, 0), "n2": (4000, 0), "n3": (4000, 3000), "n4": (0, 3000), "n5": (2000, -1000), "n6": (2000, 4000)},
        [("w1", "n1", "n2"), ("w2", "n2", "n3"), ("w3", "n3", "n4"), ("w4", "n4", "n1"), ("w5", "n5", "n6")],
    )


@pytest.mark.parametrize("fixture", ["two_rooms", "crossed_rectangle"])
def test_detection_ignores_record_order(request, fixture):
    scene = request.getfixturevalue(fixture)

    assert _summary(detect_rooms(_reordered(scene))) == _summary(detect_rooms(scene))


def test_walls_with_missing_nodes_are_ignored(rectangle):
    expected = _summary(detect_rooms(rectangle))

    for anchor in ("n1", "n3"):
        ghost = Wall("ghost", anchor, "missing", thickness=200.0)
        scene = rectangle.replace(walls={**rectangle.walls, "ghost": ghost})

        assert _summary(detect_rooms(scene)) == expected


def _hall(scene_factory, nodes, walls):
    return scene_factory(
        {"h1": (0, 0), "h2": (8000, 0), "h3": (8000, 6000), "h4": (0, 6000), **nodes},
        [("hw1", "h1", "h2"), ("hw2", "h2", "h3"), ("hw3", "h3", "h4"), ("hw4", "h4", "h1"), *walls],
    )


HALL_AREA = 7800 * 5800


def test_enclosed_box_is_cut_out_of_the_surrounding_room(scene_factory):
    scene = _hall(
        scene_factory,
        {"b1": (3000, 2000), "b2": (5000, 2000), "b3": (5000, 4000), "b4": (3000, 4000)},
        [("bw1", "b1", "b2"), ("bw2", "b2", "b3"), ("bw3", "b3", "b4"), ("bw4", "b4", "b1")],
    )

    box, hall = detect_rooms(scene)

    assert box.area == pytest.approx(1800 * 1800)
    assert box.holes == ()
    assert len(hall.holes) == 1
    assert hall.area == pytest.approx(HALL_AREA - 2200 * 2200)
    assert hit_test_rooms(Point(4000.0, 3000.0), [box, hall]) == box.id
    assert hit_test_rooms(Point(1000.0, 1000.0), [box, hall]) == hall.id


def test_free_standing_wall_reduces_room_area(scene_factory):
    scene = _hall(scene_factory, {"f1": (2000, 3000), "f2": (6000, 3000)}, [("fw", "f1", "f2")])

    (hall,) = detect_rooms(scene)

    assert hall.area == pytest.approx(HALL_AREA - 4000 * 200)
    assert hit_test_rooms(Point(4000.0, 3000.0), [hall]) is None
    assert hit_test_rooms(Point(4000.0, 2000.0), [hall]) == hall.id
