"""Tests for the half-edge structure and derived graphs."""

from __future__ import annotations

import networkx as nx

from wallplanner.core.topology import (
    build_half_edges,
    build_node_graph,
    build_room_graph,
    detect_faces,
    half_edge_id,
    wall_sides,
)
from wallplanner.engine.rooms import detect_rooms


def test_half_edges_come_in_twinned_pairs(rectangle):
    edges = build_half_edges(rectangle)

    assert len(edges) == 8
    forward = edges[half_edge_id("w1", "forward")]
    reverse = edges[forward.twin]
    assert reverse.twin == forward.id
    assert (forward.origin, forward.target) == ("n1", "n2")
    assert (reverse.origin, reverse.target) == ("n2", "n1")


def test_next_pointers_walk_the_interior_counter_clockwise(rectangle):
    edges = build_half_edges(rectangle)

    assert edges["w1-forward"].next == "w2-forward"
    assert edges["w2-forward"].next == "w3-forward"
    assert edges["w3-forward"].next == "w4-forward"
    assert edges["w4-forward"].next == "w1-forward"


def test_every_half_edge_has_a_successor(two_rooms):
    edges = build_half_edges(two_rooms)

    assert all(edge.next in edges for edge in edges.values())


def test_rectangle_has_one_inner_and_one_outer_face(rectangle):
    faces = detect_faces(rectangle)

    assert len(faces) == 2
    inner = [face for face in faces if not face.is_outer]
    assert len(inner) == 1
    assert inner[0].wall_ids == ("w1", "w2", "w3", "w4")
    assert inner[0].signed_area == 4000 * 3000


def test_open_chain_has_only_an_outer_face(scene_factory):
    scene = scene_factory(
        {"n1": (0, 0), "n2": (4000, 0), "n3": (4000, 3000), "n4": (0, 3000)},
        [("w1", "n1", "n2"), ("w2", "n2", "n3"), ("w3", "n3", "n4")],
    )

    faces = detect_faces(scene)

    assert all(face.is_outer for face in faces)


def test_walls_with_missing_nodes_are_ignored(scene_factory):
    scene = scene_factory({"n1": (0, 0), "n2": (1000, 0)}, [("w1", "n1", "n2"), ("w2", "n2", "ghost")])

    edges = build_half_edges(scene)

    assert set(edges) == {"w1-forward", "w1-reverse"}


def test_wall_sides_of_shared_wall(two_rooms):
    rooms = {tuple(room.signature): room for room in detect_rooms(two_rooms)}
    left_room = rooms[("w1", "w5", "w6", "w7")]
    right_room = rooms[("w2", "w3", "w4", "w7")]

    sides = wall_sides(rooms.values())

    # w7 runs north from n2, so the west room is on its left.
    assert sides["w7"] == (left_room.id, right_room.id)
    assert sides["w1"] == (left_room.id, None)


def test_room_graph_joins_rooms_across_shared_walls(two_rooms):
    rooms = detect_rooms(two_rooms)

    graph = build_room_graph(rooms)

    assert graph.number_of_nodes() == 2
    assert graph.number_of_edges() == 1
    first, second = (room.id for room in rooms)
    assert graph.edges[first, second]["wall_ids"] == ["w7"]


def test_node_graph_counts_disconnected_pieces(scene_factory):
    scene = scene_factory(
        {"n1": (0, 0), "n2": (1000, 0), "n3": (5000, 0), "n4": (6000, 0)},
        [("w1", "n1", "n2"), ("w2", "n3", "n4")],
    )

    graph = build_node_graph(scene)

    assert nx.number_connected_components(graph) == 2
    assert graph.edges["n1", "n2"]["wall_id"] == "w1"
