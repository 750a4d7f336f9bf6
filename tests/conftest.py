"""Shared scene fixtures.

All plans use millimeters and 200 mm thick walls unless stated otherwise.
"""

from __future__ import annotations

import pytest

from wallplanner.core.model import Node, Scene, Wall

THICKNESS = 200.0


def make_scene(nodes: dict, walls: list, thickness: float = THICKNESS) -> Scene:
    """Build a Scene from ``{id: (x, y)}`` nodes and ``(id, a, b)`` walls."""
    return Scene.from_records(
        [Node(node_id, float(x), float(y)) for node_id, (x, y) in nodes.items()],
        [Wall(wall_id, a, b, thickness=thickness) for wall_id, a, b in walls],
    )


@pytest.fixture
def scene_factory():
    return make_scene


@pytest.fixture
def rectangle():
    """A single 4000 x 3000 room, walls running counter-clockwise."""
    return make_scene(
        {"n1": (0, 0), "n2": (4000, 0), "n3": (4000, 3000), "n4": (0, 3000)},
        [("w1", "n1", "n2"), ("w2", "n2", "n3"), ("w3", "n3", "n4"), ("w4", "n4", "n1")],
    )


@pytest.fixture
def two_rooms():
    """Two 4000 x 3000 rooms side by side, sharing wall w7."""
    return make_scene(
        {
            "n1": (0, 0),
            "n2": (4000, 0),
            "n3": (8000, 0),
            "n4": (8000, 3000),
            "n5": (4000, 3000),
            "n6": (0, 3000),
        },
        [
            ("w1", "n1", "n2"),
            ("w2", "n2", "n3"),
            ("w3", "n3", "n4"),
            ("w4", "n4", "n5"),
            ("w5", "n5", "n6"),
            ("w6", "n6", "n1"),
            ("w7", "n2", "n5"),
        ],
    )


@pytest.fixture
def straight_run():
    """Three collinear walls along the X axis."""
    return make_scene(
        {"n1": (0, 0), "n2": (1000, 0), "n3": (2000, 0), "n4": (3000, 0)},
        [("w1", "n1", "n2"), ("w2", "n2", "n3"), ("w3", "n3", "n4")],
    )


@pytest.fixture
def crossing_pair():
    """Two walls crossing at the origin without a shared node."""
    return make_scene(
        {"n1": (-1000, 0), "n2": (1000, 0), "n3": (0, -1000), "n4": (0, 1000)},
        [("w1", "n1", "n2"), ("w2", "n3", "n4")],
    )
