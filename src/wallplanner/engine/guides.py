"""Axis-aligned alignment guidelines through scene nodes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from ..config import GUIDELINE_REDUNDANCY_TOLERANCE
from ..core.model import Point, Scene
from ..geom.lines import intersect_ray_axis


class GuidelineAxis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Guideline:
    """Infinite horizontal or vertical line through a node.

    Attributes:
        axis: Orientation of the line.
        value: Y for horizontal guidelines, X for vertical ones.
        origin: Position of the node the guideline passes through.
        node_id: ID of that node.
        visual_only: Drawn for context only; carries no label.
    """

    axis: GuidelineAxis
    value: float
    origin: Point
    node_id: str
    visual_only: bool = False

    @property
    def horizontal(self) -> bool:
        return self.axis is GuidelineAxis.HORIZONTAL

    def distance_to(self, point: Point) -> float:
        return abs(point.y - self.value) if self.horizontal else abs(point.x - self.value)

    def project(self, point: Point) -> Point:
        return Point(point.x, self.value) if self.horizontal else Point(self.value, point.y)

    def crossing(self, other: Guideline) -> Point | None:
        """Intersection with a guideline of the other axis."""
        if self.axis is other.axis:
            return None
        if self.horizontal:
            return Point(other.value, self.value)
        return Point(self.value, other.value)

    def intersect_ray(self, origin: Point, direction: Point) -> Point | None:
        return intersect_ray_axis(origin, direction, self.horizontal, self.value)

    def as_visual(self) -> Guideline:
        return replace(self, visual_only=True)


def generate_node_guidelines(
    scene: Scene,
    exclude_node_ids: Iterable[str] = (),
    origin: Point | None = None,
) -> list[Guideline]:
    """Create a horizontal and a vertical guideline through every node.

    Args:
        scene: Scene supplying the nodes.
        exclude_node_ids: Nodes that get no guidelines.
        origin: When set, guidelines sharing the origin's X or Y (within 1
            unit) are dropped, since they would only repeat the origin's own.

    Returns:
        Guidelines in node order, horizontal before vertical.
    """
    excluded = set(exclude_node_ids)
    guidelines = []
    for node in scene.nodes.values():
        if node.id in excluded:
            continue
        same_x = origin is not None and abs(node.x - origin.x) < GUIDELINE_REDUNDANCY_TOLERANCE
        same_y = origin is not None and abs(node.y - origin.y) < GUIDELINE_REDUNDANCY_TOLERANCE
        if not same_y:
            guidelines.append(Guideline(GuidelineAxis.HORIZONTAL, node.y, node.position, node.id))
        if not same_x:
            guidelines.append(Guideline(GuidelineAxis.VERTICAL, node.x, node.position, node.id))
    return guidelines


def find_closest_guideline(
    point: Point, guidelines: Iterable[Guideline], tolerance: float
) -> tuple[Guideline, Point] | None:
    """Closest guideline within ``tolerance`` of ``point`` and the projection onto it.

    Coinciding guidelines resolve to the lowest node ID.
    """
    in_reach = [(guideline.distance_to(point), guideline.node_id, guideline) for guideline in guidelines]
    in_reach = [item for item in in_reach if item[0] <= tolerance]
    if not in_reach:
        return None
    best = min(in_reach, key=lambda item: item[:2])[2]
    return best, best.project(point)
