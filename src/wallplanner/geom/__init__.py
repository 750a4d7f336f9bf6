"""Planar geometry for wall plans.

This module provides vector and intersection primitives, mitered wall
outlines, polygon measures, and value-in/value-out scene edits.
"""

from .miter import CornerState, WallCorners, build_wall_polygon, build_wall_polygons, compute_node_corners
from .polygon import polygon_area, polygon_centroid, polygon_perimeter, signed_area

__all__ = [
    "CornerState",
    "WallCorners",
    "build_wall_polygon",
    "build_wall_polygons",
    "compute_node_corners",
    "polygon_area",
    "polygon_centroid",
    "polygon_perimeter",
    "signed_area",
]
