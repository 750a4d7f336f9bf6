"""Tolerances and constants for the wall planner geometry engine.

All lengths are in the scene's linear unit (millimeters in practice).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tolerances:
    """Numeric tolerances shared by the engine entry points.

    Attributes:
        epsilon: Threshold below which a cross product counts as parallel.
        merge_tol: Distance under which two points are the same node.
        snap_px: Snap radius in screen pixels.
        collinear_tol_rad: Angular tolerance for collinear wall classification.
    """

    epsilon: float = 1e-6
    merge_tol: float = 1.0
    snap_px: float = 10.0
    collinear_tol_rad: float = 0.0175


DEFAULT_TOL = Tolerances()

# Mitering
MAX_MITER_LENGTH_RATIO = 10.0  # corners farther than this x thickness are rejected
POINT_EQUAL_TOLERANCE = 1e-6

# Room detection
MIN_ROOM_AREA = 100_000.0  # 0.1 m^2 in mm^2
DEFAULT_ROOM_ELEVATION = 100.0

# Wall splitting
INTERSECTION_TOLERANCE = 1.0
SNAP_TO_NODE_TOLERANCE = 1.0
DEDUPE_TOLERANCE = 0.5
MIN_SPLIT_WALL_LENGTH = 0.01
SPLIT_SUFFIX = "-split-"

# Snapping
DEFAULT_PIXELS_PER_UNIT = 0.1  # 100% zoom: 1 cm on screen per pixel
GRID_SPACING = 1000.0
ANGLE_INCREMENT_DEG = 15.0
MIN_ANGLE_RAY_LENGTH = 1.0
GUIDELINE_TOLERANCE = 50.0
GUIDELINE_INTERSECTION_TOLERANCE = 50.0
GUIDELINE_REDUNDANCY_TOLERANCE = 1.0
ON_ANGLE_RAY_TOLERANCE = 1.0
EDGE_SNAP_MARGIN = 0.05

# Rigid-body dragging
RIGID_BODY_SNAP_TOLERANCE = 0.5
SAME_POSITION_TOLERANCE = 1.0

# Walls
MIN_WALL_LENGTH = 100.0
DEFAULT_WALL_THICKNESS = 200.0
DEFAULT_WALL_HEIGHT = 2700.0
DEFAULT_WALL_RAISE = 0.0
