"""Engine module for wall planning.

This module provides room detection, wall splitting, snapping and the API
for applying edit operations to scenes.
"""

from .api import analyze, apply, apply_operations
from .rigid import find_rigid_body_snap_delta, resolve_rigid_body_drag
from .rooms import detect_rooms
from .snapping import SnapKind, SnapOptions, find_all_snap_candidates, find_snap_candidate
from .splitting import split_walls_at_intersections

__all__ = [
    "SnapKind",
    "SnapOptions",
    "analyze",
    "apply",
    "apply_operations",
    "detect_rooms",
    "find_all_snap_candidates",
    "find_rigid_body_snap_delta",
    "find_snap_candidate",
    "resolve_rigid_body_drag",
    "split_walls_at_intersections",
]
