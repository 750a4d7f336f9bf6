"""Core data models for wall planning."""

from .model import Node, NodeNotFound, Point, Room, Scene, SceneError, Wall, WallNotFound, original_wall_id

__all__ = [
    "Node",
    "NodeNotFound",
    "Point",
    "Room",
    "Scene",
    "SceneError",
    "Wall",
    "WallNotFound",
    "original_wall_id",
]
