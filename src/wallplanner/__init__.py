"""Wall Planner - geometric topology engine for 2D floor plans."""

__version__ = "0.1.0"

from .core.model import Node, Point, Room, Scene, Wall

__all__ = ["Node", "Point", "Room", "Scene", "Wall"]
