"""JSON scene fixtures."""

from .parser import load_scene, save_scene, scene_from_dict, scene_to_dict

__all__ = ["load_scene", "save_scene", "scene_from_dict", "scene_to_dict"]
