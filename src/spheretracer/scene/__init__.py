"""Scene module: sphere storage, nearest-hit queries and scene building.

Components:
    intersection: Sphere storage in Taichi fields and intersect_scene
    manager: SceneManager, the scene-building and serialization API
    showcase: Ready-made demo scene with its camera
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere,
    get_sphere_count,
    intersect_scene,
)
from .manager import MaterialInfo, SceneConfig, SceneManager, SphereInfo
from .showcase import create_showcase_camera, create_showcase_scene

__all__ = [
    # Intersection
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "MaterialInfo",
    "SceneConfig",
    "SceneManager",
    "SphereInfo",
    # Showcase
    "create_showcase_camera",
    "create_showcase_scene",
]
