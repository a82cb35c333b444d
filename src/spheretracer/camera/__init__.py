"""Camera module for primary ray generation.

Components:
    thin_lens: Positionable perspective camera with defocus blur
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
