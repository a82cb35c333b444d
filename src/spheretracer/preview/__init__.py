"""Preview module for image output.

Components:
    export: Gamma correction and PPM/PNG image export
"""

from .export import (
    MAX_INTENSITY,
    compute_rmse,
    format_ppm,
    gamma_correct,
    image_to_uint8,
    output_format,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    "MAX_INTENSITY",
    "gamma_correct",
    "image_to_uint8",
    "format_ppm",
    "write_ppm",
    "save_png",
    "output_format",
    "save_image",
    "compute_rmse",
]
