"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    sampling: Explicit, seedable random number generation and samplers
    config: Render configuration and Taichi initialization
    integrator: Light transport loop and render target
    progressive: Batched sample accumulation with progress reporting

Each pixel sample follows one light path: the camera ray bounces between
surfaces, multiplying its throughput by each material's attenuation, until
it escapes to the sky, is absorbed, or runs out of depth.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .sampling import (
    next_u32,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_real,
    random_unit_vector,
    seed_rng,
    wang_hash,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from spheretracer.core.integrator or spheretracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "wang_hash",
    "seed_rng",
    "next_u32",
    "random_real",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
