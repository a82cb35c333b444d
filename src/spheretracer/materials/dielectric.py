"""Dielectric (clear glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

Outside total internal reflection the material picks reflection or
refraction at random, reflecting with the Schlick reflectance as
probability. Glass is perfectly clear: the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from spheretracer.core.sampling import random_real


@ti.func
def refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Ratio of refractive indices across the surface.

    Entering the medium (front face) gives 1 / ior, leaving it gives ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within the material.

    Returns:
        1 if refraction is impossible, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    sin_theta = tm.sqrt(1.0 - cos_theta * cos_theta)
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f64:
    """Compute the reflection probability using Schlick's approximation.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within the material.

    Returns:
        The reflectance in [0, 1].
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within the material.
        rng: Random generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
        Attenuation is always white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = unit_vector(incident_direction)
    ratio = refraction_ratio(ior, front_face)

    cannot_refract = will_reflect(ior, incident_direction, normal, front_face)
    reflectance = fresnel_reflectance(ior, incident_direction, normal, front_face)

    u, s = random_real(rng)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract == 1 or u < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    did_scatter = 1

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng,
):
    """Scatter off a registered dielectric material.

    Looks up the IOR from the registry and calls scatter_dielectric.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face, rng)
