"""Material variants and scatter dispatch.

Materials form a closed set of variants tagged by MaterialType. Every
material registered with the scene receives a unified material ID; two
Taichi fields map that ID to its variant tag and to its index inside the
variant's own parameter registry. Any number of spheres may share one ID.

The single entry point for the integrator is ``scatter``:
    did_scatter, attenuation, scattered, rng = scatter(ray_in, rec, rng)
"""

from enum import IntEnum

import taichi as ti

from spheretracer.core.ray import Ray, make_ray, vec3
from spheretracer.geometry.sphere import HitRecord
from spheretracer.materials.dielectric import scatter_dielectric_by_id
from spheretracer.materials.lambertian import scatter_lambertian_by_id
from spheretracer.materials.metal import scatter_metal_by_id


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 768  # 256 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified material ID to a type-local material.

    Args:
        material_type: The variant of the material.
        type_index: Index of the material in its variant's registry.

    Returns:
        The new unified material ID.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered materials across all types."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific registry, or -1 for an invalid
        material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.func
def scatter(ray_in: Ray, rec: HitRecord, rng):
    """Scatter an incoming ray off the material at a hit.

    Args:
        ray_in: The ray that produced the hit.
        rec: The hit record; its material_id selects the material.
        rng: Random generator state.

    Returns:
        A tuple of (did_scatter, attenuation, scattered, rng). did_scatter
        is 0 when the ray is absorbed (including for an unknown material),
        in which case attenuation and scattered carry no meaning.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    s = ti.cast(rng, ti.u32)
    direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        direction, attenuation, s = scatter_lambertian_by_id(type_index, rec.normal, s)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        direction, attenuation, did_scatter, s = scatter_metal_by_id(
            type_index, ray_in.direction, rec.normal, s
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        direction, attenuation, did_scatter, s = scatter_dielectric_by_id(
            type_index, ray_in.direction, rec.normal, rec.front_face, s
        )

    return did_scatter, attenuation, make_ray(rec.point, direction), s
