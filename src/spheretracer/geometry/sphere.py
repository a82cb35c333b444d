"""Sphere primitive with ray-sphere intersection.

The sphere radius is signed. A negative radius keeps the same surface but
flips the outward normal, which turns the sphere inside out. Pairing a glass
sphere with a slightly smaller negative-radius glass sphere produces a hollow
glass shell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import Ray, ray_at, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, signed radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The signed radius. Negative values invert the normal.
        material_id: Unified material ID shared with other spheres.
    """

    center: vec3
    radius: ti.f64
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 on a miss.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always facing against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived on the side the outward normal
            points to, 0 otherwise. Only valid if hit == 1.
        material_id: Material of the surface that was hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Test for ray-sphere intersection.

    Solves |O + tD - C|^2 = r^2 with the half-b quadratic:
        a = D . D
        half_b = (O - C) . D
        c = |O - C|^2 - r^2
        discriminant = half_b^2 - a * c

    The near root is preferred. When it falls outside (t_min, t_max), for
    instance because the ray starts inside the sphere, the far root is used.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound for accepted hits.
        t_max: Exclusive upper bound for accepted hits.

    Returns:
        A HitRecord; check the hit field to see whether the ray hit.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = tm.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        valid = root > t_min and root < t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = root > t_min and root < t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius

            front_face = 1
            normal = outward_normal
            if tm.dot(ray.direction, outward_normal) >= 0.0:
                front_face = 0
                normal = -outward_normal

            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f64, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, signed radius and material ID."""
    return Sphere(center=center, radius=radius, material_id=material_id)
