"""Showcase scene: a row of spheres in every material on a large ground sphere.

The scene contains:
- A huge purple Lambertian ground sphere
- A pink Lambertian sphere in the middle
- A hollow glass ball with a small bronze sphere inside it on the left
- A mirror-like metal sphere on the right
- A front row of small spheres: solid glass, hollow glass, fuzzy metal,
  red metal and bronze

The camera looks slightly down at the group with a shallow depth of field
focused on the look-at point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretracer.scene.showcase import create_showcase_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> setup_camera(camera)
"""

import math

from spheretracer.camera.thin_lens import ThinLensCamera
from spheretracer.scene.manager import SceneManager

# Material parameters
GROUND_ALBEDO = (0.3, 0.0, 0.4)
CENTER_ALBEDO = (0.9, 0.1, 0.6)
GLASS_IOR = 1.5
MIRROR_ALBEDO = (0.7, 0.7, 0.7)
MIRROR_FUZZ = 0.2
FUZZY_METAL_FUZZ = 0.9
BRONZE_ALBEDO = (0.8, 0.45, 0.3)
BRONZE_FUZZ = 0.6
RED_METAL_ALBEDO = (1.0, 0.0, 0.0)
RED_METAL_FUZZ = 0.1

# Camera parameters
LOOKFROM = (0.35, 0.5, 2.0)
LOOKAT = (0.0, 0.0, -0.75)
VUP = (0.0, 1.75, 0.0)
VFOV = 40.0
APERTURE = 0.075


def create_showcase_camera(aspect_ratio: float = 16.0 / 9.0) -> ThinLensCamera:
    """Create the showcase camera, focused on the look-at point.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        The configured ThinLensCamera.
    """
    focus_dist = math.dist(LOOKFROM, LOOKAT)
    return ThinLensCamera(
        lookfrom=LOOKFROM,
        lookat=LOOKAT,
        vup=VUP,
        vfov=VFOV,
        aspect_ratio=aspect_ratio,
        aperture=APERTURE,
        focus_dist=focus_dist,
    )


def create_showcase_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the showcase scene and its camera.

    Materials are created once and shared: all glass surfaces use a single
    dielectric, and the bronze appears twice.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IOR)
    mirror = scene.add_metal_material(MIRROR_ALBEDO, MIRROR_FUZZ)
    fuzzy_metal = scene.add_metal_material(MIRROR_ALBEDO, FUZZY_METAL_FUZZ)
    bronze = scene.add_metal_material(BRONZE_ALBEDO, BRONZE_FUZZ)
    red_metal = scene.add_metal_material(RED_METAL_ALBEDO, RED_METAL_FUZZ)

    scene.add_sphere((0.0, -1000.5, -1.0), 1000.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)

    # Hollow glass ball holding a bronze sphere
    scene.add_hollow_sphere((-1.0, 0.0, -1.0), 0.5, 0.01, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.2, bronze)

    scene.add_sphere((1.0, 0.0, -1.0), 0.5, mirror)

    # Front row
    scene.add_sphere((-1.2, -0.3, -0.3), 0.2, glass)
    scene.add_hollow_sphere((-0.6, -0.3, -0.3), 0.2, 0.01, glass)
    scene.add_sphere((0.0, -0.3, -0.3), 0.2, fuzzy_metal)
    scene.add_sphere((0.6, -0.3, -0.3), 0.2, red_metal)
    scene.add_sphere((1.2, -0.3, -0.3), 0.2, bronze)

    return scene, create_showcase_camera(aspect_ratio)
