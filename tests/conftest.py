"""Pytest configuration for spheretracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field allocated by modules imported earlier.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and the render target before and after each test."""
    # Import here so Taichi is initialized before fields are allocated
    from spheretracer.core.integrator import reset_render_target
    from spheretracer.materials.dielectric import clear_dielectric_materials
    from spheretracer.materials.lambertian import clear_lambertian_materials
    from spheretracer.materials.material import clear_material_tracking
    from spheretracer.materials.metal import clear_metal_materials
    from spheretracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_tracking()
        reset_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def setup_test_camera():
    """Set up a pinhole camera at the origin looking down -z."""
    from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)
    return camera
