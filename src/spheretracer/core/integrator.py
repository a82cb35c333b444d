"""Monte Carlo light transport integrator.

This module implements the rendering kernel: it shoots jittered camera rays
through every pixel, follows each ray as it scatters from surface to surface,
and averages the resulting colors into an accumulation buffer.

The light transport is the recursive ray-color estimator
    color(ray, depth) = attenuation * color(scattered, depth - 1)
written as a loop with a throughput accumulator, since Taichi functions
cannot recurse. A path ends when:
    - the depth budget is used up (black)
    - the material absorbs the ray (black)
    - the ray escapes the scene (sky gradient times throughput)

Every pixel sample draws from its own random stream seeded from (seed, pixel
index, sample index), so results only depend on the seed and the total number
of samples, never on scheduling or batch sizes.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretracer.core.integrator import render_image, setup_render_target
    >>> from spheretracer.scene.showcase import create_showcase_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, max_depth=10, seed=0)
"""

import logging
import time

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretracer.camera.thin_lens import get_ray
from spheretracer.core.config import check_seed
from spheretracer.core.ray import Ray, make_ray, unit_vector, vec3
from spheretracer.core.sampling import random_real, seed_rng
from spheretracer.materials.material import scatter
from spheretracer.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Hits closer than this are ignored to avoid self-intersection ("shadow acne")
T_MIN = 0.001

# Maximum ray distance
T_MAX = float("inf")

# =============================================================================
# Render Target (Accumulation Buffer)
# =============================================================================

MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of linear color per pixel, indexed [x, y] with y = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Single-value output of the debugging kernels
_single_color = ti.Vector.field(3, dtype=ti.f64, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel
    recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a direction that hits nothing.

    A vertical blend from white at the bottom to light blue at the top:
        t = 0.5 * (unit(direction).y + 1)
        color = (1 - t) * (1, 1, 1) + t * (0.5, 0.7, 1.0)
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * vec3(0.5, 0.7, 1.0)


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, rng):
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Maximum number of surface interactions. A depth of 0 or
            less yields black.
        rng: Random generator state.

    Returns:
        A tuple of (color, rng).
    """
    s = ti.cast(rng, ti.u32)
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = make_ray(ray.origin, ray.direction)

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                did_scatter, attenuation, scattered, s = scatter(current, rec, s)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    # Paths still active here ran out of depth and contribute black
    return color, s


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN, Inf and negative components with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]) or result[c] < 0.0:
            result[c] = 0.0
    return result


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_index: ti.i32,
) -> vec3:
    """Render one jittered sample for a pixel.

    The sample's random stream is derived from (seed, pixel index,
    sample_index). Image coordinates follow
        s = (i + rand) / (width - 1), t = (j + rand) / (height - 1)
    with j = 0 at the bottom row.

    Returns:
        The sanitized linear color of the sample.
    """
    rng = seed_rng(seed, pixel_j * width + pixel_i, sample_index)

    du, rng = random_real(rng)
    dv, rng = random_real(rng)
    s = (ti.cast(pixel_i, ti.f64) + du) / ti.cast(ti.max(width - 1, 1), ti.f64)
    t = (ti.cast(pixel_j, ti.f64) + dv) / ti.cast(ti.max(height - 1, 1), ti.f64)

    ray, rng = get_ray(s, t, rng)
    color, rng = ray_color(ray, max_depth, rng)

    return _sanitize(color)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_offset: ti.i32,
):
    """Render num_samples samples per pixel into the running average."""
    for i, j in ti.ndrange(width, height):
        for k in range(num_samples):
            color = render_sample_impl(i, j, width, height, max_depth, seed, sample_offset + k)

            _sample_count[i, j] += 1
            n = _sample_count[i, j]

            # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
            _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f64)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_index: ti.i32,
):
    ti.loop_config(serialize=True)
    for _ in range(1):
        _single_color[None] = render_sample_impl(
            pixel_i, pixel_j, width, height, max_depth, seed, sample_index
        )


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32):
    ti.loop_config(serialize=True)
    for _ in range(1):
        rng = seed_rng(seed, 0, 0)
        color, rng = ray_color(make_ray(origin, direction), max_depth, rng)
        _single_color[None] = color


def _single_result() -> tuple[float, float, float]:
    color = _single_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = 10,
    seed: int = 0,
    sample_index: int = 0,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel without accumulating it.

    This is a Python-callable function for testing and debugging. For
    production rendering, use render_image() which processes all pixels in
    parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of bounces.
        seed: Render seed.
        sample_index: Which sample of the pixel's sequence to draw.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If seed is outside [0, 2**31).
    """
    _check_render_target_initialized()
    check_seed(seed)

    width, height = get_image_dimensions()
    _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, seed, sample_index)
    return _single_result()


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 10,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the color along an arbitrary ray (one sample, unsanitized).

    Args:
        origin: Ray origin.
        direction: Ray direction (any nonzero length).
        max_depth: Maximum number of bounces.
        seed: Seed for the ray's random stream.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If seed is outside [0, 2**31).
    """
    check_seed(seed)
    _trace_ray(vec3(*origin), vec3(*direction), max_depth, seed)
    return _single_result()


def render_image(num_samples: int = 1, max_depth: int = 10, seed: int = 0) -> None:
    """Render the image with the specified number of samples per pixel.

    Accumulates samples into the color buffer. Can be called multiple times
    to add more samples; each call continues every pixel's sample sequence
    where the previous call stopped.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Render seed. Keep it fixed across calls for one image.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples is not positive, max_depth is negative
            or seed is outside [0, 2**31).
    """
    _check_render_target_initialized()
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    check_seed(seed)

    width, height = get_image_dimensions()
    sample_offset = get_total_samples()

    start = time.perf_counter()
    _render_samples(width, height, num_samples, max_depth, seed, sample_offset)
    ti.sync()
    elapsed = time.perf_counter() - start

    logger.debug(
        "Rendered %d spp at %dx%d in %.3fs (total %d spp)",
        num_samples,
        width,
        height,
        elapsed,
        sample_offset + num_samples,
    )


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the averaged linear image as a NumPy array.

    The array has shape (height, width, 3), dtype float64, and its first row
    is the top of the image. Values are not clamped or gamma corrected.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float64)
