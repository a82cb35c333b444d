"""Explicit random number generation for Monte Carlo sampling.

The core never touches a global random source. Random state is a single
``ti.u32`` value that every stochastic function takes as its last argument
and returns, updated, as its last result:

    value, rng = random_real(rng)
    direction, rng = random_unit_vector(rng)

Each pixel derives its own stream with ``seed_rng(seed, pixel_index,
sample_offset)``, so a render is reproducible for a given seed no matter how
Taichi schedules the pixel loop.

The generator is xorshift32, seeded through Wang's integer hash. Right shifts
are masked so the results do not depend on whether the backend emits a
logical or arithmetic shift.
"""

import taichi as ti

from spheretracer.core.ray import length_squared, unit_vector, vec3

# Cap on rejection-sampling attempts inside a Taichi function
MAX_REJECTION_ATTEMPTS = 100

# 2^-24, converts a 24-bit integer into [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(value):
    """Scramble a 32-bit integer with Wang's hash.

    Args:
        value: Any integer expression; it is reinterpreted as u32.

    Returns:
        The hashed value as ti.u32.
    """
    k = ti.cast(value, ti.u32)
    k = (k ^ 61) ^ ((k >> 16) & 0xFFFF)
    k = k * 9
    k = k ^ ((k >> 4) & 0x0FFFFFFF)
    k = k * 0x27D4EB2D
    k = k ^ ((k >> 15) & 0x1FFFF)
    return k


@ti.func
def seed_rng(seed, stream, offset):
    """Derive an independent generator state.

    Args:
        seed: Global render seed.
        stream: Stream index, typically the linear pixel index.
        offset: Sample offset, so successive batches of the same pixel draw
            fresh numbers.

    Returns:
        A nonzero ti.u32 generator state.
    """
    h = wang_hash(seed)
    h = wang_hash(h ^ ti.cast(stream, ti.u32))
    h = wang_hash(h ^ ti.cast(offset, ti.u32))
    if h == 0:
        h = ti.cast(1, ti.u32)
    return h


@ti.func
def next_u32(rng):
    """Advance an xorshift32 state.

    Args:
        rng: Current generator state (nonzero ti.u32).

    Returns:
        The next state, which doubles as the generated value.
    """
    s = ti.cast(rng, ti.u32)
    s = s ^ (s << 13)
    s = s ^ ((s >> 17) & 0x7FFF)
    s = s ^ (s << 5)
    return s


@ti.func
def random_real(rng):
    """Draw a uniform real in [0, 1).

    Returns:
        A tuple of (value, rng).
    """
    s = next_u32(rng)
    value = ti.cast((s >> 8) & 0xFFFFFF, ti.f64) * _INV_2_24
    return value, s


@ti.func
def random_range(lo: ti.f64, hi: ti.f64, rng):
    """Draw a uniform real in [lo, hi).

    Returns:
        A tuple of (value, rng).
    """
    u, s = random_real(rng)
    return lo + (hi - lo) * u, s


@ti.func
def random_in_unit_sphere(rng):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling over the [-1, 1]^3 cube.

    Returns:
        A tuple of (point, rng) with length_squared(point) < 1.
    """
    s = ti.cast(rng, ti.u32)
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_range(-1.0, 1.0, s)
            y, s = random_range(-1.0, 1.0, s)
            z, s = random_range(-1.0, 1.0, s)
            p = vec3(x, y, z)
            if length_squared(p) < 1.0:
                found = True
    return p, s


@ti.func
def random_unit_vector(rng):
    """Generate a random unit vector uniformly distributed on the sphere.

    Candidates too close to the origin to normalize safely are resampled.

    Returns:
        A tuple of (direction, rng).
    """
    s = ti.cast(rng, ti.u32)
    d = vec3(1.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p, s = random_in_unit_sphere(s)
            if length_squared(p) > 1e-160:
                d = unit_vector(p)
                found = True
    return d, s


@ti.func
def random_in_unit_disk(rng):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens depth of field.

    Returns:
        A tuple of (point, rng) where point is (x, y, 0) with x^2 + y^2 < 1.
    """
    s = ti.cast(rng, ti.u32)
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_range(-1.0, 1.0, s)
            y, s = random_range(-1.0, 1.0, s)
            p = vec3(x, y, 0.0)
            if x * x + y * y < 1.0:
                found = True
    return p, s
