"""Explicit-state random number generation for Monte Carlo sampling.

Instead of drawing from Taichi's global ``ti.random()``, every sampling
routine here takes a 32-bit generator state and returns the advanced state
alongside its value. The renderer derives one independent state per
(seed, pixel, sample) triple with an integer hash, so a render is
bit-for-bit reproducible for a given seed regardless of how Taichi schedules
pixels onto threads.

The generator is a 32-bit linear congruential step whose output is passed
through Wang's integer hash to break up the LCG's weak low bits.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.sampler import random_f32, seed_state
    >>> # Inside a kernel:
    >>> # state = seed_state(seed, pixel_index, sample_index)
    >>> # u, state = random_f32(state)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.vec3 import length_squared, vec3

# Upper bound on rejection-sampling iterations (acceptance rate is >50%, so
# this is never reached in practice)
MAX_REJECTION_ATTEMPTS = 64

# Seeds are passed to kernels as i32 and reinterpreted as u32
SEED_MASK = 0x7FFFFFFF

# 1 / 2^24: maps the top 24 bits of a hash to [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Thomas Wang's hash."""
    x = (value ^ ti.u32(61)) ^ (value >> ti.u32(16))
    x = x * ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def seed_state(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Derive an independent generator state for one pixel sample.

    Args:
        seed: The render-wide seed.
        pixel_index: Linear index of the pixel.
        sample_index: Index of the sample within the pixel.

    Returns:
        A well-mixed initial state.
    """
    h = wang_hash(seed + wang_hash(pixel_index))
    return wang_hash(h ^ wang_hash(sample_index + ti.u32(0x5BD1E995)))


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance the generator state by one LCG step."""
    return state * ti.u32(1664525) + ti.u32(1013904223)


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple (value, new_state).
    """
    new_state = next_state(state)
    bits = wang_hash(new_state) >> ti.u32(8)
    value = ti.cast(bits, ti.f32) * _INV_2_24
    return value, new_state


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple (value, new_state).
    """
    u, new_state = random_f32(state)
    return lo + (hi - lo) * u, new_state


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly inside the unit sphere by rejection sampling.

    Returns:
        A tuple (point, new_state) with |point| < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = random_range(-1.0, 1.0, rng)
            y, rng = random_range(-1.0, 1.0, rng)
            z, rng = random_range(-1.0, 1.0, rng)
            candidate = vec3(x, y, z)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p, rng


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a direction uniformly distributed on the unit sphere.

    Uses the cylindrical projection (uniform z and azimuth), which needs no
    rejection loop.

    Returns:
        A tuple (direction, new_state) with |direction| = 1.
    """
    a, rng = random_range(0.0, 2.0 * tm.pi, state)
    z, rng = random_range(-1.0, 1.0, rng)
    r = ti.sqrt(tm.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z), rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly inside the unit disk in the xy-plane.

    Used to jitter ray origins across the camera lens.

    Returns:
        A tuple (point, new_state) with point.z = 0 and x^2 + y^2 < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = random_range(-1.0, 1.0, rng)
            y, rng = random_range(-1.0, 1.0, rng)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, rng
