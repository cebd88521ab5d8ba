"""Path tracing integrator for the sphere scene.

Each camera sample follows one light path backwards through the scene:
intersect, scatter according to the hit material, multiply the running
attenuation, and repeat until the path escapes to the sky, is absorbed, or
runs out of bounces. A path that escapes picks up the sky gradient weighted
by everything it passed through; all other paths contribute black.

Pixels are independent, so the rendering kernel is parallel over pixels.
Every sample draws from its own generator state derived from
(seed, pixel, sample), which makes the sums reproducible for a given seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.thin_lens import setup_camera
    >>> from spheretrace.core.integrator import render_rows, setup_render_target
    >>> from spheretrace.scene.random_scene import create_random_scene
    >>>
    >>> scene, camera = create_random_scene(seed=0)
    >>> setup_camera(camera)
    >>> setup_render_target(300, 200)
    >>> render_rows(samples=16, max_depth=10, seed=0, row_start=0, row_end=200)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.camera.thin_lens import get_ray
from spheretrace.core.ray import Ray, make_ray
from spheretrace.core.sampler import SEED_MASK, random_f32, seed_state
from spheretrace.core.vec3 import unit_vector, vec3
from spheretrace.materials.material import scatter
from spheretrace.scene.hit_list import hit_scene

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Ray offset epsilon to avoid self-intersection
RAY_EPSILON = 1e-4

# t_min and t_max for ray intersection; t_min also hides shadow acne
T_MIN = 0.001
T_MAX = 1e10

# Paths whose attenuation drops below this in every channel contribute nothing
THROUGHPUT_CUTOFF = 1e-12

SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Pre-gamma colour sums, indexed [i, j] with j = 0 the bottom row
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples per pixel of the most recent render_rows call
_samples_per_pixel = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for the single-shot kernels below
_single_result = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the colour sums.

    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the colour sums to zero."""
    _color_sum.fill(0.0)
    _samples_per_pixel[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_samples_per_pixel() -> int:
    """Get the sample count used by the most recent render."""
    return int(_samples_per_pixel[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Vertical white-to-blue gradient seen by rays that escape the scene."""
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * SKY_ZENITH


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Push a hit point slightly off the surface on the side the ray leaves."""
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the colour carried back along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Maximum number of intersections along the path. A depth
            of 0 or less returns black.
        state: Random generator state.

    Returns:
        A tuple (color, new_state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction
    rng = state

    # Taichi funcs cannot break, so a flag stops the path
    active = 1
    for _ in range(max_depth):
        if active == 1:
            rec = hit_scene(make_ray(origin, direction), T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(direction)
                active = 0
            else:
                scattered, attenuation, did_scatter, rng = scatter(direction, rec, rng)

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    if throughput.max() < THROUGHPUT_CUTOFF:
                        active = 0
                    else:
                        origin = _offset_ray_origin(rec.point, rec.normal, scattered)
                        direction = scattered

    return color, rng


@ti.func
def _pixel_sum(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Sum ``samples`` jittered camera samples through pixel (i, j)."""
    pixel_index = ti.cast(j * width + i, ti.u32)
    # A one-pixel-wide image maps its only column to s in [0, 1)
    s_scale = 1.0 / ti.cast(ti.max(width - 1, 1), ti.f32)
    t_scale = 1.0 / ti.cast(ti.max(height - 1, 1), ti.f32)

    total = vec3(0.0, 0.0, 0.0)
    for k in range(samples):
        rng = seed_state(seed, pixel_index, ti.cast(k, ti.u32))
        du, rng = random_f32(rng)
        dv, rng = random_f32(rng)
        s = (ti.cast(i, ti.f32) + du) * s_scale
        t = (ti.cast(j, ti.f32) + dv) * t_scale

        ray, rng = get_ray(s, t, rng)
        color, rng = ray_color(ray, max_depth, rng)
        total += color

    return total


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    row_start: ti.i32,
    row_end: ti.i32,
):
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _color_sum[i, j] = _pixel_sum(
            i, j, width, height, samples, max_depth, ti.cast(seed, ti.u32)
        )


@ti.kernel
def _render_single_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    # Single-iteration outer loop keeps the sample loop serial
    for _ in range(1):
        _single_result[None] = _pixel_sum(
            i, j, width, height, samples, max_depth, ti.cast(seed, ti.u32)
        )


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32):
    for _ in range(1):
        rng = seed_state(ti.cast(seed, ti.u32), ti.u32(0), ti.u32(0))
        color, rng = ray_color(make_ray(origin, direction), max_depth, rng)
        _single_result[None] = color


# =============================================================================
# Public Rendering API
# =============================================================================


def _validate_samples(samples: int) -> None:
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")


def render_rows(samples: int, max_depth: int, seed: int, row_start: int, row_end: int) -> None:
    """Render the scanlines row_start <= j < row_end into the colour sums.

    Scanline j = 0 is the bottom of the image. Each pixel's previous sum is
    overwritten, so bands may be rendered in any order.

    Args:
        samples: Samples per pixel.
        max_depth: Maximum bounces per path. 0 or less renders black.
        seed: Render seed; only its low 31 bits are used.
        row_start: First scanline (inclusive).
        row_end: Last scanline (exclusive).

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If samples is not positive or the row range is invalid.
    """
    _check_render_target_initialized()
    _validate_samples(samples)
    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")

    _samples_per_pixel[None] = samples
    if row_start == row_end:
        return
    _render_rows(width, height, samples, max_depth, seed & SEED_MASK, row_start, row_end)


def render_pixel_sum(
    i: int, j: int, samples: int, max_depth: int, seed: int
) -> tuple[float, float, float]:
    """Compute the pre-gamma colour sum of one pixel without touching the image.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the pixel is outside the image or samples is not
            positive.
    """
    _check_render_target_initialized()
    _validate_samples(samples)
    width, height = get_image_dimensions()
    if not (0 <= i < width and 0 <= j < height):
        raise ValueError(f"Pixel ({i}, {j}) is outside the {width}x{height} image")

    _render_single_pixel(i, j, width, height, samples, max_depth, seed & SEED_MASK)
    color = _single_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Follow a single ray through the scene and return its colour.

    A max_depth of 0 or less returns black.
    """
    _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        seed & SEED_MASK,
    )
    color = _single_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_color_sum_numpy() -> np.ndarray:
    """Get the raw colour sums as an image array.

    Returns:
        float32 array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    full_image = _color_sum.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then put the top scanline first
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)
    return np.ascontiguousarray(image, dtype=np.float32)
