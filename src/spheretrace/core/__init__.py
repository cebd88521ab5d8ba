"""Core rendering module.

Components:
    vec3: Vector algebra (dot, cross, reflect, refract, Schlick)
    sampler: Explicit-state random numbers and geometric sampling
    ray: Ray data structure
    integrator: Path tracing kernels and the render target
    color: Mapping of accumulated samples to 8-bit RGB
    renderer: Band-by-band render driver

All compute-intensive operations use Taichi kernels.
"""

from .color import MAX_INTENSITY, average_samples, gamma_correct, to_rgb8
from .ray import Ray, make_ray, ray_at
from .sampler import (
    SEED_MASK,
    random_f32,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    seed_state,
)
from .vec3 import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize_np,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here; they depend on the
# scene and camera modules, which import from core.

__all__ = [
    "vec3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "unit_vector",
    "normalize_np",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "SEED_MASK",
    "seed_state",
    "random_f32",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "Ray",
    "ray_at",
    "make_ray",
    "MAX_INTENSITY",
    "average_samples",
    "gamma_correct",
    "to_rgb8",
]
