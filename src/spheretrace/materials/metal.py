"""Metal (specular reflective) material implementation.

Metals mirror the incoming ray about the surface normal,

    R = I - 2(I . N)N

and optionally blur the reflection by adding a random point from a sphere
whose radius is the fuzz factor. A fuzzed reflection that ends up below the
surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from spheretrace.core.sampler import random_in_unit_sphere
from spheretrace.core.vec3 import reflect, unit_vector, vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Blur radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, facing the incoming ray.
        state: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state):
        - scattered_direction: reflect(unit(incident), normal) + fuzz * p,
          with p uniform in the unit sphere.
        - attenuation: The albedo.
        - did_scatter: 1 if the direction leaves above the surface, 0 if the
          ray is absorbed.
        - new_state: The advanced generator state.
    """
    reflected = reflect(unit_vector(incident_direction), normal)

    fuzz_offset, rng = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * fuzz_offset

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz factor into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


def add_metal_material(albedo: Sequence[float], fuzz: float = 0.0) -> int:
    """Add a metal material to the registry.

    Args:
        albedo: The reflective color as (R, G, B).
            Each component must be in [0, 1].
        fuzz: Reflection blur. Values outside [0, 1] are clamped.

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
        RuntimeError: If the maximum number of materials is exceeded.
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


def get_metal_fuzz_python(material_idx: int) -> float:
    """Read back the stored (clamped) fuzz of a metal material."""
    return float(metal_fuzzes[material_idx])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo of the metal material at a type-local index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz of the metal material at a type-local index."""
    return metal_fuzzes[material_idx]
