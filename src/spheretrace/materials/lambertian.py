"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters an incoming ray toward the point
``hit_point + normal + random_unit_vector()``. Offsetting the normal by a
uniform point on the unit sphere yields directions distributed as
cos(theta) around the normal, which is exactly the Lambertian lobe, so the
attenuation reduces to the albedo with no extra weighting.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

from collections.abc import Sequence

import taichi as ti

from spheretrace.core.sampler import random_unit_vector
from spheretrace.core.vec3 import near_zero, vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a diffuse bounce.

    Diffuse surfaces never absorb a ray outright; the albedo carries the
    energy loss.

    Args:
        albedo: The diffuse reflectance color.
        normal: The surface normal at the hit point, facing the incoming ray.
        state: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state):
        - scattered_direction: normal + random unit vector, or the normal
          itself when that sum is degenerate.
        - attenuation: The albedo.
        - did_scatter: Always 1.
        - new_state: The advanced generator state.
    """
    offset, rng = random_unit_vector(state)
    scattered_direction = normal + offset

    # A random vector almost exactly opposite the normal cancels it out
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: Sequence[float]) -> int:
    """Add a Lambertian material to the registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B).
            Each component must be in [0, 1].

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

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo of the Lambertian material at a type-local index."""
    return lambertian_albedos[material_idx]
