"""Dielectric (glass/water) material implementation.

Dielectrics either reflect or refract every incoming ray:
    - Snell's law decides the refracted direction.
    - Total internal reflection forces a reflection when
      (n1 / n2) * sin(theta) > 1.
    - Otherwise Schlick's approximation of the Fresnel reflectance, drawn
      against a uniform random number, picks reflection or refraction.

Glass is treated as perfectly clear: the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.sampler import random_f32
from spheretrace.core.vec3 import reflect, refract, schlick_reflectance, unit_vector, vec3


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a ray crossing the surface.

    Entering from outside (front face) goes from air into the material,
    leaving from inside goes the other way.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Reflect or refract a ray at a dielectric boundary.

    An index-matched interface (ratio exactly 1) is optically absent, so it
    never reflects and the ray passes through undeviated.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, facing the incoming ray.
        front_face: 1 if the ray hits from outside, 0 from inside.
        state: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state):
        - scattered_direction: The reflected or refracted direction.
        - attenuation: Always white (1, 1, 1).
        - did_scatter: Always 1.
        - new_state: The advanced generator state.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio_for(ior, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    cannot_refract = ratio * sin_theta > 1.0

    threshold, rng = random_f32(state)
    partial_reflect = ratio != 1.0 and schlick_reflectance(cos_theta, ratio) > threshold

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or partial_reflect:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, 1, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4.

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If the IOR is not positive.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction must be positive, got {ior}")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction of the dielectric at a type-local index."""
    return dielectric_iors[material_idx]
