"""Material arena and scatter dispatch.

Materials form a closed set of three variants (Lambertian, Metal,
Dielectric). Each variant keeps its parameters in its own registry; this
module adds the unified material-id space on top. A material id maps to a
``(MaterialType, type_index)`` pair stored in Taichi fields, and hit records
carry only that small integer handle, so spheres can share materials without
any reference counting.

``scatter`` is the single entry point the integrator calls; it switches on
the material type and forwards to the variant's scatter function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.lambertian import add_lambertian_material
    >>> from spheretrace.materials.material import MaterialType, register_material
    >>> type_index = add_lambertian_material((0.5, 0.5, 0.5))
    >>> register_material(MaterialType.LAMBERTIAN, type_index)
    0
"""

from enum import IntEnum

import taichi as ti

from spheretrace.core.vec3 import vec3
from spheretrace.geometry.sphere import HitRecord
from spheretrace.materials.dielectric import (
    clear_dielectric_materials,
    get_dielectric_ior,
    scatter_dielectric,
)
from spheretrace.materials.lambertian import (
    clear_lambertian_materials,
    get_lambertian_albedo,
    scatter_lambertian,
)
from spheretrace.materials.metal import (
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used by ``scatter`` to pick the variant's scattering function.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 2048

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear the material arena and every per-type registry."""
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified material id to a registered material.

    Args:
        material_type: The variant of the material.
        type_index: The index returned by the variant's ``add_*`` function.

    Returns:
        The new material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the total number of materials in the arena."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a material id.

    Returns:
        The MaterialType value, or -1 for an invalid id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local registry index for a material id.

    Returns:
        The index into the variant's registry, or -1 for an invalid id.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.func
def scatter(incident_direction: vec3, rec: HitRecord, state: ti.u32):
    """Scatter an incoming ray off the material recorded in a hit.

    Args:
        incident_direction: Direction of the ray that produced the hit.
        rec: The hit record (point, facing normal, front face, material id).
        state: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        did_scatter == 0 means the ray was absorbed; an unknown material id
        also absorbs.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    rng = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter, rng = scatter_lambertian(
            albedo, rec.normal, rng
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, rng = scatter_metal(
            albedo, fuzz, incident_direction, rec.normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter, rng = scatter_dielectric(
            ior, incident_direction, rec.normal, rec.front_face, rng
        )

    return scattered_direction, attenuation, did_scatter, rng
