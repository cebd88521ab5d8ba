"""Materials module for surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Clear glass-like materials (Snell refraction, Schlick
        reflectance, total internal reflection)
    material: Unified material arena and the scatter dispatch

Each variant keeps its parameters in a Taichi field registry; the material
arena maps a material id to a (type, type-local index) pair. Scattering
functions are Taichi functions that take and return an explicit random
generator state.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio_for,
    scatter_dielectric,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .material import (
    MAX_MATERIALS,
    MaterialType,
    clear_materials,
    get_material_count,
    get_material_type,
    get_material_type_index,
    register_material,
    scatter,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "clamp_fuzz",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "refraction_ratio_for",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    # Arena
    "MaterialType",
    "MAX_MATERIALS",
    "register_material",
    "clear_materials",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
    "scatter",
]
