"""Scene aggregate: the list of hittable spheres.

The hit list stores every sphere of the scene in Taichi fields using a
Structure-of-Arrays layout and answers closest-hit queries by testing each
sphere in turn. The list is built once on the host before rendering and is
read-only while kernels run, so no synchronization is needed.

Cost is linear in the number of spheres per ray; there is no spatial index.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.hit_list import add_sphere, clear_hit_list
    >>> clear_hit_list()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    0
    >>> # Use hit_scene within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti

from spheretrace.core.ray import Ray
from spheretrace.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_hit_list() -> None:
    """Remove all spheres from the scene.

    Resets the count to zero; stale field data is overwritten as new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: Sequence[float], radius: float, material_id: int = 0) -> int:
    """Append a sphere to the hit list.

    Args:
        center: The center point of the sphere as (x, y, z).
        radius: The radius of the sphere.
        material_id: Handle of the material shading this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load the sphere stored at ``index``."""
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def hit_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with any sphere in the scene.

    The accepted interval shrinks to (t_min, closest_so_far) every time a
    nearer hit is found, so the result is the global minimum t over all
    spheres.

    Args:
        ray: The ray to test.
        t_min: Lower bound of the accepted interval (excluded).
        t_max: Upper bound of the accepted interval (excluded).

    Returns:
        The closest HitRecord, or a miss record (hit == 0) if the scene is
        empty or every sphere misses.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, get_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
