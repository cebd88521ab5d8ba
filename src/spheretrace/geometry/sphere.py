"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the
intersection routine. The quadratic is solved with the reformulation from
Ray Tracing Gems (chapter 7), which avoids catastrophic cancellation when the
discriminant is small.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import Ray, ray_at
from spheretrace.core.vec3 import vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Handle of the sphere's material in the material arena.
            Several spheres may share one material.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Lies strictly inside the queried (t_min, t_max) interval.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, always facing against the incoming
            ray (flipped for back-face hits).
        front_face: 1 if the ray hit the outside of the surface, 0 if it hit
            from inside.
        material_id: Material handle of the hit surface, -1 on a miss.

    Fields other than ``hit`` are only meaningful when hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 with the numerically stable formula.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the reduced discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) never subtracts nearly equal terms
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Ray origin on the sphere center plane with a tangent direction
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Intersect a ray with a sphere over the open interval (t_min, t_max).

    Substituting the ray into |P - C|^2 = r^2 gives

        a*t^2 + 2*h*t + c = 0

    with a = d.d, h = d.(O - C) and c = |O - C|^2 - r^2. A negative
    discriminant means the ray misses. Otherwise the nearer root is tried
    first and the farther root is the fallback; a root counts only if it lies
    strictly between t_min and t_max.

    The stored normal is (P - C) / r, negated when the ray hits the sphere
    from inside so that it always opposes the ray direction.

    Args:
        ray: The ray to test (direction need not be normalized).
        sphere: The sphere to test against.
        t_min: Lower bound of the accepted interval (excluded).
        t_max: Upper bound of the accepted interval (excluded).

    Returns:
        A HitRecord; check its ``hit`` field.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius

            front_face = 1
            normal = outward_normal
            if tm.dot(ray.direction, outward_normal) > 0.0:
                # Ray is inside the sphere, hitting the back face
                front_face = 0
                normal = -outward_normal

            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere inside a Taichi kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
