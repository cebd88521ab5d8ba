"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

All intersection routines are Taichi functions (@ti.func) so they can run
inside parallel rendering kernels. The scene is a flat collection of spheres;
no spatial acceleration structure is used.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
