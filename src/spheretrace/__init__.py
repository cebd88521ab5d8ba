"""Taichi-accelerated Monte Carlo path tracer for scenes of spheres.

This package renders a static scene of spheres into an RGB raster using
recursive (loop-unrolled) path tracing, with support for:
- Diffuse, metal and dielectric materials
- Thin-lens camera with depth of field
- Stochastic anti-aliasing with reproducible per-pixel random streams
- PNG and plain-text PPM output

Subpackages:
    core: Vector algebra, random sampling, rays, integrator and render driver
    geometry: Sphere primitive and hit records
    materials: Material arena and scattering models
    scene: Hit list, scene manager and the procedural cover scene
    camera: Thin-lens camera with ray generation
    preview: Image export utilities

Modules that declare Taichi fields must be imported after ``ti.init``;
see :func:`spheretrace.runtime.init_taichi`.
"""

__version__ = "0.1.0"
