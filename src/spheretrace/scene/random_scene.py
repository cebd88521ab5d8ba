"""Procedural "many spheres" cover scene.

The scene consists of:
- A huge grey diffuse sphere acting as the ground
- A grid of small spheres with randomly chosen materials (mostly diffuse,
  some metal, a few glass), jittered inside each grid cell
- Three large feature spheres: glass in the middle, brown diffuse on the
  left and a polished metal on the right

Small spheres that would overlap the metal feature sphere are skipped.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.random_scene import create_random_scene
    >>> from spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=7)
    >>> setup_camera(camera)
"""

import logging
from dataclasses import dataclass

import numpy as np

from spheretrace.camera.thin_lens import ThinLensCamera
from spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)


@dataclass
class RandomSceneParams:
    """Parameters controlling the procedural scene layout.

    Attributes:
        grid_min: First grid coordinate along x and z (inclusive).
        grid_max: Last grid coordinate along x and z (exclusive).
        small_radius: Radius of the small grid spheres.
        jitter: Maximum random offset of a small sphere within its cell.
        clearance_point: Small spheres closer than ``clearance`` to this
            point are skipped.
        clearance: Minimum distance from ``clearance_point``.
        diffuse_probability: Probability that a small sphere is diffuse.
        metal_probability: Cumulative probability threshold for metal; the
            remainder is glass.
        ground_albedo: Albedo of the ground sphere.
        glass_ior: Index of refraction used for every glass sphere.
    """

    grid_min: int = -11
    grid_max: int = 11
    small_radius: float = 0.2
    jitter: float = 0.9
    clearance_point: tuple[float, float, float] = (4.0, 0.2, 0.0)
    clearance: float = 0.9
    diffuse_probability: float = 0.8
    metal_probability: float = 0.95
    ground_albedo: tuple[float, float, float] = (0.5, 0.5, 0.5)
    glass_ior: float = 1.5


def default_camera(aspect_ratio: float = 3.0 / 2.0) -> ThinLensCamera:
    """Camera framing the cover scene from slightly above and to the side."""
    return ThinLensCamera(
        lookfrom=(12.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def _add_small_sphere(
    scene: SceneManager,
    rng: np.random.Generator,
    center: tuple[float, float, float],
    choose_mat: float,
    params: RandomSceneParams,
) -> None:
    if choose_mat < params.diffuse_probability:
        albedo = rng.random(3) * rng.random(3)
        scene.add_lambertian_sphere(center, params.small_radius, tuple(albedo.tolist()))
    elif choose_mat < params.metal_probability:
        albedo = rng.uniform(0.5, 1.0, 3)
        fuzz = float(rng.uniform(0.0, 0.5))
        scene.add_metal_sphere(center, params.small_radius, tuple(albedo.tolist()), fuzz)
    else:
        scene.add_dielectric_sphere(center, params.small_radius, params.glass_ior)


def create_random_scene(
    seed: int | None = None,
    params: RandomSceneParams | None = None,
    aspect_ratio: float = 3.0 / 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build the cover scene into the hit list and material registries.

    Any previously built scene is cleared.

    Args:
        seed: Seed for the scene layout. The same seed always produces the
            same scene; None draws fresh entropy.
        params: Layout parameters. Defaults to RandomSceneParams().
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    if params is None:
        params = RandomSceneParams()

    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, params.ground_albedo)

    clearance_point = np.array(params.clearance_point)
    skipped = 0
    for a in range(params.grid_min, params.grid_max):
        for b in range(params.grid_min, params.grid_max):
            choose_mat = float(rng.random())
            center = (
                a + params.jitter * float(rng.random()),
                params.small_radius,
                b + params.jitter * float(rng.random()),
            )

            if np.linalg.norm(np.array(center) - clearance_point) <= params.clearance:
                skipped += 1
                continue

            _add_small_sphere(scene, rng, center, choose_mat, params)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, params.glass_ior)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    logger.info(
        f"Random scene built: {scene.get_sphere_count()} spheres, "
        f"{scene.get_material_count()} materials ({skipped} grid cells skipped)"
    )

    return scene, default_camera(aspect_ratio)
