"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane is placed at the focus distance, so points on it are always
in focus. Ray origins are jittered over a disk of radius aperture / 2 in the
(u, v) plane around lookfrom; anything off the focus plane blurs. A zero
aperture degenerates to a pinhole camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>> # Inside a kernel: ray, state = get_ray(s, t, state)
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti

from spheretrace.core.ray import make_ray
from spheretrace.core.sampler import random_in_unit_disk
from spheretrace.core.vec3 import normalize_np

logger = logging.getLogger(__name__)

# Cross products shorter than this mean vup is parallel to the view direction
_DEGENERATE_EPS = 1e-9


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction used to orient the camera (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    lookfrom: tuple[float, float, float] = (12.0, 2.0, 3.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 20.0
    aspect_ratio: float = 3.0 / 2.0
    aperture: float = 0.1
    focus_dist: float = 10.0

    def to_dict(self) -> dict[str, Any]:
        """Export the camera to a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ("lookfrom", "lookat", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThinLensCamera":
        """Build a camera from a dictionary; missing keys keep their defaults."""
        defaults = cls()
        return cls(
            lookfrom=tuple(float(x) for x in data.get("lookfrom", defaults.lookfrom)),
            lookat=tuple(float(x) for x in data.get("lookat", defaults.lookat)),
            vup=tuple(float(x) for x in data.get("vup", defaults.vup)),
            vfov=float(data.get("vfov", defaults.vfov)),
            aspect_ratio=float(data.get("aspect_ratio", defaults.aspect_ratio)),
            aperture=float(data.get("aperture", defaults.aperture)),
            focus_dist=float(data.get("focus_dist", defaults.focus_dist)),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: ThinLensCamera) -> None:
    """Compute the camera frame and viewport and upload them to Taichi fields.

    Must be called from Python before rendering, and again whenever the
    camera changes.

    Raises:
        ValueError: If the field of view, aspect ratio or focus distance is
            not positive, the aperture is negative, lookfrom equals lookat,
            or vup is parallel to the view direction.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"focus_dist must be positive, got {camera.focus_dist}")
    if camera.aperture < 0.0:
        raise ValueError(f"aperture must be non-negative, got {camera.aperture}")

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    try:
        w = normalize_np(lookfrom - lookat)
    except ValueError as e:
        raise ValueError("lookfrom and lookat must be different points") from e

    side = np.cross(vup, w)
    if np.linalg.norm(side) < _DEGENERATE_EPS:
        raise ValueError(f"vup {camera.vup} is parallel to the view direction")
    u = normalize_np(side)
    v = np.cross(w, u)

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        f"Camera set up at {camera.lookfrom} looking at {camera.lookat} "
        f"(vfov={camera.vfov}, aperture={camera.aperture}, focus_dist={camera.focus_dist})"
    )


@ti.func
def get_ray(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a primary ray through image coordinates (s, t).

    s runs left to right and t bottom to top, both nominally in [0, 1].
    The origin is offset by a random point on the lens; the target on the
    focus plane stays fixed, so the direction absorbs the same offset.

    Args:
        s: Horizontal image coordinate.
        t: Vertical image coordinate.
        state: Random generator state.

    Returns:
        A tuple (ray, new_state). The ray direction is not normalized.
    """
    disk, rng = random_in_unit_disk(state)
    rd = _lens_radius[None] * disk
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]

    return make_ray(origin, target - origin), rng


def get_camera_info() -> dict[str, Any]:
    """Get the current camera state for inspection.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (each an (x, y, z) tuple) and lens_radius.
    """
    vectors = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info: dict[str, Any] = {}
    for name, vec_field in vectors.items():
        value = vec_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
