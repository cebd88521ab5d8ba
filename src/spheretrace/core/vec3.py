"""Vector algebra for points, directions and colors.

``vec3`` is Taichi's 3-component float vector and is used interchangeably as a
point, a direction and an RGB color. Arithmetic (add, subtract, scale and the
element-wise product used to tint colors) comes from the native operators;
the functions below cover the geometric operations the tracer needs. All of
them are pure ``@ti.func`` helpers for use inside Taichi kernels.

A host-side ``normalize_np`` is provided for the NumPy code that prepares
camera state before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.vec3 import reflect, vec3
    >>> # Inside a kernel:
    >>> # r = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero for degenerate-direction checks
NEAR_ZERO_EPS = 1e-8


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared Euclidean length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Normalizing a zero-length vector is a contract violation that points to a
    geometry bug upstream. The check is a Taichi assertion, so it aborts the
    kernel when Taichi runs with ``debug=True`` and is compiled out otherwise.
    In release mode a zero vector normalizes to NaN components instead; the
    example CLI takes ``--debug`` to turn the check on.

    Args:
        v: The input vector. Must have non-zero length.

    Returns:
        A unit vector in the same direction as v.
    """
    len_v = length(v)
    assert len_v > 0.0, "cannot normalize a zero-length vector"
    return v / len_v


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of a vector is close to zero.

    Used to catch degenerate scatter directions.

    Returns:
        1 if all components are below NEAR_ZERO_EPS in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPS
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect v about the normal n: v - 2(v . n)n.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The mirrored direction. Its dot product with n is the negation of
        the incoming one.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The transmitted direction is split into the part perpendicular to the
    normal and the part parallel to it:

        r_perp     = eta * (uv + cos_theta * n)
        r_parallel = -sqrt(|1 - |r_perp|^2|) * n

    The caller is responsible for ruling out total internal reflection
    before calling this function.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal, facing against uv (unit length).
        etai_over_etat: Ratio of incident to transmitted refractive index.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(-tm.dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_ratio: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ref_ratio: Ratio of refractive indices at the interface.

    Returns:
        The reflection probability in [0, 1].
    """
    r0 = ((1.0 - ref_ratio) / (1.0 + ref_ratio)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


def normalize_np(v: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize a vector on the host.

    Args:
        v: A 3-component vector.

    Returns:
        The unit vector as a float64 array.

    Raises:
        ValueError: If v has zero length.
    """
    arr = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        raise ValueError(f"Cannot normalize zero-length vector {arr.tolist()}")
    return arr / norm
