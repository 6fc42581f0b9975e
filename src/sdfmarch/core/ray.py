"""Ray data structure, vector helpers and seeded hashing for the raymarcher.

This module provides the Ray dataclass used by the marcher and shader, small
vector utilities, and the deterministic hash functions that replace a global
random generator: jitter for soft shadows is a pure function of its inputs,
so frames are reproducible and parallel pixels never share random state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors using Taichi's math module
vec2 = tm.vec2
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Must be unit length; the
            code that creates the ray is responsible for normalizing it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction within a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def safe_normalize(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, returning ``fallback`` for near-zero input.

    Args:
        v: The input vector.
        fallback: Unit vector returned when v has (almost) no length.

    Returns:
        A unit vector.
    """
    len_sq = tm.dot(v, v)
    result = fallback
    if len_sq > 1e-20:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def sanitize_color(color: vec3) -> vec3:
    """Clamp negative components and replace NaN/Inf with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


# =============================================================================
# Seeded Hashing
# =============================================================================


@ti.func
def hash33(p: vec3) -> vec3:
    """Hash a 3D point to three pseudo-random values in [0, 1).

    Sine-free integer-less hash (Dave Hoskins, "Hash without Sine"), stable
    under single precision. Identical inputs always give identical outputs.

    Args:
        p: The seed point.

    Returns:
        A vec3 with components in [0, 1).
    """
    q = tm.fract(p * vec3(0.1031, 0.1030, 0.0973))
    q += tm.dot(q, vec3(q.y, q.x, q.z) + 33.33)
    return tm.fract(vec3(q.x + q.y, q.x + q.x, q.y + q.x) * vec3(q.z, q.y, q.x))


@ti.func
def hash_jitter(seed: vec2, sample: ti.i32, stream: ti.i32) -> vec3:
    """Signed jitter in [-1, 1)^3 for a pixel seed, sample index and stream.

    Args:
        seed: Per-pixel seed, usually the sub-pixel coordinate.
        sample: Index of the sample within its loop.
        stream: Distinguishes independent uses of the same seed
            (for example, one stream per light).

    Returns:
        A deterministic pseudo-random offset vector.
    """
    key = vec3(
        seed.x + 17.0 * ti.cast(stream, ti.f32),
        seed.y,
        ti.cast(sample, ti.f32) * 7.31 + ti.cast(stream, ti.f32) * 3.17,
    )
    return hash33(key) * 2.0 - 1.0
