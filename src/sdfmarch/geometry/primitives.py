"""Signed distance functions for the scene primitives.

Each function maps a point, expressed relative to the primitive's own
placement, to a signed distance: positive outside, negative inside, zero on
the surface. All of them are exact or lower-bound distance estimators, which
is what keeps sphere tracing from stepping through thin surfaces.

Formulas follow Inigo Quilez's catalogue of distance functions.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.geometry.primitives import sd_sphere, vec3
    >>> # Use sd_sphere within a Taichi kernel:
    >>> # d = sd_sphere(p - center, radius)
"""

import taichi as ti
import taichi.math as tm

vec2 = tm.vec2
vec3 = tm.vec3


@ti.func
def sd_sphere(p: vec3, radius: ti.f32) -> ti.f32:
    """Distance to a sphere of the given radius centered at the origin."""
    return tm.length(p) - radius


@ti.func
def sd_box(p: vec3, half_extents: vec3, rounding: ti.f32) -> ti.f32:
    """Distance to an axis-aligned box centered at the origin.

    The rounding radius shrinks the core box and inflates it again, so the
    outer dimensions stay equal to ``half_extents``.

    Args:
        p: Query point relative to the box center.
        half_extents: Half size along each axis.
        rounding: Edge rounding radius (0 for sharp edges).

    Returns:
        The exact signed distance.
    """
    q = ti.abs(p) - half_extents + rounding
    outside = tm.length(tm.max(q, vec3(0.0, 0.0, 0.0)))
    inside = ti.min(ti.max(q.x, ti.max(q.y, q.z)), 0.0)
    return outside + inside - rounding


@ti.func
def sd_plane(p: vec3, normal: vec3, offset: ti.f32) -> ti.f32:
    """Distance to the plane ``dot(p, normal) = offset``.

    The normal must be unit length; the host normalizes it on upload.
    """
    return tm.dot(p, normal) - offset


@ti.func
def sd_torus(p: vec3, major_radius: ti.f32, minor_radius: ti.f32) -> ti.f32:
    """Distance to a torus in the XZ plane centered at the origin."""
    q = vec2(tm.length(vec2(p.x, p.z)) - major_radius, p.y)
    return tm.length(q) - minor_radius


@ti.func
def sd_capsule(p: vec3, a: vec3, b: vec3, radius: ti.f32) -> ti.f32:
    """Distance to the capsule around segment ``a``-``b``.

    A zero-length segment degenerates to a sphere around ``a``.
    """
    pa = p - a
    ba = b - a
    h = tm.clamp(tm.dot(pa, ba) / ti.max(tm.dot(ba, ba), 1e-12), 0.0, 1.0)
    return tm.length(pa - ba * h) - radius
