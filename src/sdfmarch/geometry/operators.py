"""Composition operators over scene samples.

A SceneSample pairs a signed distance with material information. Operators
combine two samples into one while keeping the distance a lower bound of the
true distance to the nearest surface.

Material handling:
    - Hard operators pick the material of the operand that defines the
      surface (smaller distance for union, larger for intersection, the
      first operand for subtraction).
    - Smooth union keeps both operands' materials and a blend weight, so the
      shader can interpolate colors across the blend region instead of
      showing a hard seam.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.geometry.operators import op_smooth_union, make_sample
    >>> # Use within a Taichi kernel:
    >>> # s = op_smooth_union(make_sample(d0, 0), make_sample(d1, 1), 0.3)
"""

import taichi as ti
import taichi.math as tm

# Smooth blend radii at or below this value behave as a hard union
MIN_BLEND_RADIUS = 1e-6


@ti.dataclass
class SceneSample:
    """Result of evaluating the distance field at a point.

    Attributes:
        distance: Signed distance lower bound (negative inside a surface).
        material: Material id of the first blended operand.
        material_b: Material id of the second blended operand. Equal to
            ``material`` when there is no blend.
        blend: Weight of ``material_b`` in [0, 1].
    """

    distance: ti.f32
    material: ti.i32
    material_b: ti.i32
    blend: ti.f32


@ti.func
def make_sample(distance: ti.f32, material: ti.i32) -> SceneSample:
    """Create an unblended sample."""
    return SceneSample(distance=distance, material=material, material_b=material, blend=0.0)


@ti.func
def dominant_material(sample: SceneSample) -> ti.i32:
    """The material with the larger weight in a sample."""
    result = sample.material
    if sample.blend > 0.5:
        result = sample.material_b
    return result


@ti.func
def op_union(a: SceneSample, b: SceneSample) -> SceneSample:
    """Hard union: the closer surface wins. Ties keep the first operand."""
    result = a
    if b.distance < a.distance:
        result = b
    return result


@ti.func
def op_smooth_union(a: SceneSample, b: SceneSample, k: ti.f32) -> SceneSample:
    """Cubic polynomial smooth minimum with blend radius k.

    ``d = min(a, b) - h^3 / (6 k^2)`` with ``h = max(k - |a - b|, 0)``. The
    result never exceeds the hard union, so it remains a lower bound. Nested
    blends collapse each operand to its dominant material first.

    Args:
        a: First operand.
        b: Second operand.
        k: Blend radius. Values at or below MIN_BLEND_RADIUS give a hard union.

    Returns:
        The blended sample; ``blend`` is the weight of b's material.
    """
    result = op_union(a, b)
    if k > MIN_BLEND_RADIUS:
        h = ti.max(k - ti.abs(a.distance - b.distance), 0.0)
        d = ti.min(a.distance, b.distance) - h * h * h / (6.0 * k * k)
        w = tm.clamp(0.5 + 0.5 * (a.distance - b.distance) / k, 0.0, 1.0)
        result = SceneSample(
            distance=d,
            material=dominant_material(a),
            material_b=dominant_material(b),
            blend=w,
        )
    return result


@ti.func
def op_subtract(a: SceneSample, b: SceneSample) -> SceneSample:
    """Remove b's volume from a: ``max(a, -b)``. The result keeps a's material."""
    result = a
    if -b.distance > a.distance:
        result = SceneSample(
            distance=-b.distance,
            material=a.material,
            material_b=a.material_b,
            blend=a.blend,
        )
    return result


@ti.func
def op_intersect(a: SceneSample, b: SceneSample) -> SceneSample:
    """Intersection: ``max(a, b)``; the farther surface defines the material."""
    result = a
    if b.distance > a.distance:
        result = b
    return result
