"""Geometry module: signed distance functions and their composition.

Components:
    primitives: Distance functions for sphere, box, plane, torus and capsule
    operators: SceneSample and the union / smooth union / subtraction /
        intersection operators

All functions are Taichi functions (@ti.func) evaluated per pixel inside
the render kernels.
"""

from .operators import (
    MIN_BLEND_RADIUS,
    SceneSample,
    dominant_material,
    make_sample,
    op_intersect,
    op_smooth_union,
    op_subtract,
    op_union,
)
from .primitives import sd_box, sd_capsule, sd_plane, sd_sphere, sd_torus

__all__ = [
    "sd_sphere",
    "sd_box",
    "sd_plane",
    "sd_torus",
    "sd_capsule",
    "SceneSample",
    "MIN_BLEND_RADIUS",
    "make_sample",
    "dominant_material",
    "op_union",
    "op_smooth_union",
    "op_subtract",
    "op_intersect",
]
