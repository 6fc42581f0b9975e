"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and seeded hashing
    marcher: Sphere tracing against the loaded scene
    shader: Lighting, shadows, ambient occlusion, fog and background
    renderer: Configuration upload, render kernel and render_frame()
    animation: Rendering a configuration over a sequence of time values

All compute-intensive operations run in Taichi kernels.
"""

from .ray import (
    Ray,
    hash33,
    hash_jitter,
    make_ray,
    ray_at,
    safe_normalize,
    sanitize_color,
    vec2,
    vec3,
)

# Note: marcher, shader, renderer and animation allocate Taichi fields and are
# NOT imported here. Import them directly after ti.init(), for example:
#   from sdfmarch.core.renderer import render_frame

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec2",
    "vec3",
    "safe_normalize",
    "sanitize_color",
    "hash33",
    "hash_jitter",
]
