"""Scene module: scene description and its GPU representation.

Components:
    nodes: Immutable scene tree of primitives and operators
    program: Compilation of the tree into a post-order program and the
        Taichi evaluator of the combined distance field
    demo: Ready-made demo configuration

Only the tree types are imported here. ``program`` allocates Taichi fields
and ``demo`` depends on the configuration module, so import them directly:
    from sdfmarch.scene.program import load_scene
"""

from .nodes import (
    OPERATOR_TYPES,
    PRIMITIVE_TYPES,
    STATIC,
    Box,
    Capsule,
    Intersect,
    Motion,
    Operator,
    Plane,
    Primitive,
    SceneNode,
    SmoothUnion,
    Sphere,
    Subtract,
    Torus,
    Union,
    intersect,
    iter_primitives,
    node_from_dict,
    node_to_dict,
    smooth_union,
    subtract,
    union,
    validate_node,
)

__all__ = [
    "Motion",
    "STATIC",
    "Sphere",
    "Box",
    "Plane",
    "Torus",
    "Capsule",
    "Union",
    "SmoothUnion",
    "Subtract",
    "Intersect",
    "Primitive",
    "Operator",
    "SceneNode",
    "PRIMITIVE_TYPES",
    "OPERATOR_TYPES",
    "union",
    "smooth_union",
    "subtract",
    "intersect",
    "iter_primitives",
    "validate_node",
    "node_to_dict",
    "node_from_dict",
]
