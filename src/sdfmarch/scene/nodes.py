"""Immutable scene tree for signed distance field composition.

A scene is a tree of tagged variants: primitive leaves (Sphere, Box, Plane,
Torus, Capsule) combined by operator nodes (Union, SmoothUnion, Subtract,
Intersect). Nodes are frozen dataclasses, so a scene can be shared freely
between frames and compiled into a flat GPU program by
``sdfmarch.scene.program.compile_scene``.

Every primitive carries a material id and an optional Motion, a time-varying
translation used for animation. The tree itself never changes over time;
only the ``time`` argument passed to the evaluator does.

Example:
    >>> from sdfmarch.scene.nodes import Plane, Sphere, smooth_union, union
    >>> ground = Plane(normal=(0.0, 1.0, 0.0), offset=-1.0, material=0)
    >>> a = Sphere(center=(-0.5, 0.0, 0.0), radius=0.6, material=1)
    >>> b = Sphere(center=(0.5, 0.0, 0.0), radius=0.6, material=2)
    >>> scene = union(ground, smooth_union(a, b, k=0.4))
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from sdfmarch.errors import ConfigError

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class Motion:
    """Sinusoidal translation applied to a primitive.

    The primitive is displaced by ``amplitude * sin(frequency * time + phase)``.

    Attributes:
        amplitude: Peak displacement along each axis.
        frequency: Angular frequency in radians per unit time.
        phase: Phase offset in radians.
    """

    amplitude: Vec3 = (0.0, 0.0, 0.0)
    frequency: float = 0.0
    phase: float = 0.0

    @property
    def is_static(self) -> bool:
        return self.frequency == 0.0 or all(a == 0.0 for a in self.amplitude)

    def offset(self, time: float) -> Vec3:
        """Displacement of the primitive at the given time."""
        s = math.sin(self.frequency * time + self.phase)
        return (self.amplitude[0] * s, self.amplitude[1] * s, self.amplitude[2] * s)


STATIC = Motion()


# =============================================================================
# Primitives
# =============================================================================


@dataclass(frozen=True)
class Sphere:
    center: Vec3
    radius: float
    material: int = 0
    motion: Motion = field(default=STATIC)


@dataclass(frozen=True)
class Box:
    """Axis-aligned box, optionally with rounded edges.

    Attributes:
        center: Box center.
        half_extents: Half size along each axis.
        material: Material id.
        rounding: Edge rounding radius. Must not exceed the smallest half extent.
        motion: Optional animation.
    """

    center: Vec3
    half_extents: Vec3
    material: int = 0
    rounding: float = 0.0
    motion: Motion = field(default=STATIC)


@dataclass(frozen=True)
class Plane:
    """Infinite plane ``dot(p, normal) = offset``; the normal side is outside."""

    normal: Vec3
    offset: float = 0.0
    material: int = 0
    motion: Motion = field(default=STATIC)


@dataclass(frozen=True)
class Torus:
    """Torus lying in the XZ plane around ``center``."""

    center: Vec3
    major_radius: float
    minor_radius: float
    material: int = 0
    motion: Motion = field(default=STATIC)


@dataclass(frozen=True)
class Capsule:
    """Segment from ``start`` to ``end`` swept by a sphere of ``radius``."""

    start: Vec3
    end: Vec3
    radius: float
    material: int = 0
    motion: Motion = field(default=STATIC)


# =============================================================================
# Operators
# =============================================================================


@dataclass(frozen=True)
class Union:
    left: SceneNode
    right: SceneNode


@dataclass(frozen=True)
class SmoothUnion:
    """Polynomial smooth minimum of two sub-scenes with blend radius ``k``."""

    left: SceneNode
    right: SceneNode
    k: float


@dataclass(frozen=True)
class Subtract:
    """Removes the volume of ``right`` from ``left``."""

    left: SceneNode
    right: SceneNode


@dataclass(frozen=True)
class Intersect:
    left: SceneNode
    right: SceneNode


Primitive = Sphere | Box | Plane | Torus | Capsule
Operator = Union | SmoothUnion | Subtract | Intersect
SceneNode = Primitive | Operator

PRIMITIVE_TYPES = (Sphere, Box, Plane, Torus, Capsule)
OPERATOR_TYPES = (Union, SmoothUnion, Subtract, Intersect)


def union(*nodes: SceneNode) -> SceneNode:
    """Left-fold any number of nodes with hard union.

    Left-deep trees keep the evaluator's stack depth at two.
    """
    if not nodes:
        raise ConfigError("union() needs at least one node")
    result = nodes[0]
    for node in nodes[1:]:
        result = Union(result, node)
    return result


def smooth_union(left: SceneNode, right: SceneNode, k: float) -> SmoothUnion:
    return SmoothUnion(left, right, k)


def subtract(left: SceneNode, right: SceneNode) -> Subtract:
    return Subtract(left, right)


def intersect(left: SceneNode, right: SceneNode) -> Intersect:
    return Intersect(left, right)


def iter_primitives(node: SceneNode) -> Iterator[Primitive]:
    """Yield the primitive leaves of a scene tree, left to right."""
    if isinstance(node, PRIMITIVE_TYPES):
        yield node
    elif isinstance(node, OPERATOR_TYPES):
        yield from iter_primitives(node.left)
        yield from iter_primitives(node.right)
    else:
        raise ConfigError(f"Not a scene node: {node!r}")


# =============================================================================
# Validation
# =============================================================================


def _check_vec3(name: str, value: Any) -> None:
    try:
        size = len(value)
        finite = all(math.isfinite(c) for c in value)
    except TypeError:
        raise ConfigError(f"{name} must be a sequence of 3 numbers, got {value!r}") from None
    if size != 3:
        raise ConfigError(f"{name} must have 3 components, got {value!r}")
    if not finite:
        raise ConfigError(f"{name} must be finite, got {value!r}")


def _check_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0.0:
        raise ConfigError(f"{name} must be a positive finite number, got {value!r}")


def validate_node(node: SceneNode, num_materials: int) -> None:
    """Validate a scene tree against the material table.

    Args:
        node: Root of the scene tree.
        num_materials: Number of materials defined in the configuration.

    Raises:
        ConfigError: If a primitive has invalid parameters or references an
            undefined material, or a blend radius is negative.
    """
    if isinstance(node, OPERATOR_TYPES):
        if isinstance(node, SmoothUnion) and (not math.isfinite(node.k) or node.k < 0.0):
            raise ConfigError(f"Smooth union blend radius must be >= 0, got {node.k!r}")
        validate_node(node.left, num_materials)
        validate_node(node.right, num_materials)
        return

    if not isinstance(node, PRIMITIVE_TYPES):
        raise ConfigError(f"Not a scene node: {node!r}")

    kind = type(node).__name__
    if not isinstance(node.material, int) or isinstance(node.material, bool):
        raise ConfigError(f"{kind}.material must be an integer id, got {node.material!r}")
    if not 0 <= node.material < num_materials:
        raise ConfigError(
            f"{kind} references material {node.material}, "
            f"but only {num_materials} materials are defined"
        )
    _check_vec3(f"{kind}.motion.amplitude", node.motion.amplitude)
    if not math.isfinite(node.motion.frequency) or not math.isfinite(node.motion.phase):
        raise ConfigError(f"{kind}.motion must be finite")

    if isinstance(node, Sphere):
        _check_vec3("Sphere.center", node.center)
        _check_positive("Sphere.radius", node.radius)
    elif isinstance(node, Box):
        _check_vec3("Box.center", node.center)
        _check_vec3("Box.half_extents", node.half_extents)
        for extent in node.half_extents:
            _check_positive("Box.half_extents", extent)
        if (
            not math.isfinite(node.rounding)
            or node.rounding < 0.0
            or node.rounding > min(node.half_extents)
        ):
            raise ConfigError(
                f"Box.rounding must be in [0, {min(node.half_extents)}], got {node.rounding!r}"
            )
    elif isinstance(node, Plane):
        _check_vec3("Plane.normal", node.normal)
        if math.sqrt(sum(c * c for c in node.normal)) < 1e-8:
            raise ConfigError("Plane.normal must not be zero-length")
        if not math.isfinite(node.offset):
            raise ConfigError(f"Plane.offset must be finite, got {node.offset!r}")
    elif isinstance(node, Torus):
        _check_vec3("Torus.center", node.center)
        _check_positive("Torus.major_radius", node.major_radius)
        _check_positive("Torus.minor_radius", node.minor_radius)
    elif isinstance(node, Capsule):
        _check_vec3("Capsule.start", node.start)
        _check_vec3("Capsule.end", node.end)
        _check_positive("Capsule.radius", node.radius)


# =============================================================================
# Serialization
# =============================================================================


def _motion_to_dict(motion: Motion) -> dict[str, Any]:
    return {
        "amplitude": list(motion.amplitude),
        "frequency": motion.frequency,
        "phase": motion.phase,
    }


def _motion_from_dict(data: dict[str, Any] | None) -> Motion:
    if not data:
        return STATIC
    a = data.get("amplitude", [0.0, 0.0, 0.0])
    return Motion(
        amplitude=(float(a[0]), float(a[1]), float(a[2])),
        frequency=float(data.get("frequency", 0.0)),
        phase=float(data.get("phase", 0.0)),
    )


def _vec3(data: dict[str, Any], key: str, default: list[float]) -> Vec3:
    v = data.get(key, default)
    return (float(v[0]), float(v[1]), float(v[2]))


def node_to_dict(node: SceneNode) -> dict[str, Any]:
    """Export a scene tree to a JSON-compatible dictionary."""
    if isinstance(node, Sphere):
        out: dict[str, Any] = {
            "type": "sphere",
            "center": list(node.center),
            "radius": node.radius,
        }
    elif isinstance(node, Box):
        out = {
            "type": "box",
            "center": list(node.center),
            "half_extents": list(node.half_extents),
            "rounding": node.rounding,
        }
    elif isinstance(node, Plane):
        out = {"type": "plane", "normal": list(node.normal), "offset": node.offset}
    elif isinstance(node, Torus):
        out = {
            "type": "torus",
            "center": list(node.center),
            "major_radius": node.major_radius,
            "minor_radius": node.minor_radius,
        }
    elif isinstance(node, Capsule):
        out = {
            "type": "capsule",
            "start": list(node.start),
            "end": list(node.end),
            "radius": node.radius,
        }
    elif isinstance(node, OPERATOR_TYPES):
        names = {
            Union: "union",
            SmoothUnion: "smooth_union",
            Subtract: "subtract",
            Intersect: "intersect",
        }
        out = {
            "type": names[type(node)],
            "left": node_to_dict(node.left),
            "right": node_to_dict(node.right),
        }
        if isinstance(node, SmoothUnion):
            out["k"] = node.k
        return out
    else:
        raise ConfigError(f"Not a scene node: {node!r}")

    out["material"] = node.material
    if not node.motion.is_static:
        out["motion"] = _motion_to_dict(node.motion)
    return out


def node_from_dict(data: dict[str, Any]) -> SceneNode:
    """Load a scene tree from a dictionary produced by node_to_dict().

    Raises:
        ConfigError: If a node type is unknown.
    """
    node_type = str(data.get("type", "")).lower()
    material = int(data.get("material", 0))
    motion = _motion_from_dict(data.get("motion"))

    if node_type == "sphere":
        return Sphere(
            center=_vec3(data, "center", [0.0, 0.0, 0.0]),
            radius=float(data.get("radius", 1.0)),
            material=material,
            motion=motion,
        )
    if node_type == "box":
        return Box(
            center=_vec3(data, "center", [0.0, 0.0, 0.0]),
            half_extents=_vec3(data, "half_extents", [0.5, 0.5, 0.5]),
            material=material,
            rounding=float(data.get("rounding", 0.0)),
            motion=motion,
        )
    if node_type == "plane":
        return Plane(
            normal=_vec3(data, "normal", [0.0, 1.0, 0.0]),
            offset=float(data.get("offset", 0.0)),
            material=material,
            motion=motion,
        )
    if node_type == "torus":
        return Torus(
            center=_vec3(data, "center", [0.0, 0.0, 0.0]),
            major_radius=float(data.get("major_radius", 1.0)),
            minor_radius=float(data.get("minor_radius", 0.25)),
            material=material,
            motion=motion,
        )
    if node_type == "capsule":
        return Capsule(
            start=_vec3(data, "start", [0.0, 0.0, 0.0]),
            end=_vec3(data, "end", [0.0, 1.0, 0.0]),
            radius=float(data.get("radius", 0.25)),
            material=material,
            motion=motion,
        )

    if node_type in ("union", "smooth_union", "subtract", "intersect"):
        left = node_from_dict(data["left"])
        right = node_from_dict(data["right"])
        if node_type == "union":
            return Union(left, right)
        if node_type == "smooth_union":
            return SmoothUnion(left, right, float(data.get("k", 0.0)))
        if node_type == "subtract":
            return Subtract(left, right)
        return Intersect(left, right)

    raise ConfigError(f"Unknown scene node type: {node_type!r}")
