"""Scene tree compilation and GPU-side field evaluation.

The host-side scene is an immutable tree (see ``sdfmarch.scene.nodes``). For
evaluation inside kernels the tree is flattened into a post-order program:
primitive instructions push a SceneSample, operator instructions pop two
samples and push their combination. The program lives in Taichi fields laid
out as Structure of Arrays, like the rest of the renderer's scene storage.

The evaluator runs the program with a fixed-size stack held in local vectors.
Stack slots are addressed through statically unrolled comparisons, so the
evaluator needs neither dynamic indexing nor allocation and every pixel can
evaluate the field independently.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.scene.nodes import Sphere
    >>> from sdfmarch.scene.program import load_scene, evaluate_scene
    >>> load_scene(Sphere(center=(0.0, 0.0, 10.0), radius=3.0, material=0))
    >>> # Use evaluate_scene(p, time) within a Taichi kernel
"""

import logging
import math
from dataclasses import dataclass, field

import taichi as ti
import taichi.math as tm

from sdfmarch.errors import ConfigError
from sdfmarch.geometry.operators import (
    SceneSample,
    make_sample,
    op_intersect,
    op_smooth_union,
    op_subtract,
    op_union,
)
from sdfmarch.geometry.primitives import sd_box, sd_capsule, sd_plane, sd_sphere, sd_torus
from sdfmarch.scene.nodes import (
    Box,
    Capsule,
    Intersect,
    Motion,
    Plane,
    SceneNode,
    SmoothUnion,
    Sphere,
    Subtract,
    Torus,
    Union,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Opcodes. Values below OP_UNION are primitives.
OP_SPHERE = 0
OP_BOX = 1
OP_PLANE = 2
OP_TORUS = 3
OP_CAPSULE = 4
OP_UNION = 10
OP_SMOOTH_UNION = 11
OP_SUBTRACT = 12
OP_INTERSECT = 13

# Program capacity
MAX_INSTRUCTIONS = 128
MAX_STACK_DEPTH = 8

# Distance reported for an empty program
FAR_DISTANCE = 1e10


@dataclass
class Instruction:
    """One step of a compiled scene program.

    Parameter layout per opcode:
        sphere:  param_a=center, scalars.x=radius
        box:     param_a=center, param_b=half_extents, scalars.x=rounding
        plane:   param_a=unit normal, scalars.x=offset
        torus:   param_a=center, scalars.x=major radius, scalars.y=minor radius
        capsule: param_a=start, param_b=end, scalars.x=radius
        smooth union: scalars.x=k
    For primitives, motion holds (amplitude xyz, frequency) and scalars.w the
    motion phase.
    """

    opcode: int
    material: int = 0
    param_a: tuple[float, float, float] = (0.0, 0.0, 0.0)
    param_b: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scalars: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    motion: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


@dataclass
class SceneProgram:
    """A flattened scene ready for upload.

    Attributes:
        instructions: Post-order instruction list.
        max_stack_depth: Deepest stack the program reaches.
    """

    instructions: list[Instruction] = field(default_factory=list)
    max_stack_depth: int = 0

    def __len__(self) -> int:
        return len(self.instructions)


def _motion_params(motion: Motion) -> tuple[tuple[float, float, float, float], float]:
    a = motion.amplitude
    return (a[0], a[1], a[2], motion.frequency), motion.phase


def _primitive_instruction(node: SceneNode) -> Instruction:
    motion, phase = _motion_params(node.motion)
    if isinstance(node, Sphere):
        return Instruction(
            OP_SPHERE, node.material, param_a=node.center,
            scalars=(node.radius, 0.0, 0.0, phase), motion=motion,
        )
    if isinstance(node, Box):
        return Instruction(
            OP_BOX, node.material, param_a=node.center, param_b=node.half_extents,
            scalars=(node.rounding, 0.0, 0.0, phase), motion=motion,
        )
    if isinstance(node, Plane):
        n = node.normal
        length = math.sqrt(n[0] * n[0] + n[1] * n[1] + n[2] * n[2])
        if length < 1e-8:
            raise ConfigError("Plane.normal must not be zero-length")
        return Instruction(
            OP_PLANE, node.material, param_a=(n[0] / length, n[1] / length, n[2] / length),
            scalars=(node.offset, 0.0, 0.0, phase), motion=motion,
        )
    if isinstance(node, Torus):
        return Instruction(
            OP_TORUS, node.material, param_a=node.center,
            scalars=(node.major_radius, node.minor_radius, 0.0, phase), motion=motion,
        )
    if isinstance(node, Capsule):
        return Instruction(
            OP_CAPSULE, node.material, param_a=node.start, param_b=node.end,
            scalars=(node.radius, 0.0, 0.0, phase), motion=motion,
        )
    raise ConfigError(f"Not a scene node: {node!r}")


_OPERATOR_CODES = {
    Union: OP_UNION,
    SmoothUnion: OP_SMOOTH_UNION,
    Subtract: OP_SUBTRACT,
    Intersect: OP_INTERSECT,
}


def _emit(node: SceneNode, out: list[Instruction]) -> None:
    opcode = _OPERATOR_CODES.get(type(node))
    if opcode is None:
        out.append(_primitive_instruction(node))
        return
    _emit(node.left, out)
    _emit(node.right, out)
    k = node.k if isinstance(node, SmoothUnion) else 0.0
    out.append(Instruction(opcode, scalars=(k, 0.0, 0.0, 0.0)))


def compile_scene(node: SceneNode) -> SceneProgram:
    """Flatten a scene tree into a post-order program.

    Args:
        node: Root of the scene tree.

    Returns:
        The compiled program.

    Raises:
        ConfigError: If the program exceeds MAX_INSTRUCTIONS or needs a
            deeper stack than MAX_STACK_DEPTH (prefer left-deep trees, as
            built by ``nodes.union()``).
    """
    program = SceneProgram()
    _emit(node, program.instructions)

    depth = 0
    for inst in program.instructions:
        depth += 1 if inst.opcode < OP_UNION else -1
        program.max_stack_depth = max(program.max_stack_depth, depth)

    if len(program) > MAX_INSTRUCTIONS:
        raise ConfigError(
            f"Scene needs {len(program)} instructions, maximum is {MAX_INSTRUCTIONS}"
        )
    if program.max_stack_depth > MAX_STACK_DEPTH:
        raise ConfigError(
            f"Scene needs an evaluation stack of depth {program.max_stack_depth}, "
            f"maximum is {MAX_STACK_DEPTH}; rebalance the tree toward the left"
        )
    return program


# =============================================================================
# Program storage: Structure of Arrays layout
# =============================================================================

_opcodes = ti.field(dtype=ti.i32, shape=MAX_INSTRUCTIONS)
_materials = ti.field(dtype=ti.i32, shape=MAX_INSTRUCTIONS)
_param_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_INSTRUCTIONS)
_param_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_INSTRUCTIONS)
_scalars = ti.Vector.field(4, dtype=ti.f32, shape=MAX_INSTRUCTIONS)
_motion = ti.Vector.field(4, dtype=ti.f32, shape=MAX_INSTRUCTIONS)
_num_instructions = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove the loaded program; the field then evaluates to FAR_DISTANCE."""
    _num_instructions[None] = 0


def load_program(program: SceneProgram) -> None:
    """Upload a compiled program into the evaluator's fields."""
    for i, inst in enumerate(program.instructions):
        _opcodes[i] = inst.opcode
        _materials[i] = inst.material
        _param_a[i] = list(inst.param_a)
        _param_b[i] = list(inst.param_b)
        _scalars[i] = list(inst.scalars)
        _motion[i] = list(inst.motion)
    _num_instructions[None] = len(program)


def load_scene(node: SceneNode) -> SceneProgram:
    """Compile a scene tree and upload it.

    Returns:
        The compiled program, for inspection.
    """
    program = compile_scene(node)
    load_program(program)
    logger.debug(
        "Loaded scene program: %d instructions, stack depth %d",
        len(program),
        program.max_stack_depth,
    )
    return program


def get_instruction_count() -> int:
    """Get the number of instructions currently loaded."""
    return int(_num_instructions[None])


# =============================================================================
# Field evaluation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def _primitive_distance(op: ti.i32, i: ti.i32, p: vec3, time: ti.f32) -> ti.f32:
    """Distance from p to primitive instruction i at the given time."""
    motion = _motion[i]
    s = _scalars[i]
    offset = vec3(motion.x, motion.y, motion.z) * ti.sin(motion.w * time + s.w)
    local = p - offset

    d = FAR_DISTANCE
    if op == OP_SPHERE:
        d = sd_sphere(local - _param_a[i], s.x)
    elif op == OP_BOX:
        d = sd_box(local - _param_a[i], _param_b[i], s.x)
    elif op == OP_PLANE:
        d = sd_plane(local, _param_a[i], s.x)
    elif op == OP_TORUS:
        d = sd_torus(local - _param_a[i], s.x, s.y)
    elif op == OP_CAPSULE:
        d = sd_capsule(local, _param_a[i], _param_b[i], s.x)
    return d


@ti.func
def _combine(op: ti.i32, a: SceneSample, b: SceneSample, k: ti.f32) -> SceneSample:
    result = a
    if op == OP_UNION:
        result = op_union(a, b)
    elif op == OP_SMOOTH_UNION:
        result = op_smooth_union(a, b, k)
    elif op == OP_SUBTRACT:
        result = op_subtract(a, b)
    elif op == OP_INTERSECT:
        result = op_intersect(a, b)
    return result


@ti.func
def evaluate_scene(p: vec3, time: ti.f32) -> SceneSample:
    """Evaluate the loaded scene at a point.

    Pure function of (p, time) and the loaded program.

    Args:
        p: World-space query point. Must be finite.
        time: Animation time.

    Returns:
        The combined SceneSample. An empty program yields FAR_DISTANCE.
    """
    dist_stack = ti.Vector([0.0] * MAX_STACK_DEPTH)
    mat_stack = ti.Vector([0] * MAX_STACK_DEPTH)
    mat_b_stack = ti.Vector([0] * MAX_STACK_DEPTH)
    blend_stack = ti.Vector([0.0] * MAX_STACK_DEPTH)
    sp = 0

    for i in range(_num_instructions[None]):
        op = _opcodes[i]
        if op < OP_UNION:
            d = _primitive_distance(op, i, p, time)
            m = _materials[i]
            for s in ti.static(range(MAX_STACK_DEPTH)):
                if s == sp:
                    dist_stack[s] = d
                    mat_stack[s] = m
                    mat_b_stack[s] = m
                    blend_stack[s] = 0.0
            sp += 1
        else:
            a = make_sample(FAR_DISTANCE, 0)
            b = make_sample(FAR_DISTANCE, 0)
            for s in ti.static(range(MAX_STACK_DEPTH)):
                if s == sp - 2:
                    a = SceneSample(
                        distance=dist_stack[s],
                        material=mat_stack[s],
                        material_b=mat_b_stack[s],
                        blend=blend_stack[s],
                    )
                if s == sp - 1:
                    b = SceneSample(
                        distance=dist_stack[s],
                        material=mat_stack[s],
                        material_b=mat_b_stack[s],
                        blend=blend_stack[s],
                    )
            r = _combine(op, a, b, _scalars[i].x)
            for s in ti.static(range(MAX_STACK_DEPTH)):
                if s == sp - 2:
                    dist_stack[s] = r.distance
                    mat_stack[s] = r.material
                    mat_b_stack[s] = r.material_b
                    blend_stack[s] = r.blend
            sp -= 1

    result = make_sample(FAR_DISTANCE, 0)
    if sp > 0:
        result = SceneSample(
            distance=dist_stack[0],
            material=mat_stack[0],
            material_b=mat_b_stack[0],
            blend=blend_stack[0],
        )
    return result


@ti.func
def scene_distance(p: vec3, time: ti.f32) -> ti.f32:
    """Signed distance only, for callers that do not need materials."""
    return evaluate_scene(p, time).distance


@ti.func
def estimate_normal(p: vec3, time: ti.f32, epsilon: ti.f32) -> vec3:
    """Surface normal from central differences of the distance field.

    Only meaningful near a surface. The six samples are taken in a runtime
    loop so the evaluator is inlined once.

    Args:
        p: Point on or near the surface.
        time: Animation time.
        epsilon: Finite difference step in world units.

    Returns:
        Unit-length gradient direction. Falls back to +Y where the gradient
        vanishes.
    """
    grad = vec3(0.0, 0.0, 0.0)
    for k in range(6):
        axis = k // 2
        sign = 1.0 - 2.0 * ti.cast(k % 2, ti.f32)
        e = vec3(
            ti.cast(axis == 0, ti.f32),
            ti.cast(axis == 1, ti.f32),
            ti.cast(axis == 2, ti.f32),
        )
        grad += e * sign * scene_distance(p + e * (sign * epsilon), time)
    n = vec3(0.0, 1.0, 0.0)
    len_sq = tm.dot(grad, grad)
    if len_sq > 1e-20:
        n = grad / ti.sqrt(len_sq)
    return n
