"""Sphere tracing against the loaded scene.

The marcher walks a ray through the distance field: at each step it samples
the scene and advances by the sampled distance (optionally damped). Because
the field is a lower bound of the true distance, a step can never cross a
surface. The hit tolerance grows with the travelled distance, which keeps far
surfaces from costing the whole step budget.

Primary-ray parameters are uploaded once per frame with setup_marcher() and
read inside kernels through get_march_params(). Shadow rays build their own
MarchParams.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.config import MarchSettings
    >>> from sdfmarch.core.marcher import setup_marcher, march, get_march_params
    >>> setup_marcher(MarchSettings(max_steps=128))
    >>> # Within a Taichi kernel:
    >>> # hit = march(ray, get_march_params(), time)
"""

import logging

import taichi as ti
import taichi.math as tm

from sdfmarch.config import MarchSettings
from sdfmarch.core.ray import Ray, ray_at
from sdfmarch.scene.program import evaluate_scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3


@ti.dataclass
class MarchParams:
    """Sphere tracing parameters.

    Attributes:
        max_steps: Step budget; the ray is a miss when it runs out.
        hit_epsilon_scale: Hit when ``distance <= hit_epsilon_scale * t``.
        max_distance: Miss as soon as ``t`` exceeds this value.
        step_damping: Fraction of each sampled distance actually advanced.
    """

    max_steps: ti.i32
    hit_epsilon_scale: ti.f32
    max_distance: ti.f32
    step_damping: ti.f32


@ti.dataclass
class Hit:
    """Result of marching a ray.

    Attributes:
        hit: 1 for a surface hit, 0 for a miss.
        distance: Ray parameter of the hit (distance travelled for a miss).
        position: Hit point (last sample point for a miss).
        material: First material id of the scene sample at the hit.
        material_b: Second material id (equal to material without blending).
        blend: Weight of material_b.
        steps: Number of field evaluations performed.
    """

    hit: ti.i32
    distance: ti.f32
    position: vec3
    material: ti.i32
    material_b: ti.i32
    blend: ti.f32
    steps: ti.i32


@ti.func
def march(ray: Ray, params: MarchParams, time: ti.f32) -> Hit:
    """March a ray through the scene.

    A ray whose origin lies inside geometry reports a hit at t = 0 on its
    first step.

    Args:
        ray: Ray with unit direction.
        params: Tracing parameters.
        time: Animation time forwarded to the scene.

    Returns:
        A Hit; ``hit == 0`` denotes a miss.
    """
    result = Hit(
        hit=0,
        distance=0.0,
        position=ray.origin,
        material=0,
        material_b=0,
        blend=0.0,
        steps=0,
    )
    t = 0.0
    # Active flag instead of break so march() can be a kernel's outermost loop
    active = 1
    for step in range(params.max_steps):
        if active == 1:
            p = ray_at(ray, t)
            sample = evaluate_scene(p, time)
            result.steps = step + 1
            result.position = p
            result.distance = t
            if sample.distance <= params.hit_epsilon_scale * t:
                result.hit = 1
                result.material = sample.material
                result.material_b = sample.material_b
                result.blend = sample.blend
                active = 0
            else:
                t += sample.distance * params.step_damping
                if t > params.max_distance:
                    result.distance = t
                    active = 0
    return result


# =============================================================================
# Primary ray parameters
# =============================================================================

_max_steps = ti.field(dtype=ti.i32, shape=())
_hit_epsilon_scale = ti.field(dtype=ti.f32, shape=())
_max_distance = ti.field(dtype=ti.f32, shape=())
_step_damping = ti.field(dtype=ti.f32, shape=())


def setup_marcher(settings: MarchSettings) -> None:
    """Upload primary-ray march settings.

    Args:
        settings: Validated march settings.
    """
    _max_steps[None] = settings.max_steps
    _hit_epsilon_scale[None] = settings.hit_epsilon_scale
    _max_distance[None] = settings.max_distance
    _step_damping[None] = settings.step_damping
    logger.debug(
        "March settings: max_steps=%d max_distance=%g epsilon_scale=%g damping=%g",
        settings.max_steps,
        settings.max_distance,
        settings.hit_epsilon_scale,
        settings.step_damping,
    )


@ti.func
def get_march_params() -> MarchParams:
    """Primary-ray parameters as uploaded by setup_marcher()."""
    return MarchParams(
        max_steps=_max_steps[None],
        hit_epsilon_scale=_hit_epsilon_scale[None],
        max_distance=_max_distance[None],
        step_damping=_step_damping[None],
    )
