"""Surface shading for marched rays.

For a surface hit the shader:

1. estimates the normal from the distance field,
2. looks up the (possibly blended, possibly textured) surface color,
3. adds an ambient term, scaled by ambient occlusion when enabled,
4. adds Lambert diffuse and optional Blinn-Phong specular per directional
   light, attenuated by hard or soft shadows,
5. applies exponential distance fog.

Misses are shaded by shade_background(), a sky gradient with a glow toward
the first light, which depends only on the ray direction.

Soft shadow rays are jittered with a seeded hash of the pixel seed, the
sample index and the light index, so two renders of the same frame produce
identical shadows.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.core.shader import radiance
    >>> # Within a Taichi kernel, after marching:
    >>> # color = radiance(ray, hit, time, seed)
"""

import logging

import taichi as ti
import taichi.math as tm

from sdfmarch.config import MAX_LIGHTS, SHADOW_MODES, LightConfig, ShadingSettings
from sdfmarch.core.marcher import Hit, MarchParams, get_march_params, march
from sdfmarch.core.ray import Ray, hash_jitter, safe_normalize
from sdfmarch.errors import ConfigError
from sdfmarch.materials.registry import surface_albedo, surface_specular
from sdfmarch.scene.program import estimate_normal, scene_distance

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3

# Shadow mode codes, in SHADOW_MODES order
SHADOW_NONE = 0
SHADOW_HARD = 1
SHADOW_SOFT = 2

# Ambient occlusion sampling along the normal
AO_SAMPLES = 5
AO_MAX_DISTANCE = 0.12

# =============================================================================
# Lights
# =============================================================================

_light_direction = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_color = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_intensity = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
_num_lights = ti.field(dtype=ti.i32, shape=())


def setup_lights(lights: list[LightConfig]) -> None:
    """Upload directional lights.

    Args:
        lights: Validated lights. An empty list leaves only ambient light.

    Raises:
        ConfigError: If more than MAX_LIGHTS lights are given.
    """
    if len(lights) > MAX_LIGHTS:
        raise ConfigError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    for i, light in enumerate(lights):
        _light_direction[i] = list(light.unit_direction)
        _light_color[i] = list(light.color)
        _light_intensity[i] = light.intensity
    _num_lights[None] = len(lights)


# =============================================================================
# Shading settings
# =============================================================================

_lighting = ti.field(dtype=ti.i32, shape=())
_shadow_mode = ti.field(dtype=ti.i32, shape=())
_shadow_samples = ti.field(dtype=ti.i32, shape=())
_shadow_softness = ti.field(dtype=ti.f32, shape=())
_shadow_attenuation = ti.field(dtype=ti.f32, shape=())
_shadow_bias = ti.field(dtype=ti.f32, shape=())
_shadow_max_distance = ti.field(dtype=ti.f32, shape=())
_texturing = ti.field(dtype=ti.i32, shape=())
_ambient_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_ambient_occlusion = ti.field(dtype=ti.i32, shape=())
_fog = ti.field(dtype=ti.i32, shape=())
_fog_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_fog_density = ti.field(dtype=ti.f32, shape=())
_normal_epsilon = ti.field(dtype=ti.f32, shape=())
_sky_horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
_sky_zenith = ti.Vector.field(3, dtype=ti.f32, shape=())
_sun_intensity = ti.field(dtype=ti.f32, shape=())
_sun_sharpness = ti.field(dtype=ti.f32, shape=())


def setup_shading(settings: ShadingSettings) -> None:
    """Upload shader toggles and constants.

    Args:
        settings: Validated shading settings.
    """
    _lighting[None] = int(settings.lighting)
    _shadow_mode[None] = SHADOW_MODES.index(settings.shadows)
    _shadow_samples[None] = settings.shadow_samples
    _shadow_softness[None] = settings.shadow_softness
    _shadow_attenuation[None] = settings.shadow_attenuation
    _shadow_bias[None] = settings.shadow_bias
    _shadow_max_distance[None] = settings.shadow_max_distance
    _texturing[None] = int(settings.texturing)
    _ambient_color[None] = list(settings.ambient_color)
    _ambient_occlusion[None] = int(settings.ambient_occlusion)
    _fog[None] = int(settings.fog)
    _fog_color[None] = list(settings.fog_color)
    _fog_density[None] = settings.fog_density
    _normal_epsilon[None] = settings.normal_epsilon
    _sky_horizon[None] = list(settings.sky_horizon)
    _sky_zenith[None] = list(settings.sky_zenith)
    _sun_intensity[None] = settings.sun_intensity
    _sun_sharpness[None] = settings.sun_sharpness
    logger.debug(
        "Shading: lighting=%s shadows=%s samples=%d fog=%s ao=%s",
        settings.lighting,
        settings.shadows,
        settings.shadow_samples,
        settings.fog,
        settings.ambient_occlusion,
    )


# =============================================================================
# Shading functions (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def shade_background(direction: vec3) -> vec3:
    """Sky color for a ray that hit nothing.

    Vertical gradient from the horizon color (at and below the horizon) to
    the zenith color, plus a glow toward the first light.
    """
    h = tm.clamp(direction.y, 0.0, 1.0)
    sky = tm.mix(_sky_horizon[None], _sky_zenith[None], h)
    if _num_lights[None] > 0 and _sun_intensity[None] > 0.0:
        s = ti.max(tm.dot(direction, _light_direction[0]), 0.0)
        sky += _light_color[0] * (_sun_intensity[None] * ti.pow(s, _sun_sharpness[None]))
    return sky


@ti.func
def shadow_occlusion(
    p: vec3, n: vec3, light_index: ti.i32, time: ti.f32, seed: vec2
) -> ti.f32:
    """Fraction of shadow rays toward a light that are blocked.

    Rays start at ``p + n * shadow_bias``. Hard shadows cast a single ray;
    soft shadows cast ``shadow_samples`` rays whose directions are jittered
    by ``shadow_softness``.

    Args:
        p: Surface point.
        n: Unit surface normal.
        light_index: Index of the light; also the jitter stream.
        time: Animation time.
        seed: Per-pixel jitter seed.

    Returns:
        Occlusion in [0, 1]; 0 when shadows are disabled.
    """
    mode = _shadow_mode[None]
    occlusion = 0.0
    if mode != SHADOW_NONE:
        count = 1
        if mode == SHADOW_SOFT:
            count = _shadow_samples[None]
        primary = get_march_params()
        params = MarchParams(
            max_steps=primary.max_steps,
            hit_epsilon_scale=primary.hit_epsilon_scale,
            max_distance=_shadow_max_distance[None],
            step_damping=primary.step_damping,
        )
        origin = p + n * _shadow_bias[None]
        to_light = _light_direction[light_index]
        blocked = 0
        for s in range(count):
            direction = to_light
            if mode == SHADOW_SOFT:
                jitter = hash_jitter(seed, s, light_index) * _shadow_softness[None]
                direction = safe_normalize(to_light + jitter, to_light)
            hit = march(Ray(origin=origin, direction=direction), params, time)
            if hit.hit != 0:
                blocked += 1
        occlusion = ti.cast(blocked, ti.f32) / ti.cast(count, ti.f32)
    return occlusion


@ti.func
def shadow_visibility(occlusion: ti.f32) -> ti.f32:
    """Light scale for a given occlusion: fully blocked leaves shadow_attenuation."""
    return 1.0 - (1.0 - _shadow_attenuation[None]) * occlusion


@ti.func
def ambient_occlusion(p: vec3, n: vec3, time: ti.f32) -> ti.f32:
    """Approximate occlusion from distance samples along the normal, in [0, 1]."""
    occ = 0.0
    weight = 1.0
    for i in range(AO_SAMPLES):
        h = 0.01 + AO_MAX_DISTANCE * ti.cast(i, ti.f32) / ti.cast(AO_SAMPLES - 1, ti.f32)
        d = scene_distance(p + n * h, time)
        occ += (h - d) * weight
        weight *= 0.95
    return tm.clamp(1.0 - 3.0 * occ, 0.0, 1.0)


@ti.func
def apply_fog(color: vec3, distance: ti.f32) -> vec3:
    """Exponential fog: ``mix(color, fog_color, 1 - exp(-density * distance))``."""
    result = color
    if _fog[None] != 0:
        amount = 1.0 - ti.exp(-_fog_density[None] * distance)
        result = tm.mix(color, _fog_color[None], amount)
    return result


@ti.func
def shade(ray: Ray, hit: Hit, time: ti.f32, seed: vec2) -> vec3:
    """Color of a surface hit.

    With lighting disabled the unlit surface color is returned (still
    fogged), which is useful to inspect materials and textures.

    Args:
        ray: The primary ray.
        hit: A hit (``hit.hit == 1``) returned by march().
        time: Animation time.
        seed: Per-pixel jitter seed for soft shadows.

    Returns:
        Linear RGB color.
    """
    p = hit.position
    n = estimate_normal(p, time, _normal_epsilon[None])
    albedo = surface_albedo(hit.material, hit.material_b, hit.blend, p, n, _texturing[None])

    color = albedo
    if _lighting[None] != 0:
        ao = 1.0
        if _ambient_occlusion[None] != 0:
            ao = ambient_occlusion(p, n, time)
        color = _ambient_color[None] * albedo * ao

        specular = surface_specular(hit.material, hit.material_b, hit.blend)
        for li in range(_num_lights[None]):
            to_light = _light_direction[li]
            n_dot_l = ti.max(tm.dot(n, to_light), 0.0)
            if n_dot_l > 0.0:
                light = _light_color[li] * _light_intensity[li]
                direct = albedo * light * n_dot_l
                if specular.x > 0.0:
                    half = safe_normalize(to_light - ray.direction, n)
                    n_dot_h = ti.max(tm.dot(n, half), 0.0)
                    direct += light * (specular.x * ti.pow(n_dot_h, specular.y))
                visibility = shadow_visibility(shadow_occlusion(p, n, li, time, seed))
                color += direct * visibility

    return apply_fog(color, hit.distance)


@ti.func
def radiance(ray: Ray, hit: Hit, time: ti.f32, seed: vec2) -> vec3:
    """Shade a hit, or return the background for a miss."""
    color = vec3(0.0, 0.0, 0.0)
    if hit.hit != 0:
        color = shade(ray, hit, time, seed)
    else:
        color = shade_background(ray.direction)
    return color
