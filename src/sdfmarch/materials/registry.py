"""Material table storage and surface color lookup.

Materials are stored in preallocated Taichi fields indexed by material id,
in Structure of Arrays layout. Scene primitives reference entries by id; the
id range is checked on the host when the configuration is validated, so the
kernels never see an unknown id.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.config import MaterialConfig
    >>> from sdfmarch.materials.registry import setup_materials
    >>> setup_materials([MaterialConfig(color=(0.8, 0.2, 0.2), texture="checker")])
"""

import logging

import taichi as ti
import taichi.math as tm

from sdfmarch.config import MAX_MATERIALS, TEXTURE_MODES, MaterialConfig
from sdfmarch.errors import ConfigError
from sdfmarch.materials.texture import CHECKER_DARK, CHECKER_LIGHT, checker_3d, triplanar

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3

# Texture mode codes, in TEXTURE_MODES order
TEXTURE_NONE = 0
TEXTURE_CHECKER = 1
TEXTURE_TRIPLANAR = 2

_material_color = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
_material_texture = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
_material_texture_scale = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
_material_specular = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
_material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
_num_materials = ti.field(dtype=ti.i32, shape=())


def setup_materials(materials: list[MaterialConfig]) -> None:
    """Upload the material table.

    Args:
        materials: Validated materials; list index is the material id.

    Raises:
        ConfigError: If more than MAX_MATERIALS materials are given.
    """
    if len(materials) > MAX_MATERIALS:
        raise ConfigError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    for i, m in enumerate(materials):
        _material_color[i] = list(m.color)
        _material_texture[i] = TEXTURE_MODES.index(m.texture)
        _material_texture_scale[i] = m.texture_scale
        _material_specular[i] = m.specular
        _material_shininess[i] = m.shininess
    _num_materials[None] = len(materials)
    logger.debug("Uploaded %d materials", len(materials))


def get_material_count() -> int:
    """Get the number of uploaded materials."""
    return int(_num_materials[None])


@ti.func
def material_albedo(material_id: ti.i32, p: vec3, n: vec3, texturing: ti.i32) -> vec3:
    """Surface color of one material at a point.

    Args:
        material_id: Index into the material table.
        p: Surface point.
        n: Unit surface normal.
        texturing: 0 ignores texture modes and returns the base color.

    Returns:
        Linear RGB albedo.
    """
    color = _material_color[material_id]
    mode = _material_texture[material_id]
    if texturing != 0:
        scale = _material_texture_scale[material_id]
        if mode == TEXTURE_CHECKER:
            color *= tm.mix(CHECKER_DARK, CHECKER_LIGHT, checker_3d(p, n, scale))
        elif mode == TEXTURE_TRIPLANAR:
            color *= triplanar(p, n, scale)
    return color


@ti.func
def surface_albedo(
    material: ti.i32,
    material_b: ti.i32,
    blend: ti.f32,
    p: vec3,
    n: vec3,
    texturing: ti.i32,
) -> vec3:
    """Albedo of a possibly blended surface: ``mix(albedo_a, albedo_b, blend)``.

    The two lookups run in a loop so material_albedo is inlined once.
    """
    color = vec3(0.0, 0.0, 0.0)
    for k in range(2):
        mid = material
        weight = 1.0 - blend
        if k == 1:
            mid = material_b
            weight = blend
        if weight > 0.0:
            color += material_albedo(mid, p, n, texturing) * weight
    return color


@ti.func
def surface_specular(material: ti.i32, material_b: ti.i32, blend: ti.f32) -> vec2:
    """Blended Blinn-Phong (strength, shininess) of a surface."""
    strength = tm.mix(_material_specular[material], _material_specular[material_b], blend)
    shininess = tm.mix(_material_shininess[material], _material_shininess[material_b], blend)
    return vec2(strength, shininess)

