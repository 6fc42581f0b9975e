"""Materials module: material table and texture sampling.

Components:
    registry: Material fields indexed by material id, surface color and
        specular lookup with smooth-blend mixing
    texture: Image texture upload, bilinear sampling with a procedural
        checker fallback, 3D checker and triplanar projection

Texturing modes per material:
    none: Base color only
    checker: Base color modulated by a solid 3D checker
    triplanar: Base color modulated by the texture projected along the
        three world axes, weighted by the absolute normal
"""

from .registry import (
    TEXTURE_CHECKER,
    TEXTURE_NONE,
    TEXTURE_TRIPLANAR,
    get_material_count,
    material_albedo,
    setup_materials,
    surface_albedo,
    surface_specular,
)
from .texture import (
    MAX_TEXTURE_SIZE,
    checker_2d,
    checker_3d,
    clear_texture,
    has_texture,
    load_texture_image,
    sample_texture,
    set_texture,
    triplanar,
    triplanar_weights,
)

__all__ = [
    # Registry
    "setup_materials",
    "get_material_count",
    "material_albedo",
    "surface_albedo",
    "surface_specular",
    "TEXTURE_NONE",
    "TEXTURE_CHECKER",
    "TEXTURE_TRIPLANAR",
    # Texture
    "MAX_TEXTURE_SIZE",
    "set_texture",
    "clear_texture",
    "has_texture",
    "load_texture_image",
    "sample_texture",
    "checker_2d",
    "checker_3d",
    "triplanar",
    "triplanar_weights",
]
