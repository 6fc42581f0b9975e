"""Texture sampling: image textures, 3D checker and triplanar projection.

A single RGB texture can be uploaded from a NumPy array or an image file.
sample_texture() reads it with bilinear filtering and wrapping coordinates;
when no image is loaded it falls back to a procedural checkerboard, so
textured materials always have something to show.

Triplanar mapping projects the texture along the three world axes and blends
the three lookups with weights taken from the absolute surface normal, which
avoids the stretching of a single planar projection on curved surfaces.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.materials.texture import load_texture_image, triplanar
    >>> load_texture_image("bricks.png")
    >>> # Within a Taichi kernel:
    >>> # color = triplanar(p, normal, 0.5)
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

from sdfmarch.errors import ConfigError
from sdfmarch.preview.post import decode_gamma

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3

# Maximum texture size (preallocated)
MAX_TEXTURE_SIZE = 512

# Procedural checker colors
CHECKER_LIGHT = 0.9
CHECKER_DARK = 0.35

_texture = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_TEXTURE_SIZE, MAX_TEXTURE_SIZE))
_texture_width = ti.field(dtype=ti.i32, shape=())
_texture_height = ti.field(dtype=ti.i32, shape=())


def set_texture(image: npt.NDArray) -> None:
    """Upload an RGB image as the active texture.

    Args:
        image: Array of shape (H, W, 3), row 0 at the top. uint8 arrays are
            scaled to [0, 1]; float arrays are used as linear values.

    Raises:
        ConfigError: If the array has the wrong shape or exceeds
            MAX_TEXTURE_SIZE.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ConfigError(f"Texture must have shape (H, W, 3), got {image.shape}")
    height, width = image.shape[:2]
    if not (0 < width <= MAX_TEXTURE_SIZE and 0 < height <= MAX_TEXTURE_SIZE):
        raise ConfigError(
            f"Texture size {width}x{height} exceeds {MAX_TEXTURE_SIZE}x{MAX_TEXTURE_SIZE}"
        )

    if image.dtype == np.uint8:
        data = image.astype(np.float32) / 255.0
    else:
        data = np.nan_to_num(image.astype(np.float32), nan=0.0, posinf=0.0, neginf=0.0)

    # Texel [x, y] with y counted from the bottom, like the frame buffer
    padded = np.zeros((MAX_TEXTURE_SIZE, MAX_TEXTURE_SIZE, 3), dtype=np.float32)
    padded[:width, :height, :] = np.transpose(np.flipud(data), (1, 0, 2))
    _texture.from_numpy(padded)
    _texture_width[None] = width
    _texture_height[None] = height
    logger.debug("Uploaded %dx%d texture", width, height)


def clear_texture() -> None:
    """Drop the active texture; sampling falls back to the procedural checker."""
    _texture_width[None] = 0
    _texture_height[None] = 0


def has_texture() -> bool:
    """Check whether an image texture is loaded."""
    return _texture_width[None] > 0


def load_texture_image(filepath: str | Path, *, gamma: float = 2.2) -> None:
    """Load an image file with Pillow and upload it as the active texture.

    Images larger than MAX_TEXTURE_SIZE are downscaled to fit. The sRGB-ish
    encoded file is decoded to linear values with the given gamma.

    Args:
        filepath: Path to any image format Pillow can read.
        gamma: Encoding gamma of the file.
    """
    with PILImage.open(filepath) as img:
        img = img.convert("RGB")
        if img.width > MAX_TEXTURE_SIZE or img.height > MAX_TEXTURE_SIZE:
            img.thumbnail((MAX_TEXTURE_SIZE, MAX_TEXTURE_SIZE), PILImage.Resampling.LANCZOS)
        data = np.asarray(img, dtype=np.float32) / 255.0
    set_texture(decode_gamma(data, gamma))
    logger.info("Loaded texture %s (%dx%d)", filepath, data.shape[1], data.shape[0])


# =============================================================================
# Sampling (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def _texel(x: ti.i32, y: ti.i32, w: ti.i32, h: ti.i32) -> vec3:
    return _texture[x % w, y % h]


@ti.func
def checker_2d(uv: vec2) -> ti.f32:
    """1.0 on even cells, 0.0 on odd cells of a unit-spaced 2D checker."""
    cells = ti.cast(ti.floor(uv.x), ti.i32) + ti.cast(ti.floor(uv.y), ti.i32)
    return ti.cast((cells & 1) == 0, ti.f32)


@ti.func
def sample_texture(uv: vec2) -> vec3:
    """Sample the active texture at the given coordinates.

    Coordinates wrap with period 1 in both directions. Without a loaded
    image the result is a 2x2 procedural checker per unit square.

    Args:
        uv: Texture coordinates.

    Returns:
        Linear RGB color.
    """
    w = _texture_width[None]
    h = _texture_height[None]
    color = vec3(0.0, 0.0, 0.0)
    if w > 0 and h > 0:
        x = tm.fract(uv.x) * ti.cast(w, ti.f32) - 0.5
        y = tm.fract(uv.y) * ti.cast(h, ti.f32) - 0.5
        x0 = ti.cast(ti.floor(x), ti.i32)
        y0 = ti.cast(ti.floor(y), ti.i32)
        fx = x - ti.floor(x)
        fy = y - ti.floor(y)
        bottom = tm.mix(_texel(x0, y0, w, h), _texel(x0 + 1, y0, w, h), fx)
        top = tm.mix(_texel(x0, y0 + 1, w, h), _texel(x0 + 1, y0 + 1, w, h), fx)
        color = tm.mix(bottom, top, fy)
    else:
        c = tm.mix(CHECKER_DARK, CHECKER_LIGHT, checker_2d(uv * 2.0))
        color = vec3(c, c, c)
    return color


@ti.func
def checker_3d(p: vec3, n: vec3, scale: ti.f32) -> ti.f32:
    """Solid 3D checker with unit cells of size ``1 / scale``.

    The lookup is pushed a quarter cell below the surface along the normal,
    so hit points that land slightly outside a cell boundary (a plane through
    the cell corners, for example) still resolve to a single cell.

    Returns:
        1.0 or 0.0 depending on the cell parity.
    """
    q = p * scale - n * 0.25
    cells = (
        ti.cast(ti.floor(q.x), ti.i32)
        + ti.cast(ti.floor(q.y), ti.i32)
        + ti.cast(ti.floor(q.z), ti.i32)
    )
    return ti.cast((cells & 1) == 0, ti.f32)


@ti.func
def triplanar_weights(n: vec3) -> vec3:
    """Projection weights for the X, Y and Z projections: ``abs(n)``."""
    return ti.abs(n)


@ti.func
def triplanar(p: vec3, n: vec3, scale: ti.f32) -> vec3:
    """Triplanar texture lookup.

    Each axis projection samples the texture with the two remaining world
    coordinates. The weights are used as they are, without normalization, so
    grazing angles between two axes come out somewhat brighter.

    Args:
        p: Surface point.
        n: Unit surface normal.
        scale: Texture frequency in world space.

    Returns:
        Blended linear RGB color.
    """
    w = triplanar_weights(n)
    q = p * scale
    return (
        sample_texture(vec2(q.y, q.z)) * w.x
        + sample_texture(vec2(q.x, q.z)) * w.y
        + sample_texture(vec2(q.x, q.y)) * w.z
    )
