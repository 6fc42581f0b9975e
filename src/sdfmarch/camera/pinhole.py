"""Look-at pinhole camera for primary ray generation.

The camera builds a right-handed orthonormal basis from its position, target
and a world up reference:

- forward: from the position toward the target
- right: ``normalize(cross(world_up, forward))``
- up: ``normalize(cross(forward, right))``

Pixels map to normalized device coordinates ``(2 * pixel - resolution) /
resolution.y``, so the vertical extent is [-1, 1] and the horizontal extent
follows the aspect ratio. The forward axis is scaled by ``1 / tan(fov / 2)``;
a larger scale gives a narrower field of view.

The basis is computed once per frame on the host with NumPy and uploaded to
Taichi fields; ray generation runs inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from sdfmarch.config import CameraConfig
    >>> from sdfmarch.camera.pinhole import setup_camera, pixel_to_ray
    >>> setup_camera(CameraConfig(position=(0.0, 1.0, -5.0), target=(0.0, 0.0, 0.0)))
    >>> # Within a Taichi kernel:
    >>> # ray = pixel_to_ray(vec2(i + 0.5, j + 0.5), vec2(width, height))
"""

import logging
import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from sdfmarch.config import CameraConfig
from sdfmarch.core.ray import Ray, make_ray

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3

# Up references tried, in order, when world_up is parallel to the view direction
FALLBACK_UPS = ((0.0, 0.0, 1.0), (1.0, 0.0, 0.0))

# Cross products shorter than this count as degenerate
DEGENERATE_EPSILON = 1e-6


def compute_camera_basis(
    position: tuple[float, float, float],
    target: tuple[float, float, float],
    world_up: tuple[float, float, float] = (0.0, 1.0, 0.0),
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Compute the camera's (right, up, forward) unit vectors.

    When ``world_up`` is (nearly) parallel to the view direction, the cross
    product vanishes and a fallback up reference is used instead.

    Args:
        position: Camera position.
        target: Point the camera looks at. Must differ from position.
        world_up: Up reference.

    Returns:
        Tuple of (right, up, forward) as float64 arrays.
    """
    forward = np.asarray(target, dtype=np.float64) - np.asarray(position, dtype=np.float64)
    forward /= np.linalg.norm(forward)

    right = np.cross(np.asarray(world_up, dtype=np.float64), forward)
    norm = np.linalg.norm(right)
    if norm < DEGENERATE_EPSILON:
        for fallback in FALLBACK_UPS:
            right = np.cross(np.asarray(fallback, dtype=np.float64), forward)
            norm = np.linalg.norm(right)
            if norm >= DEGENERATE_EPSILON:
                logger.debug("world_up parallel to view direction, using %s", fallback)
                break
    right /= norm

    up = np.cross(forward, right)
    up /= np.linalg.norm(up)
    return right, up, forward


def perspective_scale(fov_degrees: float) -> float:
    """Forward-axis scale ``1 / tan(fov / 2)`` for a vertical field of view."""
    return 1.0 / math.tan(math.radians(fov_degrees) / 2.0)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_perspective_scale = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: CameraConfig) -> None:
    """Upload the camera basis computed from a configuration.

    Args:
        camera: Validated camera configuration.
    """
    right, up, forward = compute_camera_basis(camera.position, camera.target, camera.world_up)
    _camera_origin[None] = list(camera.position)
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _camera_forward[None] = forward.tolist()
    _perspective_scale[None] = perspective_scale(camera.fov_degrees)


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def pixel_to_ray(pixel: vec2, resolution: vec2) -> Ray:
    """Generate the primary ray through a (sub-)pixel position.

    Args:
        pixel: Position in pixels; (0, 0) is the bottom-left corner, so pixel
            centers sit at half-integer coordinates.
        resolution: Image (width, height) in pixels.

    Returns:
        Ray from the camera position with unit direction.
    """
    ndc = (2.0 * pixel - resolution) / resolution.y
    direction = tm.normalize(
        ndc.x * _camera_right[None]
        + ndc.y * _camera_up[None]
        + _camera_forward[None] * _perspective_scale[None]
    )
    return make_ray(_camera_origin[None], direction)


@ti.func
def subpixel_offset(m: ti.i32, n: ti.i32, aa_size: ti.i32) -> vec2:
    """Stratified offset of sub-sample (m, n) within a pixel, in [0, 1)^2."""
    size = ti.cast(aa_size, ti.f32)
    return vec2((ti.cast(m, ti.f32) + 0.5) / size, (ti.cast(n, ti.f32) + 0.5) / size)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, right, up, forward and perspective_scale.
    """
    info: dict[str, tuple[float, float, float] | float] = {}
    for name, f in (
        ("origin", _camera_origin),
        ("right", _camera_right),
        ("up", _camera_up),
        ("forward", _camera_forward),
    ):
        v = f[None]
        info[name] = (float(v[0]), float(v[1]), float(v[2]))
    info["perspective_scale"] = float(_perspective_scale[None])
    return info
