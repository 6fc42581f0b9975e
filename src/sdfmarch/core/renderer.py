"""Frame driver: configuration upload and the per-pixel render kernel.

render_frame() is the single host entry point. It validates a RenderConfig,
uploads it into the Taichi fields used by the scene evaluator, marcher,
materials, camera and shader, renders one frame for the given time value and
returns it as NumPy arrays.

Each pixel casts ``aa_size^2`` sub-rays at stratified positions, marches and
shades them independently, and stores the average. Pixels are processed by
the outermost parallel loop of the kernel; they share only read-only
configuration and each writes its own buffer entries, so no synchronization
is needed.

The color and depth buffers are preallocated to MAX_IMAGE_WIDTH x
MAX_IMAGE_HEIGHT to avoid Taichi kernel recompilation when the resolution
changes.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from sdfmarch.core.renderer import render_frame
    >>> from sdfmarch.scene.demo import create_demo_config
    >>> frame = render_frame(create_demo_config(), time=0.0)
    >>> frame.pixels.shape
    (240, 320, 3)
"""

import logging
import time as _time
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from sdfmarch.camera.pinhole import pixel_to_ray, setup_camera, subpixel_offset
from sdfmarch.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderConfig
from sdfmarch.core.marcher import get_march_params, march, setup_marcher
from sdfmarch.core.ray import sanitize_color
from sdfmarch.core.shader import radiance, setup_lights, setup_shading
from sdfmarch.materials.registry import setup_materials
from sdfmarch.preview.export import frame_to_uint8
from sdfmarch.preview.post import post_process
from sdfmarch.scene.program import load_scene

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3
vec4 = tm.vec4

# Depth written for pixels whose reference sub-ray missed
MISS_DEPTH = -1.0

# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_depth_buffer = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# (r, g, b, depth) written by _trace_pixel_kernel
_pixel_result = ti.Vector.field(4, dtype=ti.f32, shape=())


@dataclass
class FrameBuffer:
    """A rendered frame read back from the GPU.

    Arrays use image layout: row 0 is the top of the image.

    Attributes:
        pixels: Post-processed, display-encoded colors, shape (H, W, 3), in [0, 1].
        linear: Averaged linear radiance before post-processing, shape (H, W, 3).
        depth: Ray distance of each pixel's first sub-sample, shape (H, W);
            ``np.inf`` where it missed.
        time: Time value the frame was rendered for.
    """

    pixels: npt.NDArray[np.float32]
    linear: npt.NDArray[np.float32]
    depth: npt.NDArray[np.float32]
    time: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """8-bit version of ``pixels`` for display or export."""
        return frame_to_uint8(self)


# =============================================================================
# Configuration upload
# =============================================================================


def upload_config(config: RenderConfig) -> None:
    """Validate a configuration and upload every part of it.

    Args:
        config: The configuration to render with.

    Raises:
        ConfigError: If the configuration is invalid. Nothing is uploaded
            in that case.
    """
    config.validate()
    load_scene(config.scene)
    setup_materials(config.materials)
    setup_lights(config.lights)
    setup_camera(config.camera)
    setup_marcher(config.march)
    setup_shading(config.shading)
    logger.info(
        "Uploaded configuration: %dx%d, aa=%d, %d materials, %d lights",
        config.render.width,
        config.render.height,
        config.render.aa_size,
        len(config.materials),
        len(config.lights),
    )


# =============================================================================
# Render kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32, aa_size: ti.i32, time: ti.f32):
    """Render every pixel of a frame into the color and depth buffers."""
    for i, j in ti.ndrange(width, height):
        resolution = vec2(ti.cast(width, ti.f32), ti.cast(height, ti.f32))
        pixel_corner = vec2(ti.cast(i, ti.f32), ti.cast(j, ti.f32))
        color = vec3(0.0, 0.0, 0.0)
        depth = MISS_DEPTH

        for s in range(aa_size * aa_size):
            pixel = pixel_corner + subpixel_offset(s % aa_size, s // aa_size, aa_size)
            ray = pixel_to_ray(pixel, resolution)
            hit = march(ray, get_march_params(), time)
            color += sanitize_color(radiance(ray, hit, time, pixel))
            if s == 0 and hit.hit != 0:
                depth = hit.distance

        _color_buffer[i, j] = color / ti.cast(aa_size * aa_size, ti.f32)
        _depth_buffer[i, j] = depth


@ti.kernel
def _trace_pixel_kernel(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32, time: ti.f32):
    """Trace the center of one pixel into _pixel_result."""
    # Single-pixel range keeps the march loop serial, as in _render_kernel
    for _ in range(1):
        resolution = vec2(ti.cast(width, ti.f32), ti.cast(height, ti.f32))
        pixel = vec2(ti.cast(i, ti.f32) + 0.5, ti.cast(j, ti.f32) + 0.5)
        ray = pixel_to_ray(pixel, resolution)
        hit = march(ray, get_march_params(), time)
        color = sanitize_color(radiance(ray, hit, time, pixel))
        depth = MISS_DEPTH
        if hit.hit != 0:
            depth = hit.distance
        _pixel_result[None] = vec4(color.x, color.y, color.z, depth)


def _read_back(width: int, height: int) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Copy the active buffer region to image-layout NumPy arrays."""
    color = _color_buffer.to_numpy()[:width, :height, :]
    depth = _depth_buffer.to_numpy()[:width, :height]

    # (width, height) with a bottom-left origin -> (height, width) top-left
    color = np.flipud(np.transpose(color, (1, 0, 2))).astype(np.float32)
    depth = np.flipud(depth.T).astype(np.float32)
    depth = np.where(depth < 0.0, np.float32(np.inf), depth)
    return np.ascontiguousarray(color), np.ascontiguousarray(depth)


def render_uploaded(config: RenderConfig, time: float) -> FrameBuffer:
    """Render a frame using the configuration already uploaded.

    ``config`` must be the configuration last passed to upload_config(); only
    its resolution, AA size and post settings are read here.

    Args:
        config: The uploaded configuration.
        time: Animation time.

    Returns:
        The rendered frame.
    """
    width = config.render.width
    height = config.render.height
    start = _time.perf_counter()
    _render_kernel(width, height, config.render.aa_size, time)
    linear, depth = _read_back(width, height)
    logger.debug("Rendered frame t=%g in %.3fs", time, _time.perf_counter() - start)
    return FrameBuffer(
        pixels=post_process(linear, config.post),
        linear=linear,
        depth=depth,
        time=float(time),
    )


def render_frame(config: RenderConfig, time: float = 0.0) -> FrameBuffer:
    """Render one frame of a configuration at a given time.

    Args:
        config: Scene, materials, lights, camera and settings.
        time: Animation time; the only input that varies between frames.

    Returns:
        The rendered frame.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    upload_config(config)
    return render_uploaded(config, time)


def trace_pixel(
    config: RenderConfig, i: int, j: int, time: float = 0.0
) -> tuple[tuple[float, float, float], float]:
    """Trace a single pixel center of the uploaded configuration.

    Useful for debugging individual pixels without rendering a frame.

    Args:
        config: The uploaded configuration (for its resolution).
        i: Pixel column, 0 at the left.
        j: Pixel row, 0 at the bottom.
        time: Animation time.

    Returns:
        Tuple of (linear color, depth); depth is ``inf`` for a miss.
    """
    _trace_pixel_kernel(i, j, config.render.width, config.render.height, time)
    r = _pixel_result[None]
    depth = float(r[3]) if r[3] >= 0.0 else float("inf")
    return (float(r[0]), float(r[1]), float(r[2])), depth
