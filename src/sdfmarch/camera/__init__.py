"""Camera module for view setup and primary ray generation.

Components:
    pinhole: Look-at pinhole camera

Ray generation maps pixel positions to normalized device coordinates
``(2 * pixel - resolution) / resolution.y``; (0, 0) is the bottom-left
corner of the image. Sub-pixel positions for supersampling come from
stratified offsets.
"""

from .pinhole import (
    compute_camera_basis,
    get_camera_info,
    perspective_scale,
    pixel_to_ray,
    setup_camera,
    subpixel_offset,
)

__all__ = [
    "compute_camera_basis",
    "perspective_scale",
    "setup_camera",
    "pixel_to_ray",
    "subpixel_offset",
    "get_camera_info",
]
