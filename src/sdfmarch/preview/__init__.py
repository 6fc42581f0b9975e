"""Preview module for post-processing, output and visualization.

Components:
    post: Vignette, contrast and gamma encoding of rendered frames
    export: PNG and animated GIF export via Pillow
    display: Matplotlib-based frame preview

Example:
    >>> from sdfmarch.preview import save_png, show_frame
    >>> from sdfmarch.core.renderer import render_frame
    >>>
    >>> frame = render_frame(config, time=0.0)
    >>> show_frame(frame, show_depth=True)
    >>> save_png(frame, "output.png")
"""

from sdfmarch.preview.display import depth_to_image, show_frame
from sdfmarch.preview.export import compute_rmse, frame_to_uint8, save_gif, save_png
from sdfmarch.preview.post import (
    apply_contrast,
    apply_gamma,
    apply_vignette,
    decode_gamma,
    post_process,
)

__all__ = [
    # Post-processing
    "apply_vignette",
    "apply_contrast",
    "apply_gamma",
    "decode_gamma",
    "post_process",
    # Display
    "show_frame",
    "depth_to_image",
    # Export
    "save_png",
    "save_gif",
    "frame_to_uint8",
    "compute_rmse",
]
