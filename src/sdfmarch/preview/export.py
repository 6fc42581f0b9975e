"""Image export for rendered frames.

Supported formats:
    - PNG (8-bit, via Pillow)
    - Animated GIF (via Pillow)

Frames are already post-processed (gamma encoded) by the renderer, so export
only quantizes to 8 bits.

Example:
    >>> from sdfmarch.core.renderer import render_frame
    >>> from sdfmarch.preview.export import save_png
    >>> frame = render_frame(config, time=0.0)
    >>> save_png(frame, "output.png")
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from sdfmarch.core.renderer import FrameBuffer


def frame_to_uint8(frame: FrameBuffer | npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize a frame (or an encoded float image in [0, 1]) to uint8.

    Args:
        frame: A FrameBuffer, or an array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    pixels = frame.pixels if hasattr(frame, "pixels") else frame
    return (np.clip(pixels, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def save_png(frame: FrameBuffer | npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a frame as an 8-bit RGB PNG.

    Args:
        frame: A FrameBuffer, or an encoded float image of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    PILImage.fromarray(frame_to_uint8(frame), mode="RGB").save(filepath)


def save_gif(
    frames: Sequence[FrameBuffer | npt.NDArray[np.floating]],
    filepath: str | Path,
    *,
    fps: float = 12.0,
    loop: int = 0,
) -> None:
    """Save a sequence of frames as an animated GIF.

    Args:
        frames: Frames in display order; all must have the same size.
        filepath: Output file path (should end in .gif).
        fps: Playback rate.
        loop: Number of loops, 0 for infinite.

    Raises:
        ValueError: If no frames are given or the frame sizes differ.
    """
    if not frames:
        raise ValueError("At least one frame is required")
    images = [PILImage.fromarray(frame_to_uint8(f), mode="RGB") for f in frames]
    if any(img.size != images[0].size for img in images):
        raise ValueError("All frames must have the same size")
    images[0].save(
        filepath,
        save_all=True,
        append_images=images[1:],
        duration=int(round(1000.0 / fps)),
        loop=loop,
    )


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
