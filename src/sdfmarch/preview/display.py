"""Matplotlib-based preview of rendered frames.

Matplotlib is an optional dependency (the ``preview`` extra) and is imported
only when a preview is requested.

Example:
    >>> from sdfmarch.core.renderer import render_frame
    >>> from sdfmarch.preview.display import show_frame
    >>> show_frame(render_frame(config, time=0.0))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from sdfmarch.core.renderer import FrameBuffer


def depth_to_image(
    depth: npt.NDArray[np.float32],
    max_distance: float | None = None,
) -> npt.NDArray[np.float32]:
    """Map a depth buffer to a grayscale image, near = bright, misses = black.

    Args:
        depth: Depth array of shape (H, W); ``inf`` marks misses.
        max_distance: Depth mapped to black. Defaults to the farthest hit.

    Returns:
        Array of shape (H, W, 3) in [0, 1].
    """
    finite = np.isfinite(depth)
    if max_distance is None:
        max_distance = float(depth[finite].max()) if finite.any() else 1.0
    max_distance = max(max_distance, 1e-6)
    value = np.where(finite, 1.0 - np.clip(depth / max_distance, 0.0, 1.0), 0.0)
    return np.repeat(value[:, :, np.newaxis], 3, axis=2).astype(np.float32)


def show_frame(
    frame: FrameBuffer,
    *,
    show_depth: bool = False,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a frame as a Matplotlib figure.

    Args:
        frame: The frame to show.
        show_depth: Also show the depth buffer next to the image.
        title: Custom title (default shows the frame time).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    panels = 2 if show_depth else 1
    fig, axes = plt.subplots(1, panels, figsize=figsize, squeeze=False)

    axes[0, 0].imshow(frame.pixels)
    axes[0, 0].axis("off")
    axes[0, 0].set_title(title if title is not None else f"t = {frame.time:.3f}")

    if show_depth:
        axes[0, 1].imshow(depth_to_image(frame.depth))
        axes[0, 1].axis("off")
        axes[0, 1].set_title("Depth")

    plt.tight_layout()
    plt.show(block=block)
