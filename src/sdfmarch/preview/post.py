"""Per-pixel post-processing of rendered frames.

The pipeline runs on the host over NumPy arrays in a fixed order:

1. Vignette (radial darkening toward the corners)
2. Contrast (blend toward a smoothstep S-curve)
3. Gamma encoding, always last

Each step is a pure function of the pixel value and, for the vignette, its
position, so the stage can be tested in isolation from the renderer.

Example:
    >>> import numpy as np
    >>> from sdfmarch.config import PostSettings
    >>> from sdfmarch.preview.post import post_process
    >>> linear = np.full((4, 4, 3), 0.5, dtype=np.float32)
    >>> encoded = post_process(linear, PostSettings())
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from sdfmarch.config import PostSettings


def apply_vignette(
    image: npt.NDArray[np.float32],
    strength: float,
) -> npt.NDArray[np.float32]:
    """Darken the image radially away from its center.

    The factor is ``1 - strength * r^2``, where ``r`` is the distance from
    the center normalized so the corners sit at 1.

    Args:
        image: Image array of shape (H, W, 3).
        strength: Darkening at the corners, in [0, 1].

    Returns:
        The vignetted image.
    """
    if strength == 0.0:
        return image.astype(np.float32)

    height, width = image.shape[:2]
    y = (np.arange(height, dtype=np.float32) + 0.5) / height * 2.0 - 1.0
    x = (np.arange(width, dtype=np.float32) + 0.5) / width * 2.0 - 1.0
    r2 = (x[np.newaxis, :] ** 2 + y[:, np.newaxis] ** 2) * 0.5
    factor = 1.0 - strength * r2
    return (image * factor[:, :, np.newaxis]).astype(np.float32)


def apply_contrast(
    image: npt.NDArray[np.float32],
    amount: float,
) -> npt.NDArray[np.float32]:
    """Blend toward ``smoothstep(0, 1, c)`` by ``amount``.

    Args:
        image: Image array in linear [0, 1] range.
        amount: 0 leaves the image unchanged, 1 applies the full S-curve.

    Returns:
        The contrast-adjusted image.
    """
    c = np.clip(image, 0.0, 1.0)
    curve = c * c * (3.0 - 2.0 * c)
    return (c + (curve - c) * amount).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear values for display: ``c^(1/gamma)``."""
    image = np.clip(image, 0.0, 1.0)
    if gamma == 1.0:
        return image.astype(np.float32)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def decode_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Inverse of apply_gamma: ``c^gamma``."""
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, gamma).astype(np.float32)


def post_process(
    image: npt.NDArray[np.float32],
    settings: PostSettings,
) -> npt.NDArray[np.float32]:
    """Run the full post-processing pipeline.

    Args:
        image: Linear image of shape (H, W, 3).
        settings: Vignette, contrast and gamma parameters.

    Returns:
        Display-encoded image in [0, 1].
    """
    result = apply_vignette(image, settings.vignette)
    result = apply_contrast(result, settings.contrast)
    return apply_gamma(result, settings.gamma)
