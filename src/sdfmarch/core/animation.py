"""Animation driver: render a configuration at a sequence of time values.

AnimationRenderer validates and uploads a configuration once, then renders
one frame per time value. Only the time argument changes between frames, so
primitives with motion move while everything else stays fixed.

Cancellation is coarse: cancel() takes effect at the next frame boundary and
never interrupts a frame that is already being rendered.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from sdfmarch.core.animation import AnimationRenderer, frame_times
    >>> from sdfmarch.scene.demo import create_demo_config
    >>>
    >>> renderer = AnimationRenderer(create_demo_config())
    >>> frames = renderer.render(frame_times(24, fps=12.0))
    >>> renderer.save_frames("frames/")
"""

import logging
from collections.abc import Callable, Generator, Iterable
from pathlib import Path

from sdfmarch.config import RenderConfig
from sdfmarch.core.renderer import FrameBuffer, render_uploaded, upload_config

logger = logging.getLogger(__name__)

# Callback receives (frames_done, frames_total, latest_frame)
FrameCallback = Callable[[int, int, FrameBuffer], None]


def frame_times(num_frames: int, fps: float = 24.0, start: float = 0.0) -> list[float]:
    """Evenly spaced time values for ``num_frames`` frames at ``fps``."""
    if num_frames < 0:
        raise ValueError(f"num_frames must be >= 0, got {num_frames}")
    if fps <= 0.0:
        raise ValueError(f"fps must be > 0, got {fps}")
    return [start + k / fps for k in range(num_frames)]


class AnimationRenderer:
    """Renders frames of one configuration for many time values.

    Attributes:
        config: The uploaded configuration.
        frames: Frames rendered so far, in render order.
    """

    def __init__(self, config: RenderConfig) -> None:
        """Validate and upload the configuration.

        Args:
            config: Scene, materials, lights, camera and settings.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        upload_config(config)
        self.config = config
        self.frames: list[FrameBuffer] = []
        self._cancelled = False

    @property
    def frame_count(self) -> int:
        """Get the number of frames rendered so far."""
        return len(self.frames)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop rendering at the next frame boundary."""
        self._cancelled = True

    def reset(self) -> None:
        """Drop rendered frames and clear the cancel flag."""
        self.frames.clear()
        self._cancelled = False

    def render_frame(self, time: float) -> FrameBuffer:
        """Render and keep a single frame."""
        frame = render_uploaded(self.config, time)
        self.frames.append(frame)
        return frame

    def render(
        self,
        times: Iterable[float],
        callback: FrameCallback | None = None,
    ) -> list[FrameBuffer]:
        """Render one frame per time value.

        Args:
            times: Time values, rendered in order.
            callback: Optional function called after each frame with
                (frames_done, frames_total, frame).

        Returns:
            The frames rendered by this call. Fewer than requested if
            cancel() was called.
        """
        rendered = []
        for done, total, frame in self.render_progressive(times):
            rendered.append(frame)
            if callback is not None:
                callback(done, total, frame)
        return rendered

    def render_progressive(
        self,
        times: Iterable[float],
    ) -> Generator[tuple[int, int, FrameBuffer], None, None]:
        """Render frames one by one, yielding after each.

        Cancellation is checked before every frame, so calling cancel() from
        the consuming loop stops the sequence cleanly.

        Yields:
            Tuple of (frames_done, frames_total, frame).
        """
        times = list(times)
        total = len(times)
        for k, t in enumerate(times):
            if self._cancelled:
                logger.info("Animation cancelled after %d of %d frames", k, total)
                return
            frame = self.render_frame(t)
            logger.debug("Frame %d/%d (t=%g)", k + 1, total, t)
            yield (k + 1, total, frame)

    def save_frames(self, directory: str | Path, prefix: str = "frame") -> list[Path]:
        """Write every rendered frame as ``<prefix>_0000.png`` into a directory.

        Returns:
            Paths of the written files.
        """
        from sdfmarch.preview.export import save_png

        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for k, frame in enumerate(self.frames):
            path = directory / f"{prefix}_{k:04d}.png"
            save_png(frame, path)
            paths.append(path)
        logger.info("Saved %d frames to %s", len(paths), directory)
        return paths

    def __repr__(self) -> str:
        return (
            f"AnimationRenderer(width={self.config.render.width}, "
            f"height={self.config.render.height}, frames={self.frame_count})"
        )
