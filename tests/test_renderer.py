"""Integration tests for the frame renderer.

Tests cover:
- Frame shape, value range and image orientation
- Depth buffer contents for hits and misses
- Determinism of repeated renders
- Configuration errors surfacing before any upload
- Anti-aliasing and single-pixel tracing
"""

import math

import numpy as np
import pytest

from sdfmarch.config import CameraConfig, RenderSettings, ShadingSettings
from sdfmarch.errors import ConfigError
from sdfmarch.scene.nodes import Sphere


class TestRenderFrame:
    """Tests for render_frame()."""

    def test_shape_and_range(self, make_config):
        from sdfmarch.core.renderer import render_frame

        frame = render_frame(make_config())
        assert frame.pixels.shape == (12, 16, 3)
        assert frame.linear.shape == (12, 16, 3)
        assert frame.depth.shape == (12, 16)
        assert frame.width == 16
        assert frame.height == 12
        assert frame.pixels.dtype == np.float32
        assert np.all(np.isfinite(frame.pixels))
        assert frame.pixels.min() >= 0.0
        assert frame.pixels.max() <= 1.0
        assert np.all(frame.linear >= 0.0)

    def test_center_depth_and_misses(self, make_config):
        from sdfmarch.core.renderer import render_frame

        frame = render_frame(make_config())
        # Camera 4 units from a unit sphere
        assert frame.depth[6, 8] == pytest.approx(3.0, abs=0.05)
        assert math.isinf(frame.depth[0, 0])
        assert math.isinf(frame.depth[-1, -1])

    def test_deterministic(self, make_config):
        from sdfmarch.core.renderer import render_frame

        config = make_config(render=RenderSettings(width=16, height=12, aa_size=2))
        first = render_frame(config, time=0.5)
        second = render_frame(config, time=0.5)
        assert np.array_equal(first.pixels, second.pixels)
        assert np.array_equal(first.depth, second.depth)
        assert first.time == 0.5

    def test_top_row_is_top_of_image(self, make_config):
        from sdfmarch.core.renderer import render_frame

        # Sphere above the view axis shows up in the upper half of the array
        scene = Sphere(center=(0.0, 1.2, 0.0), radius=0.6)
        frame = render_frame(make_config(scene=scene))
        hits = np.isfinite(frame.depth)
        assert hits[:6].sum() > 0
        assert hits[6:].sum() == 0

    def test_invalid_config_raises(self, make_config):
        from sdfmarch.core.renderer import render_frame
        from sdfmarch.scene.program import get_instruction_count

        config = make_config(camera=CameraConfig(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 0.0)))
        with pytest.raises(ConfigError):
            render_frame(config)
        # Validation happens before anything is uploaded
        assert get_instruction_count() == 0

    def test_antialiasing_smooths_edges(self, make_config):
        from sdfmarch.core.renderer import render_frame

        black = (0.0, 0.0, 0.0)
        shading = ShadingSettings(
            lighting=False, fog=False, sun_intensity=0.0, sky_horizon=black, sky_zenith=black
        )
        aliased = render_frame(make_config(shading=shading))
        smooth = render_frame(
            make_config(shading=shading, render=RenderSettings(width=16, height=12, aa_size=3))
        )
        # Edge pixels get values between the sphere color and the sky
        distinct_aliased = len(np.unique(aliased.linear[:, :, 0].round(4)))
        distinct_smooth = len(np.unique(smooth.linear[:, :, 0].round(4)))
        assert distinct_smooth > distinct_aliased

    def test_uint8_export(self, make_config):
        from sdfmarch.core.renderer import render_frame

        frame = render_frame(make_config())
        image = frame.to_uint8()
        assert image.dtype == np.uint8
        assert image.shape == (12, 16, 3)


class TestTracePixel:
    """Tests for trace_pixel()."""

    def test_matches_rendered_frame(self, make_config):
        from sdfmarch.core.renderer import render_frame, trace_pixel

        config = make_config()
        frame = render_frame(config)
        color, depth = trace_pixel(config, 8, 6)
        # Pixel row 6 from the bottom is array row 12 - 1 - 6
        assert depth == pytest.approx(frame.depth[5, 8], abs=1e-5)
        assert color == pytest.approx(tuple(frame.linear[5, 8]), abs=1e-5)

    def test_corner_misses(self, make_config):
        from sdfmarch.core.renderer import trace_pixel, upload_config

        config = make_config()
        upload_config(config)
        _, depth = trace_pixel(config, 15, 11)
        assert depth == math.inf
