"""Tests for post-processing.

Tests cover:
- Gamma encoding and its inverse
- Vignette falloff
- Contrast curve
- Pipeline order (gamma last)
"""

import numpy as np
import pytest

from sdfmarch.config import PostSettings
from sdfmarch.preview.post import (
    apply_contrast,
    apply_gamma,
    apply_vignette,
    decode_gamma,
    post_process,
)


class TestGamma:
    """Tests for gamma encoding."""

    def test_round_trip(self):
        values = np.linspace(0.0, 1.0, 101, dtype=np.float32).reshape(1, -1, 1).repeat(3, axis=2)
        restored = decode_gamma(apply_gamma(values, 2.2), 2.2)
        assert np.allclose(restored, values, atol=1e-5)

    def test_encoding_brightens_midtones(self):
        image = np.full((2, 2, 3), 0.5, dtype=np.float32)
        assert np.allclose(apply_gamma(image, 2.2), 0.5 ** (1.0 / 2.2), atol=1e-6)

    def test_gamma_one_is_clamp_only(self):
        image = np.array([[[-0.5, 0.25, 1.5]]], dtype=np.float32)
        assert np.allclose(apply_gamma(image, 1.0), [[[0.0, 0.25, 1.0]]])

    def test_output_in_unit_range(self):
        image = np.array([[[-1.0, 0.5, 10.0]]], dtype=np.float32)
        result = apply_gamma(image, 2.2)
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)


class TestVignette:
    """Tests for the vignette."""

    def test_zero_strength_is_identity(self):
        image = np.random.default_rng(0).random((8, 10, 3)).astype(np.float32)
        assert np.array_equal(apply_vignette(image, 0.0), image)

    def test_corners_darker_than_center(self):
        image = np.ones((33, 33, 3), dtype=np.float32)
        result = apply_vignette(image, 0.5)
        assert result[16, 16, 0] > result[0, 0, 0]
        assert result[16, 16, 0] == pytest.approx(1.0, abs=1e-3)

    def test_corner_factor(self):
        image = np.ones((200, 300, 3), dtype=np.float32)
        result = apply_vignette(image, 0.4)
        # Corner pixel centers sit just inside r = 1
        assert result[0, 0, 0] == pytest.approx(0.6, abs=0.02)

    def test_symmetric(self):
        image = np.ones((9, 13, 3), dtype=np.float32)
        result = apply_vignette(image, 0.3)
        assert np.allclose(result, result[::-1, ::-1, :])


class TestContrast:
    """Tests for the contrast curve."""

    def test_zero_amount_is_identity(self):
        image = np.linspace(0.0, 1.0, 12, dtype=np.float32).reshape(2, 2, 3)
        assert np.allclose(apply_contrast(image, 0.0), image)

    def test_fixed_points(self):
        image = np.array([[[0.0, 0.5, 1.0]]], dtype=np.float32)
        assert np.allclose(apply_contrast(image, 1.0), image, atol=1e-6)

    def test_increases_contrast(self):
        image = np.array([[[0.25, 0.75, 0.5]]], dtype=np.float32)
        result = apply_contrast(image, 1.0)
        assert result[0, 0, 0] < 0.25
        assert result[0, 0, 1] > 0.75


class TestPipeline:
    """Tests for post_process."""

    def test_order_vignette_contrast_gamma(self):
        rng = np.random.default_rng(1)
        image = rng.random((6, 8, 3)).astype(np.float32)
        settings = PostSettings(vignette=0.3, contrast=0.4, gamma=2.2)
        expected = apply_gamma(apply_contrast(apply_vignette(image, 0.3), 0.4), 2.2)
        assert np.allclose(post_process(image, settings), expected)

    def test_neutral_settings_leave_linear_values(self):
        image = np.full((4, 4, 3), 0.3, dtype=np.float32)
        result = post_process(image, PostSettings(vignette=0.0, contrast=0.0, gamma=1.0))
        assert np.allclose(result, 0.3)

    def test_shape_and_dtype_preserved(self):
        image = np.zeros((5, 7, 3), dtype=np.float32)
        result = post_process(image, PostSettings())
        assert result.shape == (5, 7, 3)
        assert result.dtype == np.float32
