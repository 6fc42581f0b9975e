"""Unit tests for the primitive distance functions.

Tests cover:
- Points on each surface evaluate to (almost) zero
- Sign: negative inside, positive outside
- Exact distances at known points
- Degenerate capsule segments
"""

import pytest
import taichi as ti


def _eval_points(sdf, points):
    """Evaluate a distance kernel body over a list of points."""
    n = len(points)
    inputs = ti.Vector.field(3, dtype=ti.f32, shape=n)
    results = ti.field(dtype=ti.f32, shape=n)
    for i, p in enumerate(points):
        inputs[i] = p

    @ti.kernel
    def eval_kernel():
        for i in range(n):
            results[i] = sdf(inputs[i])

    eval_kernel()
    return [results[i] for i in range(n)]


class TestSphere:
    """Tests for sd_sphere."""

    def test_surface_inside_outside(self):
        from sdfmarch.geometry.primitives import sd_sphere

        @ti.func
        def sdf(p):
            return sd_sphere(p, 2.0)

        on, inside, outside = _eval_points(sdf, [(0.0, 2.0, 0.0), (0.5, 0.0, 0.0), (0.0, 0.0, 5.0)])
        assert abs(on) < 1e-6
        assert inside == pytest.approx(-1.5)
        assert outside == pytest.approx(3.0)


class TestBox:
    """Tests for sd_box."""

    def test_sharp_box(self):
        from sdfmarch.geometry.primitives import sd_box, vec3

        @ti.func
        def sdf(p):
            return sd_box(p, vec3(1.0, 2.0, 3.0), 0.0)

        face, corner_out, center, edge_out = _eval_points(
            sdf,
            [(1.0, 0.0, 0.0), (2.0, 3.0, 3.0), (0.0, 0.0, 0.0), (2.0, 0.0, 0.0)],
        )
        assert abs(face) < 1e-6
        assert corner_out == pytest.approx(2.0**0.5, abs=1e-5)
        assert center == pytest.approx(-1.0)
        assert edge_out == pytest.approx(1.0)

    def test_rounding_keeps_face_extent(self):
        from sdfmarch.geometry.primitives import sd_box, vec3

        @ti.func
        def sdf(p):
            return sd_box(p, vec3(1.0, 1.0, 1.0), 0.25)

        face, corner = _eval_points(sdf, [(1.0, 0.0, 0.0), (1.0, 1.0, 1.0)])
        assert abs(face) < 1e-6
        # Rounded corners sit inside the sharp corner
        assert corner > 0.0


class TestPlane:
    """Tests for sd_plane."""

    def test_signed_height(self):
        from sdfmarch.geometry.primitives import sd_plane, vec3

        @ti.func
        def sdf(p):
            return sd_plane(p, vec3(0.0, 1.0, 0.0), -1.0)

        on, above, below = _eval_points(sdf, [(3.0, -1.0, 7.0), (0.0, 1.0, 0.0), (0.0, -3.0, 0.0)])
        assert abs(on) < 1e-6
        assert above == pytest.approx(2.0)
        assert below == pytest.approx(-2.0)


class TestTorus:
    """Tests for sd_torus."""

    def test_tube_surface_and_hole(self):
        from sdfmarch.geometry.primitives import sd_torus

        @ti.func
        def sdf(p):
            return sd_torus(p, 1.0, 0.25)

        outer, tube_center, hole = _eval_points(sdf, [(1.25, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0)])
        assert abs(outer) < 1e-6
        assert tube_center == pytest.approx(-0.25)
        assert hole == pytest.approx(0.75)


class TestCapsule:
    """Tests for sd_capsule."""

    def test_side_and_cap(self):
        from sdfmarch.geometry.primitives import sd_capsule, vec3

        @ti.func
        def sdf(p):
            return sd_capsule(p, vec3(0.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0), 0.5)

        side, cap, axis = _eval_points(sdf, [(0.5, 1.0, 0.0), (0.0, 2.5, 0.0), (0.0, 1.0, 0.0)])
        assert abs(side) < 1e-6
        assert abs(cap) < 1e-6
        assert axis == pytest.approx(-0.5)

    def test_zero_length_segment_is_sphere(self):
        from sdfmarch.geometry.primitives import sd_capsule, vec3

        @ti.func
        def sdf(p):
            return sd_capsule(p, vec3(1.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0), 0.5)

        (d,) = _eval_points(sdf, [(1.0, 2.0, 0.0)])
        assert d == pytest.approx(1.5)
