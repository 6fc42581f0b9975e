"""Unit tests for the scene tree.

Tests cover:
- Motion offsets
- Tree helpers (union folding, primitive iteration)
- Validation of primitive parameters and material ids
- Dictionary serialization
"""

import math

import pytest

from sdfmarch.errors import ConfigError
from sdfmarch.scene.nodes import (
    STATIC,
    Box,
    Capsule,
    Intersect,
    Motion,
    Plane,
    SmoothUnion,
    Sphere,
    Subtract,
    Torus,
    Union,
    iter_primitives,
    node_from_dict,
    node_to_dict,
    smooth_union,
    subtract,
    union,
    validate_node,
)


class TestMotion:
    """Tests for Motion."""

    def test_default_motion_is_static(self):
        assert STATIC.is_static
        assert STATIC.offset(3.0) == (0.0, 0.0, 0.0)

    def test_offset_follows_sine(self):
        motion = Motion(amplitude=(1.0, 2.0, 0.0), frequency=2.0, phase=0.5)
        t = 0.7
        s = math.sin(2.0 * t + 0.5)
        ox, oy, oz = motion.offset(t)
        assert ox == pytest.approx(s)
        assert oy == pytest.approx(2.0 * s)
        assert oz == 0.0

    def test_zero_frequency_is_static(self):
        assert Motion(amplitude=(1.0, 0.0, 0.0), frequency=0.0).is_static


class TestTreeHelpers:
    """Tests for tree construction helpers."""

    def test_union_folds_left(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        b = Sphere(center=(1.0, 0.0, 0.0), radius=1.0)
        c = Sphere(center=(2.0, 0.0, 0.0), radius=1.0)
        tree = union(a, b, c)
        assert tree == Union(Union(a, b), c)

    def test_union_of_single_node_is_node(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        assert union(a) is a

    def test_union_requires_nodes(self):
        with pytest.raises(ConfigError):
            union()

    def test_iter_primitives_order(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        b = Box(center=(0.0, 0.0, 0.0), half_extents=(1.0, 1.0, 1.0))
        c = Torus(center=(0.0, 0.0, 0.0), major_radius=1.0, minor_radius=0.2)
        tree = subtract(smooth_union(a, b, 0.2), c)
        assert list(iter_primitives(tree)) == [a, b, c]

    def test_nodes_are_immutable(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        with pytest.raises(AttributeError):
            a.radius = 2.0


class TestValidation:
    """Tests for validate_node."""

    def test_valid_tree_passes(self):
        tree = union(
            Plane(normal=(0.0, 1.0, 0.0), offset=-1.0, material=0),
            SmoothUnion(
                Sphere(center=(0.0, 0.0, 0.0), radius=1.0, material=1),
                Capsule(start=(0.0, 0.0, 0.0), end=(1.0, 0.0, 0.0), radius=0.2, material=1),
                0.3,
            ),
        )
        validate_node(tree, num_materials=2)

    def test_negative_radius_rejected(self):
        with pytest.raises(ConfigError, match="radius"):
            validate_node(Sphere(center=(0.0, 0.0, 0.0), radius=-1.0), 1)

    def test_unknown_material_rejected(self):
        with pytest.raises(ConfigError, match="material"):
            validate_node(Sphere(center=(0.0, 0.0, 0.0), radius=1.0, material=3), 2)

    def test_nan_center_rejected(self):
        with pytest.raises(ConfigError):
            validate_node(Sphere(center=(math.nan, 0.0, 0.0), radius=1.0), 1)

    def test_zero_plane_normal_rejected(self):
        with pytest.raises(ConfigError, match="normal"):
            validate_node(Plane(normal=(0.0, 0.0, 0.0)), 1)

    def test_box_rounding_limited_by_extents(self):
        box = Box(center=(0.0, 0.0, 0.0), half_extents=(0.5, 1.0, 1.0), rounding=0.6)
        with pytest.raises(ConfigError, match="rounding"):
            validate_node(box, 1)

    def test_nan_box_rounding_rejected(self):
        box = Box(center=(0.0, 0.0, 0.0), half_extents=(1.0, 1.0, 1.0), rounding=math.nan)
        with pytest.raises(ConfigError, match="rounding"):
            validate_node(box, 1)

    def test_non_sequence_center_rejected(self):
        with pytest.raises(ConfigError, match="center"):
            validate_node(Sphere(center=1.0, radius=1.0), 1)

    def test_float_material_id_rejected(self):
        with pytest.raises(ConfigError, match="integer"):
            validate_node(Sphere(center=(0.0, 0.0, 0.0), radius=1.0, material=0.5), 1)

    def test_negative_blend_radius_rejected(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        with pytest.raises(ConfigError, match="blend"):
            validate_node(SmoothUnion(a, a, -0.1), 1)

    def test_zero_blend_radius_allowed(self):
        a = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
        validate_node(SmoothUnion(a, a, 0.0), 1)

    def test_non_node_rejected(self):
        with pytest.raises(ConfigError):
            validate_node("sphere", 1)


class TestSerialization:
    """Tests for node_to_dict / node_from_dict."""

    def test_tree_round_trip(self):
        tree = union(
            Plane(normal=(0.0, 1.0, 0.0), offset=-1.0, material=0),
            Subtract(
                Box(center=(1.0, 0.0, 0.0), half_extents=(0.5, 0.5, 0.5), material=1, rounding=0.1),
                Sphere(
                    center=(1.0, 0.0, 0.0),
                    radius=0.6,
                    material=1,
                    motion=Motion(amplitude=(0.0, 0.5, 0.0), frequency=1.5, phase=0.25),
                ),
            ),
            Intersect(
                Torus(center=(0.0, 0.0, 0.0), major_radius=1.0, minor_radius=0.25),
                Capsule(start=(0.0, 0.0, 0.0), end=(0.0, 1.0, 0.0), radius=0.3),
            ),
            SmoothUnion(
                Sphere(center=(0.0, 0.0, 0.0), radius=1.0),
                Sphere(center=(1.0, 0.0, 0.0), radius=1.0),
                0.4,
            ),
        )
        assert node_from_dict(node_to_dict(tree)) == tree

    def test_static_motion_omitted(self):
        data = node_to_dict(Sphere(center=(0.0, 0.0, 0.0), radius=1.0))
        assert "motion" not in data
        assert data["type"] == "sphere"

    def test_unknown_type_rejected(self):
        with pytest.raises(ConfigError):
            node_from_dict({"type": "teapot"})
