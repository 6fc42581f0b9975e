"""Tests for sphere tracing.

Tests cover:
- Hit distance and step count on a simple sphere
- Misses by max distance and by exhausted step budget
- Rays starting inside geometry
- Material reporting and damping
"""

import pytest
import taichi as ti

from sdfmarch.config import MarchSettings
from sdfmarch.scene.nodes import Plane, Sphere, union


def _march(origin, direction, max_steps=128, epsilon=1e-4, max_distance=100.0, damping=1.0):
    """March one ray against the loaded scene and return the Hit fields."""
    from sdfmarch.core.marcher import MarchParams, march
    from sdfmarch.core.ray import Ray

    hit = ti.field(dtype=ti.i32, shape=())
    distance = ti.field(dtype=ti.f32, shape=())
    material = ti.field(dtype=ti.i32, shape=())
    steps = ti.field(dtype=ti.i32, shape=())
    position = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def march_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32,
        n: ti.i32, eps: ti.f32, far: ti.f32, damp: ti.f32,
    ):
        # Nested so the march loop runs serially
        for _ in range(1):
            ray = Ray(origin=ti.math.vec3(ox, oy, oz), direction=ti.math.normalize(ti.math.vec3(dx, dy, dz)))
            params = MarchParams(max_steps=n, hit_epsilon_scale=eps, max_distance=far, step_damping=damp)
            h = march(ray, params, 0.0)
            hit[None] = h.hit
            distance[None] = h.distance
            material[None] = h.material
            steps[None] = h.steps
            position[None] = h.position

    march_kernel(*origin, *direction, max_steps, epsilon, max_distance, damping)
    return {
        "hit": hit[None],
        "distance": distance[None],
        "material": material[None],
        "steps": steps[None],
        "position": position[None].to_numpy().tolist(),
    }


class TestMarch:
    """Tests for march()."""

    def test_hits_sphere_at_expected_distance(self):
        from sdfmarch.scene.program import load_scene

        load_scene(Sphere(center=(0.0, 0.0, 10.0), radius=3.0, material=1))
        h = _march((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert h["hit"] == 1
        assert h["distance"] == pytest.approx(7.0, abs=1e-3)
        assert h["material"] == 1
        # One step lands exactly on the surface, the second confirms it
        assert h["steps"] == 2
        assert h["position"] == pytest.approx([0.0, 0.0, 7.0], abs=1e-3)

    def test_miss_beyond_max_distance(self):
        from sdfmarch.scene.program import load_scene

        load_scene(Sphere(center=(0.0, 0.0, 10.0), radius=3.0))
        h = _march((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_distance=50.0)
        assert h["hit"] == 0
        assert h["distance"] > 50.0

    def test_empty_scene_misses(self):
        h = _march((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert h["hit"] == 0
        assert h["steps"] == 1

    def test_origin_inside_geometry_hits_at_zero(self):
        from sdfmarch.scene.program import load_scene

        load_scene(Sphere(center=(0.0, 0.0, 0.0), radius=1.0))
        h = _march((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert h["hit"] == 1
        assert h["distance"] == 0.0
        assert h["steps"] == 1

    def test_exhausted_budget_is_miss(self):
        from sdfmarch.scene.program import load_scene

        # Grazing a plane takes many small steps
        load_scene(Plane(normal=(0.0, 1.0, 0.0), offset=0.0))
        h = _march((0.0, 1.0, 0.0), (1.0, -0.01, 0.0), max_steps=4)
        assert h["hit"] == 0
        assert h["steps"] == 4

    def test_damping_takes_more_steps(self):
        from sdfmarch.scene.program import load_scene

        load_scene(Sphere(center=(0.0, 0.0, 10.0), radius=3.0))
        full = _march((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        damped = _march((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), damping=0.5)
        assert damped["hit"] == 1
        assert damped["steps"] > full["steps"]
        assert damped["distance"] == pytest.approx(7.0, abs=1e-2)

    def test_nearest_of_two_objects(self):
        from sdfmarch.scene.program import load_scene

        load_scene(
            union(
                Sphere(center=(0.0, 0.0, 10.0), radius=1.0, material=0),
                Sphere(center=(0.0, 0.0, 5.0), radius=1.0, material=1),
            )
        )
        h = _march((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert h["hit"] == 1
        assert h["material"] == 1
        assert h["distance"] == pytest.approx(4.0, abs=1e-3)


class TestSetupMarcher:
    """Tests for the primary-ray parameter upload."""

    def test_params_round_trip(self):
        from sdfmarch.core.marcher import get_march_params, setup_marcher

        result = ti.Vector.field(4, dtype=ti.f32, shape=())

        @ti.kernel
        def read_kernel():
            p = get_march_params()
            result[None] = ti.math.vec4(
                ti.cast(p.max_steps, ti.f32), p.hit_epsilon_scale, p.max_distance, p.step_damping
            )

        setup_marcher(MarchSettings(max_steps=64, hit_epsilon_scale=1e-3, max_distance=30.0, step_damping=0.8))
        read_kernel()
        assert result[None].to_numpy().tolist() == pytest.approx([64.0, 1e-3, 30.0, 0.8])
