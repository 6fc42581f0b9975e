"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_scene_data():
    """Clear the loaded scene program and texture around each test."""
    # Import here so Taichi is initialized before fields are allocated
    from sdfmarch.materials.texture import clear_texture
    from sdfmarch.scene.program import clear_scene

    clear_scene()
    clear_texture()
    yield
    clear_scene()
    clear_texture()


def _make_config(scene=None, **overrides):
    """Small single-sphere configuration for rendering tests.

    Keyword overrides replace top-level RenderConfig fields.
    """
    from sdfmarch.config import (
        CameraConfig,
        LightConfig,
        MaterialConfig,
        RenderConfig,
        RenderSettings,
    )
    from sdfmarch.scene.nodes import Sphere

    fields = {
        "scene": scene if scene is not None else Sphere(center=(0.0, 0.0, 0.0), radius=1.0),
        "materials": [MaterialConfig(color=(0.8, 0.3, 0.2))],
        "lights": [LightConfig(direction=(0.5, 1.0, -0.5))],
        "camera": CameraConfig(position=(0.0, 0.0, -4.0), target=(0.0, 0.0, 0.0)),
        "render": RenderSettings(width=16, height=12, aa_size=1),
    }
    fields.update(overrides)
    return RenderConfig(**fields)


@pytest.fixture
def make_config():
    """Factory fixture for small rendering configurations."""
    return _make_config
