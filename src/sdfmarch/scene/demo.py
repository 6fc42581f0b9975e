"""Demo scene: a small workshop of blended, carved and animated shapes.

The scene exercises every part of the renderer:

- Ground plane with a 3D checker texture
- Two animated spheres merged by a smooth union (their colors blend)
- A rounded box with a sphere subtracted from it, triplanar textured
- A torus and a capsule resting on the ground
- A warm key light with soft shadows and a cool fill light

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from sdfmarch.core.renderer import render_frame
    >>> from sdfmarch.scene.demo import create_demo_config
    >>>
    >>> frame = render_frame(create_demo_config(width=640, height=480), time=0.5)
"""

import math

from sdfmarch.config import (
    CameraConfig,
    LightConfig,
    MaterialConfig,
    RenderConfig,
    RenderSettings,
)
from sdfmarch.scene.nodes import (
    Box,
    Capsule,
    Motion,
    Plane,
    SceneNode,
    Sphere,
    Torus,
    smooth_union,
    subtract,
    union,
)

# Material ids
GROUND = 0
RED = 1
BLUE = 2
GOLD = 3
GREEN = 4
STEEL = 5

# Time after which the demo animation repeats
DEMO_PERIOD = 2.0 * math.pi


def create_demo_materials() -> list[MaterialConfig]:
    """Material table of the demo scene, indexed by the ids above."""
    return [
        MaterialConfig(color=(0.75, 0.75, 0.72), texture="checker", texture_scale=1.0),
        MaterialConfig(color=(0.85, 0.25, 0.2), specular=0.5, shininess=48.0),
        MaterialConfig(color=(0.2, 0.4, 0.85), specular=0.5, shininess=48.0),
        MaterialConfig(color=(0.9, 0.75, 0.35), texture="triplanar", texture_scale=2.0),
        MaterialConfig(color=(0.3, 0.75, 0.35), specular=0.3, shininess=24.0),
        MaterialConfig(color=(0.8, 0.8, 0.82), specular=0.8, shininess=96.0),
    ]


def create_demo_scene() -> SceneNode:
    """Scene tree of the demo. Motion periods divide DEMO_PERIOD."""
    ground = Plane(normal=(0.0, 1.0, 0.0), offset=-1.0, material=GROUND)

    blob = smooth_union(
        Sphere(
            center=(-1.4, 0.0, 0.0),
            radius=0.8,
            material=RED,
            motion=Motion(amplitude=(0.0, 0.25, 0.0), frequency=2.0),
        ),
        Sphere(
            center=(-0.5, 0.1, 0.2),
            radius=0.55,
            material=BLUE,
            motion=Motion(amplitude=(0.35, 0.0, 0.0), frequency=1.0, phase=1.0),
        ),
        k=0.5,
    )

    carved_box = subtract(
        Box(center=(1.3, -0.4, 0.2), half_extents=(0.6, 0.6, 0.6), material=GOLD, rounding=0.08),
        Sphere(center=(1.3, -0.4, 0.2), radius=0.78, material=GOLD),
    )

    torus = Torus(center=(0.0, -0.78, -1.6), major_radius=0.7, minor_radius=0.2, material=GREEN)
    capsule = Capsule(start=(-0.6, -0.82, 1.4), end=(0.5, -0.82, 1.7), radius=0.18, material=STEEL)

    return union(ground, blob, carved_box, torus, capsule)


def create_demo_config(width: int = 320, height: int = 240, aa_size: int = 2) -> RenderConfig:
    """Create the complete demo configuration.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        aa_size: Sub-rays per pixel along each axis.

    Returns:
        A RenderConfig with default march, shading and post settings.
    """
    return RenderConfig(
        scene=create_demo_scene(),
        materials=create_demo_materials(),
        lights=[
            LightConfig(direction=(0.6, 0.9, -0.5), color=(1.0, 0.95, 0.85), intensity=1.1),
            LightConfig(direction=(-0.7, 0.4, 0.3), color=(0.35, 0.45, 0.6), intensity=0.4),
        ],
        camera=CameraConfig(position=(0.0, 1.2, -5.5), target=(0.0, -0.3, 0.0), fov_degrees=50.0),
        render=RenderSettings(width=width, height=height, aa_size=aa_size),
    )
