"""Render configuration: camera, lights, materials and render settings.

All configuration is plain dataclasses that are validated once by
``RenderConfig.validate()`` before anything is uploaded to Taichi fields.
Invalid configurations (negative radii, zero-length light directions, NaN
camera vectors, ...) raise ConfigError with a descriptive message; nothing is
checked per pixel.

Configurations round-trip through JSON-compatible dictionaries with
``to_dict()`` / ``from_dict()``, and through files with ``save_config()`` /
``load_config()``.

Example:
    >>> from sdfmarch.config import CameraConfig, LightConfig, MaterialConfig, RenderConfig
    >>> from sdfmarch.scene.nodes import Sphere
    >>> config = RenderConfig(
    ...     scene=Sphere(center=(0.0, 0.0, 0.0), radius=1.0, material=0),
    ...     materials=[MaterialConfig(color=(0.8, 0.3, 0.2))],
    ...     lights=[LightConfig(direction=(0.5, 1.0, -0.5))],
    ...     camera=CameraConfig(position=(0.0, 0.0, -4.0), target=(0.0, 0.0, 0.0)),
    ... )
    >>> config.validate()
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Literal

from sdfmarch.errors import ConfigError
from sdfmarch.scene.nodes import SceneNode, Vec3, node_from_dict, node_to_dict, validate_node

ShadowMode = Literal["none", "hard", "soft"]
TextureMode = Literal["none", "checker", "triplanar"]

SHADOW_MODES = ("none", "hard", "soft")
TEXTURE_MODES = ("none", "checker", "triplanar")

# Preallocated capacities of the Taichi fields the configuration is uploaded to
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048
MAX_LIGHTS = 8
MAX_MATERIALS = 64
MAX_AA_SIZE = 8
MAX_SHADOW_SAMPLES = 64


def _finite_vec3(name: str, value: Any) -> None:
    try:
        valid = len(value) == 3 and all(math.isfinite(c) for c in value)
    except TypeError:
        valid = False
    if not valid:
        raise ConfigError(f"{name} must be 3 finite numbers, got {value!r}")


def _integer(name: str, value: Any) -> None:
    # bool is an int subclass but never a valid count
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _color(name: str, value: Any) -> None:
    _finite_vec3(name, value)
    if any(c < 0.0 for c in value):
        raise ConfigError(f"{name} components must be non-negative, got {value!r}")


def _norm(v: Vec3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def _tuple3(value: Any) -> Vec3:
    return (float(value[0]), float(value[1]), float(value[2]))


@dataclass
class CameraConfig:
    """Look-at pinhole camera.

    Attributes:
        position: Camera position in world space.
        target: Point the camera looks at.
        world_up: Up reference used to build the camera basis.
        fov_degrees: Vertical field of view in degrees.
    """

    position: Vec3
    target: Vec3
    world_up: Vec3 = (0.0, 1.0, 0.0)
    fov_degrees: float = 60.0

    def validate(self) -> None:
        _finite_vec3("camera.position", self.position)
        _finite_vec3("camera.target", self.target)
        _finite_vec3("camera.world_up", self.world_up)
        forward = tuple(t - p for t, p in zip(self.target, self.position))
        if _norm(forward) < 1e-8:
            raise ConfigError("camera.position and camera.target must differ")
        if _norm(self.world_up) < 1e-8:
            raise ConfigError("camera.world_up must not be zero-length")
        if not 0.0 < self.fov_degrees < 180.0:
            raise ConfigError(f"camera.fov_degrees must be in (0, 180), got {self.fov_degrees!r}")


@dataclass
class LightConfig:
    """Directional light. ``direction`` points from the surface toward the light."""

    direction: Vec3
    color: Vec3 = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    def validate(self, index: int) -> None:
        _finite_vec3(f"lights[{index}].direction", self.direction)
        if _norm(self.direction) < 1e-8:
            raise ConfigError(f"lights[{index}].direction must not be zero-length")
        _color(f"lights[{index}].color", self.color)
        if not math.isfinite(self.intensity) or self.intensity < 0.0:
            raise ConfigError(f"lights[{index}].intensity must be >= 0, got {self.intensity!r}")

    @property
    def unit_direction(self) -> Vec3:
        n = _norm(self.direction)
        return (self.direction[0] / n, self.direction[1] / n, self.direction[2] / n)


@dataclass
class MaterialConfig:
    """Surface material.

    Attributes:
        color: Linear base color (RGB).
        texture: "none", "checker" (3D checker) or "triplanar" (projected
            texture lookups blended by the surface normal).
        texture_scale: World-space frequency of the texture.
        specular: Blinn-Phong specular strength; 0 disables highlights.
        shininess: Blinn-Phong exponent.
    """

    color: Vec3
    texture: TextureMode = "none"
    texture_scale: float = 1.0
    specular: float = 0.0
    shininess: float = 32.0

    def validate(self, index: int) -> None:
        _color(f"materials[{index}].color", self.color)
        if self.texture not in TEXTURE_MODES:
            raise ConfigError(
                f"materials[{index}].texture must be one of {TEXTURE_MODES}, got {self.texture!r}"
            )
        if not math.isfinite(self.texture_scale) or self.texture_scale <= 0.0:
            raise ConfigError(f"materials[{index}].texture_scale must be > 0")
        if not math.isfinite(self.specular) or self.specular < 0.0:
            raise ConfigError(f"materials[{index}].specular must be >= 0")
        if not math.isfinite(self.shininess) or self.shininess < 1.0:
            raise ConfigError(f"materials[{index}].shininess must be >= 1")


@dataclass
class RenderSettings:
    """Output resolution and supersampling.

    ``aa_size`` sub-rays are cast along each axis, so every pixel averages
    ``aa_size ** 2`` samples.
    """

    width: int = 320
    height: int = 240
    aa_size: int = 1

    def validate(self) -> None:
        _integer("width", self.width)
        _integer("height", self.height)
        _integer("aa_size", self.aa_size)
        if not 0 < self.width <= MAX_IMAGE_WIDTH or not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ConfigError(
                f"Image dimensions ({self.width}x{self.height}) must be positive and "
                f"at most {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )
        if not 1 <= self.aa_size <= MAX_AA_SIZE:
            raise ConfigError(f"aa_size must be in [1, {MAX_AA_SIZE}], got {self.aa_size!r}")


@dataclass
class MarchSettings:
    """Sphere tracing parameters for primary rays.

    Attributes:
        max_steps: Step budget per ray.
        hit_epsilon_scale: A sample counts as a hit when its distance is at
            most ``hit_epsilon_scale * t``.
        max_distance: Rays travelling further than this are misses.
        step_damping: Fraction of the sampled distance advanced per step.
            Values below 1 help scenes with aggressive smooth blending.
    """

    max_steps: int = 128
    hit_epsilon_scale: float = 1e-3
    max_distance: float = 100.0
    step_damping: float = 1.0

    def validate(self) -> None:
        _integer("max_steps", self.max_steps)
        if self.max_steps < 1:
            raise ConfigError(f"max_steps must be >= 1, got {self.max_steps!r}")
        if not math.isfinite(self.hit_epsilon_scale) or self.hit_epsilon_scale <= 0.0:
            raise ConfigError("hit_epsilon_scale must be > 0")
        if not math.isfinite(self.max_distance) or self.max_distance <= 0.0:
            raise ConfigError("max_distance must be > 0")
        if not 0.0 < self.step_damping <= 1.0:
            raise ConfigError(f"step_damping must be in (0, 1], got {self.step_damping!r}")


@dataclass
class ShadingSettings:
    """Shader toggles and constants."""

    lighting: bool = True
    shadows: ShadowMode = "soft"
    shadow_samples: int = 8
    shadow_softness: float = 0.05
    shadow_attenuation: float = 0.2
    shadow_bias: float = 0.02
    shadow_max_distance: float = 30.0
    texturing: bool = True
    ambient_color: Vec3 = (0.06, 0.07, 0.09)
    ambient_occlusion: bool = True
    fog: bool = True
    fog_color: Vec3 = (0.55, 0.65, 0.8)
    fog_density: float = 0.02
    normal_epsilon: float = 1e-3
    sky_horizon: Vec3 = (0.55, 0.65, 0.8)
    sky_zenith: Vec3 = (0.15, 0.3, 0.6)
    sun_intensity: float = 0.5
    sun_sharpness: float = 64.0

    def validate(self) -> None:
        if self.shadows not in SHADOW_MODES:
            raise ConfigError(f"shadows must be one of {SHADOW_MODES}, got {self.shadows!r}")
        _integer("shadow_samples", self.shadow_samples)
        if not 1 <= self.shadow_samples <= MAX_SHADOW_SAMPLES:
            raise ConfigError(f"shadow_samples must be in [1, {MAX_SHADOW_SAMPLES}]")
        if not math.isfinite(self.shadow_softness) or self.shadow_softness < 0.0:
            raise ConfigError("shadow_softness must be >= 0")
        if not 0.0 <= self.shadow_attenuation <= 1.0:
            raise ConfigError("shadow_attenuation must be in [0, 1]")
        if not math.isfinite(self.shadow_bias) or self.shadow_bias < 0.0:
            raise ConfigError("shadow_bias must be >= 0")
        if not math.isfinite(self.shadow_max_distance) or self.shadow_max_distance <= 0.0:
            raise ConfigError("shadow_max_distance must be > 0")
        if not math.isfinite(self.fog_density) or self.fog_density < 0.0:
            raise ConfigError("fog_density must be >= 0")
        if not math.isfinite(self.normal_epsilon) or self.normal_epsilon <= 0.0:
            raise ConfigError("normal_epsilon must be > 0")
        for name in ("ambient_color", "fog_color", "sky_horizon", "sky_zenith"):
            _color(name, getattr(self, name))
        if not math.isfinite(self.sun_intensity) or self.sun_intensity < 0.0:
            raise ConfigError("sun_intensity must be >= 0")
        if not math.isfinite(self.sun_sharpness) or self.sun_sharpness < 1.0:
            raise ConfigError("sun_sharpness must be >= 1")


@dataclass
class PostSettings:
    """Post-processing: vignette strength, contrast amount and display gamma."""

    vignette: float = 0.25
    contrast: float = 0.3
    gamma: float = 2.2

    def validate(self) -> None:
        if not 0.0 <= self.vignette <= 1.0:
            raise ConfigError(f"vignette must be in [0, 1], got {self.vignette!r}")
        if not 0.0 <= self.contrast <= 1.0:
            raise ConfigError(f"contrast must be in [0, 1], got {self.contrast!r}")
        if not math.isfinite(self.gamma) or self.gamma <= 0.0:
            raise ConfigError(f"gamma must be > 0, got {self.gamma!r}")


@dataclass
class RenderConfig:
    """Everything a frame depends on, apart from the time value.

    Attributes:
        scene: Root of the scene tree.
        materials: Material table; primitives reference entries by index.
        lights: Directional lights.
        camera: Camera placement.
        render: Resolution and supersampling.
        march: Primary ray marching parameters.
        shading: Shader toggles and constants.
        post: Post-processing settings.
    """

    scene: SceneNode
    materials: list[MaterialConfig]
    lights: list[LightConfig]
    camera: CameraConfig
    render: RenderSettings = field(default_factory=RenderSettings)
    march: MarchSettings = field(default_factory=MarchSettings)
    shading: ShadingSettings = field(default_factory=ShadingSettings)
    post: PostSettings = field(default_factory=PostSettings)

    def validate(self) -> None:
        """Check the whole configuration.

        Raises:
            ConfigError: Describing the first invalid entry found.
        """
        if not self.materials:
            raise ConfigError("At least one material is required")
        if len(self.materials) > MAX_MATERIALS:
            raise ConfigError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
        if len(self.lights) > MAX_LIGHTS:
            raise ConfigError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

        for i, material in enumerate(self.materials):
            material.validate(i)
        for i, light in enumerate(self.lights):
            light.validate(i)
        self.camera.validate()
        self.render.validate()
        self.march.validate()
        self.shading.validate()
        self.post.validate()
        validate_node(self.scene, len(self.materials))

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a JSON-compatible dictionary."""
        return {
            "scene": node_to_dict(self.scene),
            "materials": [asdict(m) for m in self.materials],
            "lights": [asdict(light) for light in self.lights],
            "camera": asdict(self.camera),
            "render": asdict(self.render),
            "march": asdict(self.march),
            "shading": asdict(self.shading),
            "post": asdict(self.post),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        """Load a configuration from a dictionary.

        Missing sections fall back to their defaults. The result is not
        validated; call validate() before rendering.

        Raises:
            ConfigError: If required sections are missing or malformed.
        """
        try:
            scene = node_from_dict(data["scene"])
            camera_data = dict(data["camera"])
        except KeyError as e:
            raise ConfigError(f"Missing configuration section: {e.args[0]}") from e

        try:
            materials = []
            for m in data.get("materials", []):
                m = dict(m)
                m["color"] = _tuple3(m["color"])
                materials.append(MaterialConfig(**m))

            lights = []
            for light in data.get("lights", []):
                light = dict(light)
                light["direction"] = _tuple3(light["direction"])
                if "color" in light:
                    light["color"] = _tuple3(light["color"])
                lights.append(LightConfig(**light))

            for key in ("position", "target", "world_up"):
                if key in camera_data:
                    camera_data[key] = _tuple3(camera_data[key])

            shading_data = dict(data.get("shading", {}))
            for key in ("ambient_color", "fog_color", "sky_horizon", "sky_zenith"):
                if key in shading_data:
                    shading_data[key] = _tuple3(shading_data[key])

            return cls(
                scene=scene,
                materials=materials,
                lights=lights,
                camera=CameraConfig(**camera_data),
                render=RenderSettings(**data.get("render", {})),
                march=MarchSettings(**data.get("march", {})),
                shading=ShadingSettings(**shading_data),
                post=PostSettings(**data.get("post", {})),
            )
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Malformed configuration: {e}") from e


def save_config(config: RenderConfig, filepath: str | Path) -> None:
    """Write a configuration as JSON."""
    Path(filepath).write_text(json.dumps(config.to_dict(), indent=2))


def load_config(filepath: str | Path) -> RenderConfig:
    """Read a JSON configuration written by save_config() and validate it."""
    data = json.loads(Path(filepath).read_text())
    config = RenderConfig.from_dict(data)
    config.validate()
    return config
