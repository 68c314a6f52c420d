"""Render settings, scene files and backend initialization.

Taichi fields are declared at import time by the scene, material, camera and
integrator modules, and ``ti.init`` discards fields created before it runs.
``init_backend`` must therefore be called before any of those modules are
imported; this module only imports them inside the functions that need them.

Scene files are JSON documents::

    {
        "camera": {"lookfrom": [13, 2, 3], "lookat": [0, 0, 0], "vup": [0, 1, 0],
                   "vfov": 20, "aperture": 0.1, "focus_dist": 10},
        "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
                      {"type": "metal", "albedo": [0.7, 0.6, 0.5], "fuzz": 0.0},
                      {"type": "dielectric", "ior": 1.5}],
        "spheres": [{"center": [0, -1000, 0], "radius": 1000, "material_id": 0}],
        "render": {"image_width": 400, "aspect_ratio": 1.5,
                   "samples_per_pixel": 50, "max_depth": 50, "seed": 7}
    }

Only ``materials`` and ``spheres`` are required.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

import taichi as ti

if TYPE_CHECKING:
    from src.rtweekend.camera.thin_lens import ThinLensCamera
    from src.rtweekend.scene.manager import SceneManager

# Largest supported image; sizes the render target and the random streams
MAX_IMAGE_WIDTH = 1600
MAX_IMAGE_HEIGHT = 1200

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


@dataclass
class RenderSettings:
    """Parameters of one render.

    Attributes:
        image_width: Image width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of scattering events per path.
        seed: Seed for the per-pixel random streams. None picks a fresh one.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int | None = None

    @property
    def image_height(self) -> int:
        """Image height derived from width and aspect ratio (truncated)."""
        return int(self.image_width / self.aspect_ratio)

    def validate(self) -> None:
        """Check the settings before any rendering work starts.

        Raises:
            ValueError: If a parameter is out of range.
        """
        if self.image_width < 1:
            raise ValueError(f"image_width = {self.image_width} must be at least 1")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.image_height < 1:
            raise ValueError(
                f"image_width / aspect_ratio = {self.image_width / self.aspect_ratio} "
                "gives an image height below 1"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be at least 1")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be non-negative")
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed maximum "
                f"supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

    def updated(self, values: dict[str, Any]) -> RenderSettings:
        """Return a copy with the given fields replaced.

        Raises:
            ValueError: If values contains an unknown key.
        """
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown render settings: {', '.join(sorted(unknown))}")

        data = {name: getattr(self, name) for name in known}
        data.update(values)
        return RenderSettings(**data)


def init_backend(arch: str = "cpu", debug: bool = False) -> None:
    """Initialize Taichi with double-precision defaults.

    Args:
        arch: "cpu" or "gpu".
        debug: Enable Taichi's bounds checking.

    Raises:
        ValueError: If arch is not recognized.
    """
    if arch not in _ARCHES:
        raise ValueError(f"Unknown arch {arch!r}, expected one of {sorted(_ARCHES)}")
    ti.init(arch=_ARCHES[arch], default_fp=ti.f64, default_ip=ti.i32, debug=debug)


def _camera_from_dict(data: dict[str, Any]) -> ThinLensCamera:
    from src.rtweekend.camera.thin_lens import ThinLensCamera

    camera = ThinLensCamera()
    known = {f.name for f in fields(camera)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown camera settings: {', '.join(sorted(unknown))}")

    for name, value in data.items():
        try:
            if isinstance(getattr(camera, name), tuple):
                if not isinstance(value, list) or len(value) != 3:
                    raise ValueError("expected a list of 3 numbers")
                value = tuple(float(x) for x in value)
            else:
                value = float(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid camera setting {name}={data[name]!r}: {e}") from e
        setattr(camera, name, value)
    return camera


def load_scene_file(
    path: str | Path,
) -> tuple[SceneManager, ThinLensCamera, dict[str, Any]]:
    """Load a JSON scene file into the scene registries.

    Args:
        path: Path to the scene file.

    Returns:
        Tuple of (scene, camera, render_overrides) where render_overrides is
        the optional "render" object (empty if absent).

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the document is malformed, names an unknown material
            type or refers to a missing material id.
    """
    from src.rtweekend.scene.manager import SceneManager

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    for key in ("materials", "spheres"):
        if key not in data:
            raise ValueError(f"{path}: missing required key {key!r}")

    scene = SceneManager()
    scene.from_dict(data)
    camera = _camera_from_dict(data.get("camera", {}))
    return scene, camera, dict(data.get("render", {}))
