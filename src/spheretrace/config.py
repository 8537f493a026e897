"""Render configuration and scene files.

A render file is a JSON document with three optional sections:

    {
        "render": {"width": 400, "height": 225, "samples_per_pixel": 200,
                   "max_depth": 50, "min_hit_distance": 0.001, "seed": 0},
        "camera": {"position": [0, 0, 0], "direction": [0, 1, 0],
                   "vfov": 90, "blur_angle": 0, "viewport_height": 2},
        "scene":  {"materials": [...], "spheres": [...]}
    }

The camera may give ``"target"`` (a point to look at) instead of
``"direction"``. Its aspect ratio defaults to width / height. The scene
section uses the format of ``SceneManager.from_dict``.
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from spheretrace.camera.thin_lens import CameraConfig

logger = logging.getLogger(__name__)

# Largest supported frame, matching the preallocated render target
MAX_WIDTH = 2048
MAX_HEIGHT = 2048


@dataclass(frozen=True)
class RenderSettings:
    """Injected settings for one frame.

    Attributes:
        width: Image width in pixels, in [1, 2048].
        height: Image height in pixels, in [1, 2048].
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray segments per path.
        min_hit_distance: Hits at or below this distance are ignored.
        seed: Seed for the per-pixel random streams.
    """

    width: int
    height: int
    samples_per_pixel: int = 200
    max_depth: int = 50
    min_hit_distance: float = 0.001
    seed: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.width <= MAX_WIDTH or not 1 <= self.height <= MAX_HEIGHT:
            raise ValueError(
                f"Image size {self.width}x{self.height} is outside "
                f"1x1 to {MAX_WIDTH}x{MAX_HEIGHT}"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.min_hit_distance < 0.0:
            raise ValueError(f"min_hit_distance must be non-negative, got {self.min_hit_distance}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown render settings: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def camera_from_dict(data: dict[str, Any], aspect_ratio: float) -> CameraConfig:
    """Build a camera configuration from a render-file camera section.

    Args:
        data: The camera section.
        aspect_ratio: Aspect ratio to use when the section does not give one.

    Returns:
        The camera configuration.

    Raises:
        ValueError: If both direction and target are given, a vector does
            not have 3 components, or an unknown key is present.
    """
    allowed = {
        "position",
        "direction",
        "target",
        "aspect_ratio",
        "vfov",
        "blur_angle",
        "viewport_height",
    }
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown camera settings: {sorted(unknown)}")
    if "direction" in data and "target" in data:
        raise ValueError("Camera section may give 'direction' or 'target', not both")

    params: dict[str, Any] = {"aspect_ratio": float(data.get("aspect_ratio", aspect_ratio))}
    for key in ("vfov", "blur_angle", "viewport_height"):
        if key in data:
            params[key] = float(data[key])

    position = _triple(data.get("position", (0.0, 0.0, 0.0)), "position")
    if "target" in data:
        return CameraConfig.looking_at(position, _triple(data["target"], "target"), **params)
    direction = _triple(data.get("direction", (0.0, 1.0, 0.0)), "direction")
    return CameraConfig(position=position, direction=direction, **params)


def load_render_file(
    path: str | Path,
) -> tuple[RenderSettings, CameraConfig, dict[str, Any]]:
    """Read a JSON render file.

    Args:
        path: Path to the render file.

    Returns:
        Tuple of (settings, camera, scene) where scene is a dictionary for
        SceneManager.from_dict.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or holds invalid settings.
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"{path} must contain a JSON object")

    unknown = set(document) - {"render", "camera", "scene"}
    if unknown:
        raise ValueError(f"Unknown sections in {path}: {sorted(unknown)}")

    for name, section in document.items():
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' in {path} must be a JSON object")

    render_section = {"width": 400, "height": 225, **document.get("render", {})}
    settings = RenderSettings.from_dict(render_section)
    camera = camera_from_dict(dict(document.get("camera", {})), settings.aspect_ratio)
    scene = dict(document.get("scene", {"materials": [], "spheres": []}))

    logger.debug("Loaded render file %s: %s", path, settings)
    return settings, camera, scene


def _triple(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"Camera {name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))
