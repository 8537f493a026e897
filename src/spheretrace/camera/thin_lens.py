"""Thin-lens camera model for primary ray generation with depth of field.

The camera sits at ``position`` and looks along ``direction``. World up is +Z,
so the camera basis is

    forward = unit(direction)
    right   = unit(cross(forward, +Z))
    up      = cross(right, forward)

The viewport has a fixed height (2 by default) and a width given by the aspect
ratio. The vertical field of view fixes how far in front of the camera the
viewport sits:

    focal_length   = viewport_height / (2 tan(vfov / 2))
    defocus_radius = focal_length * tan(blur_angle / 2)

Rays are aimed at the viewport point for normalized offsets x, y in
[-0.5, 0.5] from its center. With a non-zero blur angle, each ray starts at a
random point on the defocus disc instead of the camera position, which blurs
everything off the focal plane.

The basis is derived on the Python side with NumPy and uploaded to Taichi
fields by ``setup_camera``; ``generate_ray`` reads it inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.thin_lens import CameraConfig, setup_camera, generate_ray
    >>> camera = CameraConfig.looking_at(
    ...     position=(0.0, -3.0, 1.0),
    ...     target=(0.0, 1.0, 0.0),
    ...     aspect_ratio=16.0 / 9.0,
    ...     vfov=40.0,
    ... )
    >>> setup_camera(camera)
    >>> @ti.kernel
    ... def render():
    ...     ray = generate_ray(0.0, 0.0, 0)  # Ray through the viewport center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import Ray, make_ray
from spheretrace.core.rng import random_normal, random_uniform
from spheretrace.core.vector import unit

# Type alias for 3D vectors
vec3 = tm.vec3

# World up direction (Z is vertical)
WORLD_UP = (0.0, 0.0, 1.0)

# Minimum |cross(forward, up)| before the basis is considered degenerate
_PARALLEL_EPSILON = 1e-6


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraConfig:
    """Configuration for a thin-lens camera.

    The defaults reproduce a camera at the origin looking down +Y through a
    2-unit-high viewport one unit away (a 90 degree vertical field of view)
    with no blur.

    Attributes:
        position: Camera position in world space (x, y, z).
        direction: View direction (need not be unit length). Must not be
            parallel to world up (+Z).
        aspect_ratio: Width divided by height of the output image.
        vfov: Vertical field of view in degrees, in (0, 180).
        blur_angle: Cone angle of the defocus blur in degrees, in [0, 180).
            0 gives a pinhole camera.
        viewport_height: Height of the viewport in world units.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    direction: tuple[float, float, float] = (0.0, 1.0, 0.0)
    aspect_ratio: float = 16.0 / 9.0
    vfov: float = 90.0
    blur_angle: float = 0.0
    viewport_height: float = 2.0

    @classmethod
    def looking_at(
        cls,
        position: tuple[float, float, float],
        target: tuple[float, float, float],
        **kwargs,
    ) -> "CameraConfig":
        """Build a configuration that looks from ``position`` toward ``target``.

        Keyword arguments are passed through to the constructor.
        """
        direction = tuple(float(t) - float(p) for p, t in zip(position, target))
        return cls(position=tuple(float(p) for p in position), direction=direction, **kwargs)

    def with_aspect_ratio(self, aspect_ratio: float) -> "CameraConfig":
        """Return a copy of this configuration with a different aspect ratio."""
        return CameraConfig(
            position=self.position,
            direction=self.direction,
            aspect_ratio=aspect_ratio,
            vfov=self.vfov,
            blur_angle=self.blur_angle,
            viewport_height=self.viewport_height,
        )


@dataclass(frozen=True)
class CameraBasis:
    """Camera state derived from a CameraConfig.

    Attributes:
        origin: Camera position.
        forward: Unit view direction.
        right: Unit vector to the right of the image.
        up: Unit vector toward the top of the image.
        focal_length: Distance from the camera to the viewport.
        defocus_radius: Radius of the defocus disc (0 for a pinhole).
        viewport_width: Width of the viewport in world units.
        viewport_height: Height of the viewport in world units.
    """

    origin: tuple[float, float, float]
    forward: tuple[float, float, float]
    right: tuple[float, float, float]
    up: tuple[float, float, float]
    focal_length: float
    defocus_radius: float
    viewport_width: float
    viewport_height: float


def _as_tuple(v: np.ndarray) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def derive_camera_basis(config: CameraConfig) -> CameraBasis:
    """Compute the camera basis and lens geometry from a configuration.

    Args:
        config: Camera configuration.

    Returns:
        The derived CameraBasis.

    Raises:
        ValueError: If a parameter is out of range or the view direction is
            zero or parallel to world up.
    """
    if not 0.0 < config.vfov < 180.0:
        raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {config.vfov}")
    if not 0.0 <= config.blur_angle < 180.0:
        raise ValueError(f"Blur angle must be in [0, 180) degrees, got {config.blur_angle}")
    if config.aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {config.aspect_ratio}")
    if config.viewport_height <= 0.0:
        raise ValueError(f"Viewport height must be positive, got {config.viewport_height}")

    direction = np.array(config.direction, dtype=np.float64)
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        raise ValueError("Camera direction must be non-zero")
    forward = direction / norm

    side = np.cross(forward, np.array(WORLD_UP))
    side_norm = np.linalg.norm(side)
    if side_norm < _PARALLEL_EPSILON:
        raise ValueError(
            f"Camera direction {config.direction} is parallel to world up {WORLD_UP}; "
            "the image orientation would be undefined"
        )
    right = side / side_norm
    up = np.cross(right, forward)

    focal_length = config.viewport_height / (2.0 * math.tan(math.radians(config.vfov) / 2.0))
    defocus_radius = focal_length * math.tan(math.radians(config.blur_angle) / 2.0)

    return CameraBasis(
        origin=tuple(float(p) for p in config.position),
        forward=_as_tuple(forward),
        right=_as_tuple(right),
        up=_as_tuple(up),
        focal_length=focal_length,
        defocus_radius=defocus_radius,
        viewport_width=config.viewport_height * config.aspect_ratio,
        viewport_height=config.viewport_height,
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())

_focal_length = ti.field(dtype=ti.f32, shape=())
_defocus_radius = ti.field(dtype=ti.f32, shape=())
_viewport_width = ti.field(dtype=ti.f32, shape=())
_viewport_height = ti.field(dtype=ti.f32, shape=())

# Flag to track if a camera has been set up
_camera_initialized = ti.field(dtype=ti.i32, shape=())


def setup_camera(config: CameraConfig) -> CameraBasis:
    """Derive the camera basis and upload it for ray generation.

    Must be called before rendering, from Python (not inside a kernel).

    Args:
        config: Camera configuration.

    Returns:
        The derived CameraBasis.

    Raises:
        ValueError: If the configuration is invalid (see derive_camera_basis).
    """
    basis = derive_camera_basis(config)

    _camera_origin[None] = basis.origin
    _camera_forward[None] = basis.forward
    _camera_right[None] = basis.right
    _camera_up[None] = basis.up
    _focal_length[None] = basis.focal_length
    _defocus_radius[None] = basis.defocus_radius
    _viewport_width[None] = basis.viewport_width
    _viewport_height[None] = basis.viewport_height
    _camera_initialized[None] = 1

    return basis


def reset_camera() -> None:
    """Mark the camera as not set up."""
    _camera_initialized[None] = 0


def is_camera_set_up() -> bool:
    """Check whether setup_camera() has been called since the last reset."""
    return _camera_initialized[None] == 1


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def sample_defocus_offset(stream: ti.i32) -> vec3:
    """Random offset on the defocus disc, uniform over its area.

    The radius is scaled by sqrt(U) and the direction in the lens plane is a
    normalized pair of normal draws, so no rejection loop is needed.
    """
    radius = _defocus_radius[None] * ti.sqrt(random_uniform(stream))
    n1 = random_normal(stream)
    n2 = random_normal(stream)
    return radius * unit(_camera_up[None] * n1 + _camera_right[None] * n2)


@ti.func
def generate_ray(x: ti.f32, y: ti.f32, stream: ti.i32) -> Ray:
    """Generate a primary ray through a viewport offset.

    Args:
        x: Horizontal offset from the viewport center in [-0.5, 0.5]
            (negative is left).
        y: Vertical offset from the viewport center in [-0.5, 0.5]
            (negative is down).
        stream: Random stream index used for defocus sampling.

    Returns:
        A Ray from the lens toward the viewport point, with unit direction.
    """
    origin = _camera_origin[None]
    target = (
        origin
        + _focal_length[None] * _camera_forward[None]
        + x * _viewport_width[None] * _camera_right[None]
        + y * _viewport_height[None] * _camera_up[None]
    )

    start = origin
    if _defocus_radius[None] > 0.0:
        start = origin + sample_defocus_offset(stream)

    return make_ray(start, unit(target - start))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, forward, right, up, focal_length,
        defocus_radius, viewport_width and viewport_height.
    """

    def _read(f) -> tuple[float, float, float]:
        v = f[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "origin": _read(_camera_origin),
        "forward": _read(_camera_forward),
        "right": _read(_camera_right),
        "up": _read(_camera_up),
        "focal_length": float(_focal_length[None]),
        "defocus_radius": float(_defocus_radius[None]),
        "viewport_width": float(_viewport_width[None]),
        "viewport_height": float(_viewport_height[None]),
    }
