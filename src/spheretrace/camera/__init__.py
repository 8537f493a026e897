"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens camera with field of view and defocus blur
"""

from .thin_lens import (
    CameraBasis,
    CameraConfig,
    derive_camera_basis,
    generate_ray,
    get_camera_info,
    is_camera_set_up,
    reset_camera,
    setup_camera,
)

__all__ = [
    "CameraBasis",
    "CameraConfig",
    "derive_camera_basis",
    "generate_ray",
    "get_camera_info",
    "is_camera_set_up",
    "reset_camera",
    "setup_camera",
]
