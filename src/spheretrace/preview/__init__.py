"""Preview module for writing finished frames.

Components:
    export: ImageSink protocol and the Pillow-backed sink
"""

from .export import (
    ImageSink,
    PillowImageSink,
    compute_rmse,
    image_to_uint8,
)

__all__ = [
    "ImageSink",
    "PillowImageSink",
    "compute_rmse",
    "image_to_uint8",
]
