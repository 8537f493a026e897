"""Image sinks for finished frames.

The frame renderer hands every pixel to an image sink exactly once, as
``set_pixel(column, row, color)`` with row 0 at the top of the image and
colour components already gamma-corrected and scaled to 0-255 (as reals).
The sink decides how to quantize and persist them.

Supported formats:
    - PNG and anything else Pillow can write, as 8-bit RGB

Example:
    >>> from spheretrace.preview.export import PillowImageSink
    >>> sink = PillowImageSink(2, 1)
    >>> sink.set_pixel(0, 0, (255.0, 0.0, 0.0))
    >>> sink.set_pixel(1, 0, (0.0, 0.0, 255.0))
    >>> sink.save("two_pixels.png")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


@runtime_checkable
class ImageSink(Protocol):
    """Destination for rendered pixels."""

    def set_pixel(self, column: int, row: int, color: Sequence[float]) -> None:
        """Store one pixel; row 0 is the top of the image, components in 0-255."""
        ...

    def save(self, filepath: str | Path) -> None:
        """Persist the image to a file."""
        ...


class PillowImageSink:
    """Image sink backed by a NumPy buffer and written with Pillow.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._pixels = np.zeros((height, width, 3), dtype=np.float32)
        self._written = 0

    @property
    def pixels_written(self) -> int:
        """Number of set_pixel calls so far."""
        return self._written

    def set_pixel(self, column: int, row: int, color: Sequence[float]) -> None:
        """Store one pixel.

        Args:
            column: Pixel column, 0 at the left.
            row: Pixel row, 0 at the top.
            color: (R, G, B) components scaled to 0-255.

        Raises:
            IndexError: If the pixel lies outside the image.
        """
        if not (0 <= column < self.width and 0 <= row < self.height):
            raise IndexError(
                f"Pixel ({column}, {row}) is outside the {self.width}x{self.height} image"
            )
        self._pixels[row, column] = (color[0], color[1], color[2])
        self._written += 1

    def to_array(self) -> npt.NDArray[np.float32]:
        """Get a copy of the stored 0-255 float values, shape (height, width, 3)."""
        return self._pixels.copy()

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the image clipped and rounded to 8 bits."""
        return image_to_uint8(self._pixels)

    def save(self, filepath: str | Path) -> None:
        """Save the image as 8-bit RGB; the format follows the file extension."""
        pil_image = PILImage.fromarray(self.to_uint8())
        pil_image.save(filepath)
        logger.info("Saved %dx%d image to %s", self.width, self.height, filepath)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert 0-255 float display values to uint8.

    Values are rounded to the nearest integer and clipped to [0, 255].
    """
    return np.clip(np.rint(image), 0, 255).astype(np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
