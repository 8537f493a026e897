"""Frame renderer driving sampling, resolve and image output.

This module wraps the integrator's render target to render whole frames
from a RenderSettings object:

    - seeds one random stream per pixel from the settings' seed
    - accumulates samples in batches, with progress callbacks or as a generator
    - refuses to return an image if any kernel recorded a geometry fault
    - hands each finished pixel to an image sink exactly once

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.config import RenderSettings
    >>> from spheretrace.core.renderer import FrameRenderer
    >>> from spheretrace.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene()
    >>> settings = RenderSettings(width=320, height=180, samples_per_pixel=50)
    >>> renderer = FrameRenderer(settings, camera)
    >>> sink = renderer.render()
    >>> sink.save("spheres.png")
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from spheretrace.camera.thin_lens import CameraConfig, is_camera_set_up, setup_camera
from spheretrace.config import RenderSettings
from spheretrace.core.faults import clear_faults, get_fault_count
from spheretrace.core.integrator import (
    accumulate_samples,
    clear_render_target,
    get_total_samples,
    resolve_frame,
    setup_render_target,
)
from spheretrace.core.rng import seed_streams
from spheretrace.preview.export import ImageSink, PillowImageSink

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (samples_done, samples_total)
ProgressCallback = Callable[[int, int], None]


class FrameRenderer:
    """Renders one frame of the current scene.

    The scene itself is process-global (see SceneManager); the renderer
    owns the render target, the random streams and the fault check.

    Attributes:
        settings: The render settings.
    """

    def __init__(self, settings: RenderSettings, camera: CameraConfig | None = None) -> None:
        """Initialize the renderer.

        Args:
            settings: Image size, sampling and seed.
            camera: Camera to set up. If None, the camera already set up
                with setup_camera() is used.

        Raises:
            ValueError: If the camera configuration is invalid.
            RuntimeError: If no camera is given and none has been set up.
        """
        self.settings = settings
        if camera is not None:
            setup_camera(camera)
        elif not is_camera_set_up():
            raise RuntimeError("Camera not set up. Pass a CameraConfig or call setup_camera() first.")
        setup_render_target(settings.width, settings.height)
        self.reset()

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the number of samples per pixel accumulated so far."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear accumulated samples and faults and reseed the random streams."""
        clear_render_target()
        clear_faults()
        seed_streams(self.settings.seed, self.width * self.height)

    def _check_faults(self) -> None:
        faults = get_fault_count()
        if faults > 0:
            logger.error("Render recorded %d geometry fault(s); discarding the frame", faults)
            raise RuntimeError(
                f"Render recorded {faults} geometry fault(s) (zero-length normalization "
                "or a glass normal facing away from the ray); the image is unreliable"
            )

    def render_progressive(self, batch_size: int = 1) -> Generator[tuple[int, int], None, None]:
        """Render the frame from scratch, yielding progress after each batch.

        Args:
            batch_size: Number of samples per pixel between yields.

        Yields:
            Tuple of (samples_done, samples_total).

        Raises:
            ValueError: If batch_size is less than 1.
            RuntimeError: If a geometry fault is recorded.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.reset()
        total = self.settings.samples_per_pixel
        logger.info(
            "Rendering %dx%d at %d samples per pixel, depth %d, seed %d",
            self.width,
            self.height,
            total,
            self.settings.max_depth,
            self.settings.seed,
        )

        remaining = total
        while remaining > 0:
            batch = min(batch_size, remaining)
            accumulate_samples(batch, self.settings.max_depth, self.settings.min_hit_distance)
            remaining -= batch
            # Fail fast instead of finishing a frame that will be discarded
            self._check_faults()
            yield (self.sample_count, total)

    def render_to_array(
        self,
        callback: ProgressCallback | None = None,
        batch_size: int = 1,
    ) -> npt.NDArray[np.float32]:
        """Render the frame and return the resolved display values.

        Args:
            callback: Optional function called after each batch with
                (samples_done, samples_total).
            batch_size: Number of samples per pixel between callbacks.

        Returns:
            NumPy array of shape (height, width, 3), row 0 at the top,
            gamma-corrected values scaled to 0-255.

        Raises:
            RuntimeError: If a geometry fault is recorded.
        """
        start_time = time.perf_counter()

        for done, total in self.render_progressive(batch_size):
            if callback is not None:
                callback(done, total)

        image = resolve_frame()
        self._check_faults()

        logger.info("Rendered frame in %.2fs", time.perf_counter() - start_time)
        return image

    def render(
        self,
        sink: ImageSink | None = None,
        callback: ProgressCallback | None = None,
        batch_size: int = 1,
    ) -> ImageSink:
        """Render the frame and write every pixel to an image sink once.

        Args:
            sink: Destination for the pixels. A PillowImageSink of the frame
                size is created if None.
            callback: Optional progress callback, see render_to_array().
            batch_size: Number of samples per pixel between callbacks.

        Returns:
            The sink that received the pixels.

        Raises:
            RuntimeError: If a geometry fault is recorded. Nothing is written
                to the sink in that case.
        """
        image = self.render_to_array(callback=callback, batch_size=batch_size)

        if sink is None:
            sink = PillowImageSink(self.width, self.height)
        for row in range(self.height):
            for column in range(self.width):
                r, g, b = image[row, column]
                sink.set_pixel(column, row, (float(r), float(g), float(b)))
        return sink

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"FrameRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}/{self.settings.samples_per_pixel})"
        )
