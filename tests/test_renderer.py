"""Tests for the frame renderer.

Tests cover:
- Render settings flowing into the render target
- Progress callbacks and the progressive generator
- Reproducibility across seeds
- Fault detection
- Image sink output
"""

import numpy as np
import pytest


def _small_settings(**overrides):
    from spheretrace.config import RenderSettings

    params = {"width": 8, "height": 6, "samples_per_pixel": 4, "max_depth": 5, "seed": 0}
    params.update(overrides)
    return RenderSettings(**params)


def _simple_scene():
    from spheretrace.camera.thin_lens import CameraConfig
    from spheretrace.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_matte_sphere((0.0, 1.0, 0.0), 0.5, (0.7, 0.3, 0.3))
    scene.add_matte_sphere((0.0, 1.0, -100.5), 100.0, (0.8, 0.8, 0.0))
    return scene, CameraConfig(aspect_ratio=8 / 6)


class TestFrameRendererSetup:
    """Tests for FrameRenderer construction."""

    def test_dimensions(self):
        """Test that the render target follows the settings."""
        from spheretrace.core.integrator import get_image_dimensions
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)

        assert (renderer.width, renderer.height) == (8, 6)
        assert get_image_dimensions() == (8, 6)
        assert renderer.sample_count == 0

    def test_requires_camera(self):
        """Test that a renderer without any camera set up is refused."""
        from spheretrace.core.renderer import FrameRenderer

        _simple_scene()
        with pytest.raises(RuntimeError, match="Camera not set up"):
            FrameRenderer(_small_settings())

    def test_uses_existing_camera(self):
        """Test that a camera set up earlier is reused."""
        from spheretrace.camera.thin_lens import setup_camera
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        setup_camera(camera)
        image = FrameRenderer(_small_settings()).render_to_array()

        assert image.shape == (6, 8, 3)

    def test_repr(self):
        """Test the string representation."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)
        assert repr(renderer) == "FrameRenderer(width=8, height=6, samples=0/4)"

    def test_invalid_camera_raises(self):
        """Test that camera validation errors surface at construction."""
        from spheretrace.camera.thin_lens import CameraConfig
        from spheretrace.core.renderer import FrameRenderer

        with pytest.raises(ValueError):
            FrameRenderer(_small_settings(), CameraConfig(direction=(0.0, 0.0, 1.0)))


class TestProgress:
    """Tests for progress reporting."""

    def test_callback_per_batch(self):
        """Test that the callback sees every batch, including a short last one."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(samples_per_pixel=5), camera)
        calls = []

        renderer.render_to_array(callback=lambda done, total: calls.append((done, total)), batch_size=2)

        assert calls == [(2, 5), (4, 5), (5, 5)]
        assert renderer.sample_count == 5

    def test_progressive_generator(self):
        """Test that render_progressive yields after each sample by default."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(samples_per_pixel=3), camera)

        assert list(renderer.render_progressive()) == [(1, 3), (2, 3), (3, 3)]

    def test_rendering_twice_starts_over(self):
        """Test that every render starts from an empty accumulation."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)

        first = renderer.render_to_array()
        second = renderer.render_to_array()

        assert renderer.sample_count == 4
        assert np.array_equal(first, second)

    def test_invalid_batch_size_raises(self):
        """Test that batch sizes below 1 are rejected."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)

        with pytest.raises(ValueError, match="batch_size"):
            list(renderer.render_progressive(batch_size=0))


class TestReproducibility:
    """Tests for seeded rendering."""

    def test_same_seed_is_bit_identical(self):
        """Test that two renders with the same seed match exactly."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        first = FrameRenderer(_small_settings(seed=3), camera).render_to_array()
        second = FrameRenderer(_small_settings(seed=3), camera).render_to_array()

        assert np.array_equal(first, second)

    def test_batch_size_does_not_change_the_image(self):
        """Test that batching only affects progress reporting."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        one = FrameRenderer(_small_settings(), camera).render_to_array(batch_size=1)
        all_at_once = FrameRenderer(_small_settings(), camera).render_to_array(batch_size=4)

        assert np.array_equal(one, all_at_once)

    def test_different_seed_differs(self):
        """Test that changing the seed changes the noise."""
        from spheretrace.core.renderer import FrameRenderer
        from spheretrace.preview.export import compute_rmse

        _, camera = _simple_scene()
        first = FrameRenderer(_small_settings(seed=1), camera).render_to_array()
        second = FrameRenderer(_small_settings(seed=2), camera).render_to_array()

        assert compute_rmse(first, second) > 0.0


class TestFaults:
    """Tests for the fault check."""

    def test_fault_between_batches_stops_generator(self):
        """Test that a fault recorded mid-render raises at the next batch."""
        import taichi as ti

        from spheretrace.core.faults import record_fault
        from spheretrace.core.renderer import FrameRenderer

        @ti.kernel
        def fault_kernel():
            record_fault()

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)
        progress = renderer.render_progressive()

        assert next(progress) == (1, 4)
        fault_kernel()

        with pytest.raises(RuntimeError, match="geometry fault"):
            next(progress)

    def test_fault_discards_frame(self):
        """Test that a recorded fault raises before any pixel reaches the sink."""
        import taichi as ti

        from spheretrace.core.faults import record_fault
        from spheretrace.core.renderer import FrameRenderer
        from spheretrace.preview.export import PillowImageSink

        @ti.kernel
        def fault_kernel():
            record_fault()

        def fault_on_first_batch(done, total):
            if done == 1:
                fault_kernel()

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)
        sink = PillowImageSink(8, 6)

        with pytest.raises(RuntimeError, match="geometry fault"):
            renderer.render(sink, callback=fault_on_first_batch)
        assert sink.pixels_written == 0

    def test_reset_clears_faults(self):
        """Test that a new render does not inherit earlier faults."""
        import taichi as ti

        from spheretrace.core.faults import get_fault_count, record_fault
        from spheretrace.core.renderer import FrameRenderer

        @ti.kernel
        def fault_kernel():
            record_fault()

        _, camera = _simple_scene()
        renderer = FrameRenderer(_small_settings(), camera)
        fault_kernel()
        assert get_fault_count() == 1

        renderer.render_to_array()
        assert get_fault_count() == 0


class TestImageOutput:
    """Tests for render() and the image sink."""

    def test_every_pixel_written_once(self):
        """Test that the default sink receives width * height pixels."""
        from spheretrace.core.renderer import FrameRenderer
        from spheretrace.preview.export import PillowImageSink

        _, camera = _simple_scene()
        sink = FrameRenderer(_small_settings(), camera).render()

        assert isinstance(sink, PillowImageSink)
        assert sink.pixels_written == 8 * 6

    def test_sink_matches_array(self):
        """Test that the sink holds the same values as render_to_array."""
        from spheretrace.core.renderer import FrameRenderer

        _, camera = _simple_scene()
        expected = FrameRenderer(_small_settings(), camera).render_to_array()
        sink = FrameRenderer(_small_settings(), camera).render()

        assert np.array_equal(sink.to_array(), expected)

    def test_empty_scene_is_gradient(self):
        """Test that an empty scene renders only the sky gradient."""
        from spheretrace.camera.thin_lens import CameraConfig
        from spheretrace.core.renderer import FrameRenderer

        image = FrameRenderer(_small_settings(), CameraConfig(aspect_ratio=8 / 6)).render_to_array()

        # Blue is 1 everywhere in the gradient
        assert np.allclose(image[:, :, 2], 255.0, atol=1e-3)
        # Red falls toward the top of the image
        row_means = image[:, :, 0].mean(axis=1)
        assert np.all(np.diff(row_means) > 0.0)
