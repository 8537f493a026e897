"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Debug mode turns on
    kernel assertions so geometry faults fail loudly.
    """
    ti.init(arch=ti.cpu, debug=True, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene, material, fault, render-target and camera state around each test."""
    # Import here so Taichi is initialized before any field is declared
    from spheretrace.camera.thin_lens import reset_camera
    from spheretrace.core.faults import clear_faults
    from spheretrace.core.integrator import reset_render_target
    from spheretrace.scene.intersection import clear_scene
    from spheretrace.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        _clear_material_tracking()
        clear_faults()
        reset_render_target()
        reset_camera()

    _clear_all()

    yield

    _clear_all()
