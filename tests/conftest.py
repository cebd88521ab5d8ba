"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Debug mode enables kernel asserts (zero-length normalization) and
    field bounds checks.
    """
    ti.init(arch=ti.cpu, random_seed=42, debug=True)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the hit list, materials and render target around each test."""
    # Import here so Taichi is initialized before fields are declared
    from spheretrace.core.integrator import clear_render_target
    from spheretrace.materials.material import clear_materials
    from spheretrace.scene.hit_list import clear_hit_list

    def _clear_all():
        clear_hit_list()
        clear_materials()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def sky_only_camera():
    """Pinhole camera at the origin looking down -z."""
    from spheretrace.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
        aperture=0.0,
        focus_dist=1.0,
    )
    setup_camera(camera)
    return camera
