"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field declared at module import time.
    """
    from src.rtweekend.config import init_backend

    init_backend("cpu")
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material registries around each test."""
    # Import here so the modules declare their fields after ti.init
    from src.rtweekend.materials.dielectric import clear_dielectric_materials
    from src.rtweekend.materials.lambertian import clear_lambertian_materials
    from src.rtweekend.materials.metal import clear_metal_materials
    from src.rtweekend.scene.intersection import clear_scene
    from src.rtweekend.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def seeded_streams():
    """Seed the first 4096 random streams with a fixed seed."""
    from src.rtweekend.core.rng import seed_streams

    seed_streams(seed=1234, count=4096)
    return 4096
