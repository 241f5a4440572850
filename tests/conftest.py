"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42, fast_math=False)
    yield
    # Note: We don't call ti.reset() here; scenes and cameras own their
    # fields, so nothing needs clearing between tests


@pytest.fixture
def gray():
    """A mid-gray diffuse material."""
    from lumentrace.materials import Lambertian

    return Lambertian((0.5, 0.5, 0.5))
