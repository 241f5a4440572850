"""Import checks for the modules that define Taichi functions and kernels.

Taichi reads the annotations of @ti.func and @ti.kernel parameters as
objects, so these modules must not turn them into strings.
"""

import __future__
import importlib

import pytest

TAICHI_MODULES = [
    "lumentrace.camera.thin_lens",
    "lumentrace.core.integrator",
    "lumentrace.core.ray",
    "lumentrace.core.rng",
    "lumentrace.geometry.aabb",
    "lumentrace.geometry.base",
    "lumentrace.geometry.plane",
    "lumentrace.geometry.quad",
    "lumentrace.geometry.shapes",
    "lumentrace.geometry.sphere",
    "lumentrace.geometry.triangle",
    "lumentrace.materials.dielectric",
    "lumentrace.materials.emissive",
    "lumentrace.materials.lambertian",
    "lumentrace.materials.metal",
    "lumentrace.scene.background",
    "lumentrace.scene.scene",
]


@pytest.mark.parametrize("name", TAICHI_MODULES)
def test_annotations_are_evaluated(name):
    module = importlib.import_module(name)
    assert getattr(module, "annotations", None) is not __future__.annotations


def test_package_exports_render():
    import lumentrace

    assert callable(lumentrace.render)
    assert callable(lumentrace.build_scene)
