"""Scene module: shape storage, closest-hit queries and backgrounds.

Components:
    scene: Scene (Taichi field arena + BVH) and build_scene
    background: Solid and gradient backgrounds
    presets: Ready-made scenes (Cornell box, letter grid, three spheres)

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for geometric data
    - A deduplicated material table indexed by material id
    - A flat BVH arena plus a linear list of unbounded planes
"""

from .background import Background, BackgroundKind, GradientBackground, SolidBackground
from .presets import PRESETS, CornellBoxParams, Preset, load_preset
from .scene import Scene, SceneHitRecord, build_scene

__all__ = [
    "Background",
    "BackgroundKind",
    "GradientBackground",
    "SolidBackground",
    "PRESETS",
    "CornellBoxParams",
    "Preset",
    "load_preset",
    "Scene",
    "SceneHitRecord",
    "build_scene",
]
