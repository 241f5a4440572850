"""Materials module: scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    emissive: Light sources (emission, no scattering)

Each material is a frozen dataclass validated on construction, paired with a
Taichi function implementing its scattering policy. Scatter functions take
and return an explicit random stream state.
"""

from typing import Union

from .base import MaterialKind
from .dielectric import Dielectric, scatter_dielectric
from .emissive import Emissive, emitted
from .lambertian import Lambertian, scatter_lambertian
from .metal import Metal, scatter_metal

Material = Union[Lambertian, Metal, Dielectric, Emissive]

__all__ = [
    "Material",
    "MaterialKind",
    "Lambertian",
    "scatter_lambertian",
    "Metal",
    "scatter_metal",
    "Dielectric",
    "scatter_dielectric",
    "Emissive",
    "emitted",
]
