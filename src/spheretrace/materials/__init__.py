"""Materials module for surface scattering.

Components:
    matte: Diffuse scattering toward a random point on the tangent unit sphere
    metal: Mirror reflection with optional fuzz
    glass: Reflection/refraction with Schlick-weighted choice and hollow shells

Each scatter function takes the hit geometry plus the pixel's random stream
and returns a (scattered_direction, attenuation) pair. Scattered directions
are always unit length. Material parameters live in the scene manager's
material table and are dispatched by kind in the integrator.
"""

from .glass import (
    DEFAULT_IOR,
    cannot_refract,
    facing_cosine,
    glass_interface,
    schlick_reflectance,
    scatter_glass,
)
from .matte import scatter_matte
from .metal import scatter_metal

__all__ = [
    # Matte
    "scatter_matte",
    # Metal
    "scatter_metal",
    # Glass
    "DEFAULT_IOR",
    "scatter_glass",
    "schlick_reflectance",
    "glass_interface",
    "cannot_refract",
    "facing_cosine",
]
