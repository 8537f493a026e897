"""Core rendering module.

Components:
    vector: Norms, products, reflection/refraction and random vectors
    rng: Seedable per-pixel PCG random streams
    faults: Geometry fault counter checked after every render
    ray: Ray data structure
    integrator: Bounded bounce loop, background gradient and render target
    renderer: FrameRenderer driving sampling, resolve and image output

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    random_normal_vector,
    random_unit_vector,
    random_vector,
    reflect,
    refract,
    unit,
    vec3,
    vpow,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from spheretrace.core.integrator or spheretrace.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit",
    "dot",
    "cross",
    "vpow",
    "reflect",
    "refract",
    "random_vector",
    "random_normal_vector",
    "random_unit_vector",
]
