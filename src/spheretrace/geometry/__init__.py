"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with half-b ray-sphere intersection

Intersection routines are Taichi functions (@ti.func). Each primitive exposes
a distance query and an outward-normal query:

    t = hit_shape(ray_origin, ray_direction, shape, t_min)
    normal = shape_outward_normal(shape, point)

Adding a primitive means adding a module here and a loop over its storage in
spheretrace.scene.intersection; the integrator never names a primitive.
"""

from .sphere import NO_HIT, Sphere, hit_sphere, make_sphere, sphere_outward_normal

__all__ = [
    "NO_HIT",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "sphere_outward_normal",
]
