"""Sphere primitive with ray-sphere intersection.

The intersection solves |origin + t * direction - center|^2 = radius^2 in the
half-b form, which drops the factors of 2 and 4 from the textbook quadratic:

    a      = |direction|^2
    half_b = (origin - center) . direction
    c      = |origin - center|^2 - radius^2
    disc   = half_b^2 - a * c

The near root is preferred; if it lies at or before ``t_min`` (the ray starts
on or inside the sphere) the far root is returned instead. Callers must still
reject any returned t <= t_min, which covers spheres entirely behind the ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 1, 0), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.vector import unit

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Returned by hit_sphere when the ray's line misses the sphere
NO_HIT = -1.0


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
) -> ti.f32:
    """Find the ray parameter of the first useful sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be unit length).
        sphere: The sphere to test.
        t_min: Minimum accepted distance along the ray; hits at or below it
            are treated as self-intersections.

    Returns:
        The smaller root if it exceeds t_min, otherwise the larger root, or
        NO_HIT if the line misses the sphere. The result may still be
        <= t_min and must then be treated as a miss.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    t = NO_HIT
    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t = (-half_b - sqrt_d) / a
        if t <= t_min:
            t = (-half_b + sqrt_d) / a

    return t


@ti.func
def sphere_outward_normal(sphere: Sphere, point: vec3) -> vec3:
    """Unit normal at a surface point, pointing away from the center."""
    return unit(point - sphere.center)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a kernel."""
    return Sphere(center=center, radius=radius)
