"""Vector utilities for the path tracer.

Vectors and colours are both ``taichi.math.vec3`` values; negation, addition,
subtraction, scaling and division come from its operators. This module adds
the norms, products and Monte Carlo helpers the renderer relies on. All
functions are Taichi functions and must be called from inside a kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.vector import unit, vec3
    >>> @ti.kernel
    ... def direction() -> vec3:
    ...     return unit(vec3(3.0, 0.0, 4.0))  # (0.6, 0.0, 0.8)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.faults import record_fault
from spheretrace.core.rng import random_normal, random_uniform

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# =============================================================================
# Norms and Products
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean norm of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared Euclidean norm.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Normalizing a zero-length vector is a logic error: it trips an assertion
    in debug mode and is counted as a geometry fault otherwise.

    Args:
        v: A non-zero vector.

    Returns:
        v divided by its length.
    """
    n = tm.length(v)
    assert n > 0.0, "cannot normalize a zero-length vector"
    if not (n > 0.0):
        record_fault()
    return v / n


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Cross product a x b."""
    return tm.cross(a, b)


@ti.func
def vpow(v: vec3, t: ti.f32) -> vec3:
    """Raise each component to the power t.

    Components must be non-negative; negative bases give NaN.
    """
    return vec3(v.x**t, v.y**t, v.z**t)


@ti.func
def reflect(direction: vec3, normal: vec3) -> vec3:
    """Mirror a direction about a unit normal: d - 2 (d . n) n."""
    return direction - 2.0 * tm.dot(direction, normal) * normal


@ti.func
def refract(unit_direction: vec3, normal: vec3, cos_theta: ti.f32, ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface with Snell's law.

    The refracted ray is split into the component perpendicular to the normal,
    ratio * (d + cos_theta * n), and the parallel component that restores unit
    length. The caller must already have ruled out total internal reflection.

    Args:
        unit_direction: Incoming direction (unit length).
        normal: Unit normal on the incoming side of the surface.
        cos_theta: -dot(normal, unit_direction).
        ratio: Refraction ratio n_incident / n_transmitted.

    Returns:
        The refracted direction.
    """
    r_perp = ratio * (unit_direction + cos_theta * normal)
    r_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_perp, r_perp))) * normal
    return r_perp + r_parallel


# =============================================================================
# Random Vectors for Monte Carlo Sampling
# =============================================================================


@ti.func
def random_vector(stream: ti.i32) -> vec3:
    """Vector with independent uniform [0, 1) components."""
    return vec3(random_uniform(stream), random_uniform(stream), random_uniform(stream))


@ti.func
def random_normal_vector(stream: ti.i32) -> vec3:
    """Vector with independent standard normal components."""
    return vec3(random_normal(stream), random_normal(stream), random_normal(stream))


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Unit vector uniformly distributed on the sphere.

    A vector of three independent normal draws is isotropic, so normalizing
    it gives a uniform direction without rejection sampling.
    """
    return unit(random_normal_vector(stream))
