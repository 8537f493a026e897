"""Glass (dielectric) material implementation.

Glass never absorbs light: every hit either reflects or refracts, and the
colour attenuation is always white.

Key physics:
    - Snell's law for refraction, split into perpendicular and parallel parts
    - Total internal reflection when ratio * sin(theta) > 1
    - Schlick's approximation for the Fresnel reflectance probability

Side and ratio convention:
    The sign of dot(outward_normal, direction) tells whether the ray leaves
    (positive) or enters (negative or zero) the sphere. A leaving ray sees the
    normal flipped to face it. The refraction ratio is

        leaving:  ior      if hollow else 1 / ior
        entering: 1 / ior  if hollow else ior

    Inner shells of hollow glass carry the ``hollow`` flag, which inverts the
    ratio relative to a solid sphere of the same material.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.glass import scatter_glass
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_glass(ior, hollow, incident, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.faults import record_fault
from spheretrace.core.rng import random_uniform
from spheretrace.core.vector import reflect, refract, unit

# Type alias for 3D vectors
vec3 = tm.vec3

# Default index of refraction (typical glass)
DEFAULT_IOR = 1.5


@ti.func
def schlick_reflectance(cos_theta: ti.f32, ratio: ti.f32) -> ti.f32:
    """Schlick's approximation of the Fresnel reflectance.

    Args:
        cos_theta: Cosine of the angle between the ray and the facing normal.
        ratio: Refraction ratio at the interface.

    Returns:
        r0 + (1 - r0) (1 - cos_theta)^5 with r0 = ((1 - ratio) / (1 + ratio))^2.
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cos_theta) ** 5)


@ti.func
def glass_interface(ior: ti.f32, hollow: ti.i32, incident_direction: vec3, normal: vec3):
    """Orient the normal toward the ray and pick the refraction ratio.

    Args:
        ior: Index of refraction of the glass.
        hollow: 1 for the inner shell of a hollow shape, 0 otherwise.
        incident_direction: The incoming ray direction.
        normal: The outward unit normal of the sphere at the hit point.

    Returns:
        A tuple of (facing_normal, ratio).
    """
    facing_normal = normal
    ratio = ior
    if hollow == 1:
        ratio = 1.0 / ior

    if tm.dot(normal, incident_direction) > 0.0:
        # Leaving the sphere
        facing_normal = -normal
        ratio = 1.0 / ior
        if hollow == 1:
            ratio = ior

    return facing_normal, ratio


@ti.func
def cannot_refract(cos_theta: ti.f32, ratio: ti.f32) -> ti.i32:
    """Check for total internal reflection: ratio * sin(theta) > 1."""
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    result = 0
    if ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def facing_cosine(facing_normal: vec3, unit_direction: vec3) -> ti.f32:
    """Cosine of the incidence angle, counting a fault when it is negative.

    A negative cosine means the facing normal points away from the ray.
    """
    cos_theta = -tm.dot(facing_normal, unit_direction)
    if cos_theta < 0.0:
        record_fault()
    return cos_theta


@ti.func
def scatter_glass(
    ior: ti.f32,
    hollow: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a glass surface.

    Reflects on total internal reflection or when a uniform draw falls below
    the Schlick reflectance; refracts otherwise.

    Args:
        ior: Index of refraction of the glass (>= 1).
        hollow: 1 for the inner shell of a hollow shape, 0 otherwise.
        incident_direction: The incoming ray direction.
        normal: The outward unit normal of the sphere at the hit point.
        stream: Random stream index of the pixel being rendered.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction is
        unit length and the attenuation is white.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    facing_normal, ratio = glass_interface(ior, hollow, incident_direction, normal)
    unit_direction = unit(incident_direction)

    cos_theta = facing_cosine(facing_normal, unit_direction)
    assert cos_theta >= 0.0, "glass hit with a normal facing away from the ray"
    cos_theta = tm.min(cos_theta, 1.0)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    reflect_draw = random_uniform(stream)
    if cannot_refract(cos_theta, ratio) == 1 or reflect_draw < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, facing_normal)
    else:
        scattered_direction = refract(unit_direction, facing_normal, cos_theta, ratio)

    return unit(scattered_direction), attenuation
