"""Matte (diffuse) material implementation.

A matte surface sends the bounced ray from the hit point toward a random
point on the unit sphere tangent to the surface at that point:

    direction = unit(normal + random_unit_vector())

This favours directions near the normal, approximating a Lambertian lobe
without the cost of building a tangent frame. It is not an exact
cosine-weighted distribution. The sum is re-normalized so that every
scattered ray has unit length.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.matte import scatter_matte
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_matte(albedo, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.vector import random_unit_vector, unit

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_matte(albedo: vec3, normal: vec3, stream: ti.i32):
    """Sample a scattered direction for a matte surface.

    Args:
        albedo: The diffuse reflectance colour (RGB, each component in [0, 1]).
        normal: The outward unit normal at the hit point.
        stream: Random stream index of the pixel being rendered.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction is
        unit length and the attenuation equals the albedo.
    """
    scattered_direction = unit(normal + random_unit_vector(stream))
    return scattered_direction, albedo
