"""Metal (specular reflective) material implementation.

Metals mirror the incoming ray about the surface normal:

    R = D - 2(D . N)N

Fuzzy metals perturb the mirror direction by a random unit vector scaled by
the fuzz factor, which spreads the reflection into a glossy lobe. A fuzz of
0 gives a perfect mirror, 1 the widest supported lobe.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_metal(albedo, fuzz, incident, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.vector import random_unit_vector, reflect, unit

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective colour (RGB, each component in [0, 1]).
        fuzz: Reflection perturbation in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (unit length).
        normal: The unit surface normal. Either orientation works because
            reflection is symmetric in the sign of the normal.
        stream: Random stream index of the pixel being rendered.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction is
        unit length and the attenuation equals the albedo.
    """
    reflected = reflect(incident_direction, normal)
    scattered_direction = unit(reflected + fuzz * random_unit_vector(stream))
    return scattered_direction, albedo
