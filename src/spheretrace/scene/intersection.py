"""Scene-level sphere storage and nearest-hit queries.

Spheres are stored in Taichi fields (Structure of Arrays) for the lifetime of a
render. ``intersect_scene`` scans them linearly and keeps the closest hit
beyond the minimum hit distance; on an exact tie the sphere added first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.intersection import add_sphere, clear_scene, intersect_scene
    >>> clear_scene()
    >>> add_sphere(ti.math.vec3(0, 1, 0), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.geometry.sphere import Sphere, hit_sphere, sphere_outward_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Upper bound on ray parameters; anything farther counts as escaping to the sky
T_MAX = 1e30


@ti.dataclass
class SceneHitRecord:
    """Record of the nearest ray-scene intersection.

    Attributes:
        hit: 1 if any sphere was hit beyond the minimum distance, 0 otherwise.
        t: The ray parameter of the hit. Only valid if hit == 1.
        point: The hit point. Only valid if hit == 1.
        normal: Outward unit normal of the hit sphere at the hit point.
            Only valid if hit == 1.
        material_id: Material ID of the hit sphere, -1 on a miss.
        hollow: 1 if the hit sphere is the inner shell of a hollow shape.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32
    hollow: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_hollow = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. Field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0, hollow: bool = False) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: The material ID to associate with this sphere.
        hollow: True for the inner shell of a hollow glass shape.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    sphere_hollow[idx] = 1 if hollow else 0
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
        hollow=0,
    )


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3, t_min: ti.f32) -> SceneHitRecord:
    """Find the nearest sphere hit along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum hit distance; hits at or below it are ignored so that
            a ray leaving a surface does not hit that same surface again.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record.
    """
    closest_t = T_MAX
    closest_idx = -1

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        t = hit_sphere(ray_origin, ray_direction, sphere, t_min)
        # Strict comparison keeps the first sphere on exact ties
        if t > t_min and t < closest_t:
            closest_t = t
            closest_idx = i

    result = _make_miss_record()
    if closest_idx >= 0:
        sphere = Sphere(center=sphere_centers[closest_idx], radius=sphere_radii[closest_idx])
        point = ray_origin + closest_t * ray_direction
        result = SceneHitRecord(
            hit=1,
            t=closest_t,
            point=point,
            normal=sphere_outward_normal(sphere, point),
            material_id=sphere_material_ids[closest_idx],
            hollow=sphere_hollow[closest_idx],
        )

    return result
