"""Path tracing integrator and render target.

This module turns primary rays into colours and accumulates them into a
preallocated frame buffer.

The colour of a ray is found by following it through the scene for at most
``depth`` segments:

    - no hit: the sky gradient, blended from white (straight down) to
      (0.5, 0.7, 1.0) (straight up) by t = 0.5 * (unit(d).z + 1)
    - hit with one segment left: black (the light is absorbed)
    - otherwise: the surface reflectance times the colour of the scattered ray

The recursion is written as a loop that carries the product of reflectances
seen so far, so path length never touches the call stack.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.integrator import trace_ray
    >>> trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), depth=50)  # straight up: sky
    (0.5, 0.7, 1.0)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.camera.thin_lens import generate_ray
from spheretrace.core.faults import record_fault
from spheretrace.core.rng import random_uniform, seed_streams
from spheretrace.core.vector import unit, vpow
from spheretrace.materials.glass import scatter_glass
from spheretrace.materials.matte import scatter_matte
from spheretrace.materials.metal import scatter_metal
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.manager import (
    MaterialType,
    get_material_fuzz,
    get_material_ior,
    get_material_reflectance,
    get_material_type,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of ray segments per path
MAX_DEPTH = 50

# Default minimum hit distance, keeps bounced rays off their own surface
T_MIN = 0.001

# Background gradient end points
BACKGROUND_WHITE = vec3(1.0, 1.0, 1.0)
SKY_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running sum of sample colours, indexed [column, row from bottom]
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Resolved 0-255 colours, indexed [row from top, column]
_frame = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of samples per pixel accumulated so far
_sample_count = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulated samples and the resolved frame."""
    _color_buffer.fill(0.0)
    _frame.fill(0.0)
    _sample_count[None] = 0


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_total_samples() -> int:
    """Get the number of samples per pixel accumulated so far."""
    return int(_sample_count[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by a ray that escapes the scene.

    Depends only on the vertical component of the unit direction: white
    straight down, SKY_COLOR straight up, linear in between.
    """
    t = 0.5 * (unit(direction).z + 1.0)
    return (1.0 - t) * BACKGROUND_WHITE + t * SKY_COLOR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    hollow: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the scatter function for the hit surface's material.

    Args:
        material_id: The material ID of the hit sphere.
        hollow: 1 if the hit sphere is a hollow inner shell.
        incident_direction: The incoming ray direction.
        normal: The outward unit normal at the hit point.
        stream: Random stream index of the pixel being rendered.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material kind does not scatter and is counted as a fault.
    """
    mat_type = get_material_type(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 1

    if mat_type == int(MaterialType.MATTE):
        # Matte scatters into the hemisphere the ray arrived from
        facing_normal = normal
        if tm.dot(normal, incident_direction) > 0.0:
            facing_normal = -normal
        scattered_direction, attenuation = scatter_matte(
            get_material_reflectance(material_id), facing_normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation = scatter_metal(
            get_material_reflectance(material_id),
            get_material_fuzz(material_id),
            incident_direction,
            normal,
            stream,
        )

    elif mat_type == int(MaterialType.GLASS):
        scattered_direction, attenuation = scatter_glass(
            get_material_ior(material_id), hollow, incident_direction, normal, stream
        )

    else:
        assert 0 <= mat_type <= int(MaterialType.GLASS), "hit a sphere with an unknown material kind"
        record_fault()
        did_scatter = 0

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    t_min: ti.f32,
    stream: ti.i32,
) -> vec3:
    """Estimate the colour carried back along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction.
        depth: Maximum number of ray segments; a hit on the last one is black.
        t_min: Minimum hit distance for every intersection query.
        stream: Random stream index of the pixel being rendered.

    Returns:
        The estimated linear RGB colour.
    """
    color = vec3(0.0, 0.0, 0.0)
    ray_origin = origin
    ray_direction = direction

    # Product of the reflectances along the path so far
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi funcs cannot break out of a loop that depends on a runtime bound
    active = 1

    for bounce in range(depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, t_min)

            if hit_record.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            elif depth - bounce == 1:
                # Out of segments: absorbed
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    hit_record.hollow,
                    ray_direction,
                    hit_record.normal,
                    stream,
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return color


# Result slot for single-ray evaluation
_single_ray_color = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, depth: ti.i32, t_min: ti.f32):
    # One-iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        _single_ray_color[None] = ray_color(origin, direction, depth, t_min, 0)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    seed: int = 0,
    t_min: float = T_MIN,
) -> tuple[float, float, float]:
    """Estimate the colour of a single ray against the current scene.

    This is a Python-callable function for testing and tooling. Randomness
    comes from stream 0, reseeded from ``seed`` on every call, so repeated
    calls with the same arguments return the same colour.

    Args:
        origin: The ray origin.
        direction: The ray direction (non-zero).
        depth: Maximum number of ray segments (>= 1).
        seed: Seed for the random stream.
        t_min: Minimum hit distance.

    Returns:
        Tuple of (R, G, B) linear colour values.

    Raises:
        ValueError: If depth is less than 1.
    """
    if depth < 1:
        raise ValueError(f"Depth must be at least 1, got {depth}")
    seed_streams(seed, 1)
    _trace_single_ray(vec3(*origin), vec3(*direction), depth, t_min)
    color = _single_ray_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, t_min: ti.f32):
    """Trace one jittered camera ray per pixel and add it to the running sum.

    Pixel (i, j) counts rows from the bottom and draws from stream
    j * width + i.
    """
    for i, j in ti.ndrange(width, height):
        stream = j * width + i
        x = (ti.cast(i, ti.f32) + random_uniform(stream)) / ti.cast(width, ti.f32) - 0.5
        y = (ti.cast(j, ti.f32) + random_uniform(stream)) / ti.cast(height, ti.f32) - 0.5
        ray = generate_ray(x, y, stream)
        _color_buffer[i, j] += ray_color(ray.origin, ray.direction, max_depth, t_min, stream)


@ti.kernel
def _resolve_frame(width: ti.i32, height: ti.i32, num_samples: ti.i32):
    """Average, gamma-correct and scale the running sums into the frame.

    Rows are flipped so that row 0 of the frame is the top of the image.
    """
    for i, j in ti.ndrange(width, height):
        average = _color_buffer[i, j] / ti.cast(num_samples, ti.f32)
        _frame[height - j - 1, i] = 255.0 * vpow(average, 0.5)


# =============================================================================
# Public Rendering API
# =============================================================================


def accumulate_samples(num_samples: int, max_depth: int = MAX_DEPTH, t_min: float = T_MIN) -> None:
    """Add samples per pixel to the running sum.

    Can be called repeatedly; the resolved frame always averages over every
    sample accumulated since the last clear.

    Args:
        num_samples: Number of samples to add per pixel.
        max_depth: Maximum number of ray segments per path.
        t_min: Minimum hit distance.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, t_min)
        _sample_count[None] += 1


def resolve_frame() -> np.ndarray:
    """Resolve the accumulated samples into display values.

    Divides by the number of samples actually taken, applies square-root
    gamma and scales to 0-255.

    Returns:
        NumPy float32 array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up or no samples
            have been accumulated.
    """
    _check_render_target_initialized()

    num_samples = get_total_samples()
    if num_samples == 0:
        raise RuntimeError("No samples accumulated. Call accumulate_samples() first.")

    width, height = get_image_dimensions()
    _resolve_frame(width, height, num_samples)

    full_frame = _frame.to_numpy()
    return full_frame[:height, :width, :].astype(np.float32)
