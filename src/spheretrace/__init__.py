"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres with matte, metal and glass materials
through a thin-lens camera, with support for:
- Depth of field via defocus-disc sampling
- Fresnel-weighted reflection and refraction for glass, including hollow shells
- Jittered antialiasing with square-root gamma correction
- Seeded per-pixel random streams for reproducible images

Subpackages:
    core: Vector math, random streams, rays, the integrator and the frame renderer
    camera: Thin-lens camera set-up and primary ray generation
    geometry: Sphere primitive and intersection
    materials: Matte, metal and glass scattering
    scene: Scene manager, scene-level intersection and the built-in demo scene
    preview: Image sink for writing the finished frame
"""

__version__ = "0.1.0"
