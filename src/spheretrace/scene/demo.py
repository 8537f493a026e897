"""Built-in demo scene.

Three spheres of radius 0.5 in a row one unit in front of the camera, resting
on a large ground sphere:

- Left: hollow glass (an outer shell and a thinner hollow inner shell)
- Center: red matte
- Right: fuzzy gold metal
- Ground: a radius-100 yellow-green matte sphere

The camera sits at the origin looking down +Y (Z is up) with a 90 degree
vertical field of view and no defocus blur.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.demo import create_demo_scene
    >>> from spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera)
"""

import logging
from dataclasses import dataclass

from spheretrace.camera.thin_lens import CameraConfig
from spheretrace.materials.glass import DEFAULT_IOR
from spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)


@dataclass
class DemoSceneParams:
    """Parameters for customizing the demo scene.

    Attributes:
        matte_color: Reflectance of the center sphere.
        metal_color: Reflectance of the right sphere.
        metal_fuzz: Fuzz of the right sphere.
        glass_ior: Index of refraction of the left sphere.
        glass_thickness: Wall thickness of the left sphere's shell.
        ground_color: Reflectance of the ground sphere.
        aspect_ratio: Aspect ratio of the camera.
        blur_angle: Defocus blur cone angle of the camera in degrees.
    """

    matte_color: tuple[float, float, float] = (0.7, 0.3, 0.3)
    metal_color: tuple[float, float, float] = (0.8, 0.6, 0.2)
    metal_fuzz: float = 0.3
    glass_ior: float = DEFAULT_IOR
    glass_thickness: float = 0.05
    ground_color: tuple[float, float, float] = (0.8, 0.8, 0.0)
    aspect_ratio: float = 16.0 / 9.0
    blur_angle: float = 0.0


# Sphere layout
SPHERE_RADIUS = 0.5
LEFT_CENTER = (-1.0, 1.0, 0.0)
CENTER_CENTER = (0.0, 1.0, 0.0)
RIGHT_CENTER = (1.0, 1.0, 0.0)
GROUND_CENTER = (0.0, 1.0, -100.5)
GROUND_RADIUS = 100.0


def create_demo_scene(
    params: DemoSceneParams | None = None,
) -> tuple[SceneManager, CameraConfig]:
    """Create the demo scene and its camera.

    Replaces whatever scene was loaded before.

    Args:
        params: Optional parameters; defaults are used if None.

    Returns:
        Tuple of (SceneManager, CameraConfig).
    """
    if params is None:
        params = DemoSceneParams()

    scene = SceneManager()

    scene.add_matte_sphere(CENTER_CENTER, SPHERE_RADIUS, params.matte_color)
    scene.add_hollow_glass_sphere(
        LEFT_CENTER, SPHERE_RADIUS, params.glass_thickness, ior=params.glass_ior
    )
    scene.add_metal_sphere(RIGHT_CENTER, SPHERE_RADIUS, params.metal_color, params.metal_fuzz)
    scene.add_matte_sphere(GROUND_CENTER, GROUND_RADIUS, params.ground_color)

    camera = CameraConfig(
        position=(0.0, 0.0, 0.0),
        direction=(0.0, 1.0, 0.0),
        aspect_ratio=params.aspect_ratio,
        vfov=90.0,
        blur_angle=params.blur_angle,
    )

    logger.debug("Created demo scene with %d spheres", scene.get_sphere_count())
    return scene, camera
