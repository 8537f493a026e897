"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere storage and the nearest-hit query
    manager: Scene manager coordinating spheres and the material table
    demo: The built-in demo scene

Scene data lives in Taichi fields (Structure of Arrays) for the whole render
and is read-only while kernels run.
"""

from .demo import DemoSceneParams, create_demo_scene
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_fuzz,
    get_material_ior,
    get_material_reflectance,
    get_material_type,
)

__all__ = [
    # Intersection
    "MAX_SPHERES",
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "MAX_MATERIALS",
    "MaterialInfo",
    "MaterialType",
    "SceneConfig",
    "SceneManager",
    "SphereInfo",
    "get_material_fuzz",
    "get_material_ior",
    "get_material_reflectance",
    "get_material_type",
    # Demo
    "DemoSceneParams",
    "create_demo_scene",
]
