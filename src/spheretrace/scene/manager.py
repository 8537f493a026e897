"""Unified scene manager for coordinating spheres and materials.

This module keeps the material table the integrator dispatches on and offers a
high-level API for building scenes from Python or from a plain dictionary
(e.g. loaded from JSON).

Each material gets an integer ID. The table stores, per ID, the material kind
(matte, metal or glass), its reflectance, its fuzz and its index of
refraction. Glass always stores a white reflectance, whatever was configured.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_matte_material(reflectance=(0.7, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 1, 0), radius=0.5, material_id=red)
    >>> scene.add_hollow_glass_sphere(center=(-1, 1, 0), radius=0.5, thickness=0.05)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from spheretrace.materials.glass import DEFAULT_IOR
from spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material kinds.

    Used for material dispatch in the integrator.
    """

    MATTE = 0
    METAL = 1
    GLASS = 2


# Maximum number of materials in a scene
MAX_MATERIALS = 1024

# Taichi fields for GPU-side material lookup, indexed by material ID
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_reflectance = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_ior = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material table."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material kind for a material ID (-1 for invalid IDs)."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_reflectance(material_id: ti.i32) -> vec3:
    """Get the reflectance (albedo) of a material."""
    return material_reflectance[material_id]


@ti.func
def get_material_fuzz(material_id: ti.i32) -> ti.f32:
    """Get the fuzz of a metal material."""
    return material_fuzz[material_id]


@ti.func
def get_material_ior(material_id: ti.i32) -> ti.f32:
    """Get the index of refraction of a glass material."""
    return material_ior[material_id]


def _validate_reflectance(reflectance: tuple[float, float, float]) -> None:
    if len(reflectance) != 3:
        raise ValueError(f"Reflectance must have 3 components, got {len(reflectance)}")
    for i, component in enumerate(reflectance):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Reflectance component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material ID.
        material_type: The kind of material.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
        hollow: Whether the sphere is the inner shell of a hollow shape.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int
    hollow: bool = False


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Scene builder coordinating the sphere storage and the material table.

    The scene is process-global (it lives in Taichi fields), so creating a
    SceneManager clears whatever scene was loaded before.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_matte_material(reflectance=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(reflectance=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, 1, -100.5), 100, ground)
        >>> scene.add_sphere((1, 1, 0), 0.5, gold)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        reflectance: tuple[float, float, float],
        fuzz: float,
        ior: float,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_reflectance[material_id] = vec3(reflectance[0], reflectance[1], reflectance[2])
        material_fuzz[material_id] = fuzz
        material_ior[material_id] = ior
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(material_id=material_id, material_type=material_type, params=params)
        )
        logger.debug("Registered %s material %d: %s", material_type.name.lower(), material_id, params)
        return material_id

    def add_matte_material(self, reflectance: tuple[float, float, float]) -> int:
        """Add a matte (diffuse) material.

        Args:
            reflectance: The albedo as an (R, G, B) tuple, each in [0, 1].

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any reflectance component is outside [0, 1].
        """
        _validate_reflectance(reflectance)
        return self._register_material(
            MaterialType.MATTE,
            reflectance,
            fuzz=0.0,
            ior=1.0,
            params={"reflectance": tuple(reflectance)},
        )

    def add_metal_material(
        self,
        reflectance: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material.

        Args:
            reflectance: The reflective colour as an (R, G, B) tuple, each in [0, 1].
            fuzz: Reflection perturbation in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any reflectance component or the fuzz is outside [0, 1].
        """
        _validate_reflectance(reflectance)
        if fuzz < 0.0 or fuzz > 1.0:
            raise ValueError(
                f"Fuzz = {fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
            )
        return self._register_material(
            MaterialType.METAL,
            reflectance,
            fuzz=fuzz,
            ior=1.0,
            params={"reflectance": tuple(reflectance), "fuzz": fuzz},
        )

    def add_glass_material(self, ior: float = DEFAULT_IOR) -> int:
        """Add a glass (dielectric) material.

        Glass ignores any configured reflectance and passes light through
        unattenuated.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        if ior < 1.0:
            raise ValueError(
                f"Index of refraction = {ior} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )
        return self._register_material(
            MaterialType.GLASS,
            (1.0, 1.0, 1.0),
            fuzz=0.0,
            ior=ior,
            params={"ior": ior},
        )

    def add_material(self, material_type: str, **params: Any) -> int:
        """Add a material by kind name ("matte", "metal" or "glass").

        Args:
            material_type: The material kind, case-insensitive.
            **params: reflectance, fuzz and/or ior. Parameters that the kind
                does not use are ignored.

        Returns:
            The material ID.

        Raises:
            ValueError: If the kind is unknown or a parameter is invalid.
        """
        kind = material_type.lower()
        if kind == "matte":
            return self.add_matte_material(_as_triple(params.get("reflectance", (0.5, 0.5, 0.5))))
        if kind == "metal":
            return self.add_metal_material(
                _as_triple(params.get("reflectance", (0.8, 0.8, 0.8))),
                params.get("fuzz", 0.0),
            )
        if kind == "glass":
            if "reflectance" in params:
                logger.debug("Ignoring reflectance on glass material; glass is always white")
            return self.add_glass_material(params.get("ior", DEFAULT_IOR))
        raise ValueError(f"Unknown material type: {material_type}")

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
        hollow: bool = False,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The material ID to assign to the sphere.
            hollow: True for the inner shell of a hollow glass shape.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius is not positive or material_id is invalid.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center_vec = vec3(center[0], center[1], center[2])
        sphere_index = add_sphere(center_vec, radius, material_id, hollow)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
                hollow=hollow,
            )
        )
        return sphere_index

    def add_matte_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        reflectance: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new matte material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_matte_material(reflectance)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        reflectance: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(reflectance, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_glass_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = DEFAULT_IOR,
    ) -> tuple[int, int]:
        """Add a solid glass sphere with a new glass material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_glass_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def add_hollow_glass_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        thickness: float,
        ior: float = DEFAULT_IOR,
    ) -> tuple[int, int, int]:
        """Add a glass bubble: an outer shell and a hollow inner shell.

        Both shells share one glass material; the inner one carries the
        hollow flag so its refraction ratio is inverted.

        Args:
            center: The common center of both shells.
            radius: Outer radius.
            thickness: Wall thickness, in (0, radius).
            ior: Index of refraction of the glass.

        Returns:
            Tuple of (outer_sphere_index, inner_sphere_index, material_id).

        Raises:
            ValueError: If the thickness is not in (0, radius).
        """
        if thickness <= 0.0 or thickness >= radius:
            raise ValueError(f"Shell thickness {thickness} must be in (0, {radius})")
        material_id = self.add_glass_material(ior)
        outer = self.add_sphere(center, radius, material_id)
        inner = self.add_sphere(center, radius - thickness, material_id, hollow=True)
        return outer, inner, material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                    "hollow": sphere.hollow,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. Materials are
        loaded first so spheres can refer to them by position.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            params = dict(mat_config)
            mat_type = str(params.pop("type", ""))
            self.add_material(mat_type, **params)

        for sphere_config in config.spheres:
            self.add_sphere(
                _as_triple(sphere_config.get("center", [0.0, 0.0, 0.0])),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
                bool(sphere_config.get("hollow", False)),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS


def _as_triple(values: Any) -> tuple[float, float, float]:
    """Convert a 3-element sequence (e.g. a JSON list) to a float tuple."""
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))
