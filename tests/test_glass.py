"""Unit tests for glass (dielectric) scattering.

Tests cover:
- Schlick reflectance at normal and grazing incidence
- Facing normal and refraction ratio for solid and hollow spheres
- Total internal reflection detection
- Scattered directions: reflection probability, refraction, unit length
- White attenuation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _scatter_many(incident, normal, ior=1.5, hollow=0, n=4096, seed=0):
    from spheretrace.core.rng import seed_streams
    from spheretrace.materials.glass import scatter_glass, vec3

    directions = ti.field(dtype=ti.math.vec3, shape=n)
    attenuations = ti.field(dtype=ti.math.vec3, shape=n)
    seed_streams(seed, n)

    @ti.kernel
    def test_kernel(
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        nx: ti.f32, ny: ti.f32, nz: ti.f32,
        ior: ti.f32, hollow: ti.i32,
    ):
        for i in range(n):
            d, a = scatter_glass(ior, hollow, vec3(dx, dy, dz), vec3(nx, ny, nz), i)
            directions[i] = d
            attenuations[i] = a

    test_kernel(*incident, *normal, ior, hollow)
    return directions.to_numpy(), attenuations.to_numpy()


class TestSchlick:
    """Tests for schlick_reflectance."""

    @pytest.mark.parametrize("ratio", [1.5, 1.0 / 1.5, 2.4, 1.0])
    def test_normal_incidence_equals_r0(self, ratio):
        """Test that the reflectance at cos_theta = 1 is exactly r0."""
        from spheretrace.materials.glass import schlick_reflectance

        reflectance = ti.field(dtype=ti.f32, shape=())
        r0 = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(ratio: ti.f32):
            reflectance[None] = schlick_reflectance(1.0, ratio)
            base = (1.0 - ratio) / (1.0 + ratio)
            r0[None] = base * base

        test_kernel(ratio)
        assert reflectance[None] == r0[None]
        assert reflectance[None] == pytest.approx(((1.0 - ratio) / (1.0 + ratio)) ** 2, rel=1e-5)

    def test_grazing_incidence_is_total(self):
        """Test that the reflectance at cos_theta = 0 is 1."""
        from spheretrace.materials.glass import schlick_reflectance

        reflectance = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            reflectance[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert reflectance[None] == pytest.approx(1.0)


class TestGlassInterface:
    """Tests for glass_interface orientation and ratio."""

    @pytest.mark.parametrize(
        "direction,hollow,expected_normal_z,expected_ratio",
        [
            # Solid sphere: entering uses ior, leaving uses 1 / ior
            ((0.0, 0.0, -1.0), 0, 1.0, 1.5),
            ((0.0, 0.0, 1.0), 0, -1.0, 1.0 / 1.5),
            # Hollow shell: both ratios inverted
            ((0.0, 0.0, -1.0), 1, 1.0, 1.0 / 1.5),
            ((0.0, 0.0, 1.0), 1, -1.0, 1.5),
        ],
    )
    def test_orientation_and_ratio(self, direction, hollow, expected_normal_z, expected_ratio):
        """Test the facing normal and ratio on each side of the surface."""
        from spheretrace.materials.glass import glass_interface, vec3

        facing = ti.field(dtype=ti.math.vec3, shape=())
        ratio = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(dx: ti.f32, dy: ti.f32, dz: ti.f32, hollow: ti.i32):
            n, r = glass_interface(1.5, hollow, vec3(dx, dy, dz), vec3(0.0, 0.0, 1.0))
            facing[None] = n
            ratio[None] = r

        test_kernel(*direction, hollow)
        assert facing[None][2] == pytest.approx(expected_normal_z)
        assert ratio[None] == pytest.approx(expected_ratio, rel=1e-6)

    def test_cannot_refract(self):
        """Test total internal reflection detection."""
        from spheretrace.materials.glass import cannot_refract

        results = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            results[0] = cannot_refract(0.1, 1.5)
            results[1] = cannot_refract(0.1, 1.0 / 1.5)
            results[2] = cannot_refract(1.0, 1.5)

        test_kernel()
        assert results.to_numpy().tolist() == [1, 0, 0]


class TestFacingCosine:
    """Tests for facing_cosine and its fault count."""

    def test_facing_normal(self):
        """Test a normal that faces the ray."""
        from spheretrace.core.faults import get_fault_count
        from spheretrace.materials.glass import facing_cosine

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = facing_cosine(ti.math.vec3(0.0, 0.0, 1.0), ti.math.vec3(0.0, 0.0, -1.0))

        test_kernel()
        assert result[None] == pytest.approx(1.0)
        assert get_fault_count() == 0

    def test_normal_facing_away_records_fault(self):
        """Test that a normal pointing along the ray is counted as a fault."""
        from spheretrace.core.faults import get_fault_count
        from spheretrace.materials.glass import facing_cosine

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = facing_cosine(ti.math.vec3(0.0, 0.0, 1.0), ti.math.vec3(0.0, 0.0, 1.0))

        test_kernel()
        assert result[None] == pytest.approx(-1.0)
        assert get_fault_count() == 1


class TestGlassScatter:
    """Tests for scatter_glass."""

    def test_attenuation_is_white(self):
        """Test that glass never absorbs."""
        _, attenuations = _scatter_many((0.3, 0.0, -1.0), (0.0, 0.0, 1.0), n=64)
        assert np.allclose(attenuations, 1.0)

    def test_directions_are_unit_length(self):
        """Test that scattered directions are normalized."""
        directions, _ = _scatter_many((0.3, 0.2, -1.0), (0.0, 0.0, 1.0), n=512, seed=3)
        assert np.allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-5)

    def test_normal_incidence_reflects_with_probability_r0(self):
        """Test the fraction of reflected rays at normal incidence."""
        directions, _ = _scatter_many((0.0, 0.0, -1.0), (0.0, 0.0, 1.0), n=8192, seed=1)

        reflected = directions[:, 2] > 0.0
        # Refracted rays pass straight through, reflected ones come straight back
        assert np.allclose(directions[~reflected], [0.0, 0.0, -1.0], atol=1e-6)
        assert np.allclose(directions[reflected], [0.0, 0.0, 1.0], atol=1e-6)
        assert abs(reflected.mean() - 0.04) < 0.01

    def test_total_internal_reflection_always_reflects(self):
        """Test that ratio * sin(theta) > 1 forces mirror reflection."""
        theta = math.radians(60.0)
        incident = (math.sin(theta), 0.0, -math.cos(theta))
        # Entering a solid sphere uses ratio = ior = 1.5; 1.5 * sin(60) > 1
        directions, _ = _scatter_many(incident, (0.0, 0.0, 1.0), n=256, seed=2)

        assert np.allclose(directions, [math.sin(theta), 0.0, math.cos(theta)], atol=1e-5)

    def test_refraction_obeys_snell(self):
        """Test the bend of refracted rays at 30 degrees."""
        theta = math.radians(30.0)
        incident = (math.sin(theta), 0.0, -math.cos(theta))
        directions, _ = _scatter_many(incident, (0.0, 0.0, 1.0), ior=1.2, n=1024, seed=5)

        refracted = directions[directions[:, 2] < 0.0]
        assert len(refracted) > 0
        # sin(theta_t) = ratio * sin(theta_i) with ratio = ior on entry
        assert np.allclose(refracted[:, 0], 1.2 * math.sin(theta), atol=1e-5)

    def test_hollow_shell_bends_the_other_way(self):
        """Test that a hollow shell inverts the bend of a solid sphere."""
        theta = math.radians(30.0)
        incident = (math.sin(theta), 0.0, -math.cos(theta))
        directions, _ = _scatter_many(incident, (0.0, 0.0, 1.0), ior=1.5, hollow=1, seed=6)

        refracted = directions[directions[:, 2] < 0.0]
        assert len(refracted) > 0
        assert np.allclose(refracted[:, 0], math.sin(theta) / 1.5, atol=1e-5)
