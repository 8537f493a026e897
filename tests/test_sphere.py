"""Unit tests for sphere intersection.

Tests cover:
- Hit distance along the sphere's axis
- Ray missing the sphere
- Ray starting inside the sphere (far root)
- Sphere behind the ray
- Minimum hit distance rejecting self-intersections
- Outward normals
"""

import pytest
import taichi as ti


def _hit_t(origin, direction, center, radius, t_min=0.001):
    from spheretrace.geometry.sphere import Sphere, hit_sphere, vec3

    t_val = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        cx: ti.f32, cy: ti.f32, cz: ti.f32,
        r: ti.f32, t_min: ti.f32,
    ):
        sphere = Sphere(center=vec3(cx, cy, cz), radius=r)
        t_val[None] = hit_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), sphere, t_min)

    test_kernel(*origin, *direction, *center, radius, t_min)
    return float(t_val[None])


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from spheretrace.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    @pytest.mark.parametrize(
        "distance,radius",
        [(5.0, 1.0), (10.0, 2.5), (1.5, 1.0), (100.0, 0.5)],
    )
    def test_axis_hit_distance(self, distance, radius):
        """Test that a ray aimed at the center hits at distance d - r."""
        t = _hit_t((0.0, -distance, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), radius)
        assert abs(t - (distance - radius)) < 1e-4 * distance

    def test_hit_distance_scales_with_direction_length(self):
        """Test that t is measured in units of the direction vector."""
        t = _hit_t((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)
        assert abs(t - 2.0) < 1e-5

    def test_miss_returns_no_hit(self):
        """Test that a ray whose line misses the sphere returns NO_HIT."""
        from spheretrace.geometry.sphere import NO_HIT

        t = _hit_t((5.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert t == NO_HIT

    def test_inside_returns_far_root(self):
        """Test that a ray from the center hits the far side at t = r."""
        t = _hit_t((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 2.0)
        assert abs(t - 2.0) < 1e-5

    def test_sphere_behind_ray_gives_non_positive_t(self):
        """Test that a sphere behind the ray yields a t the caller must reject."""
        t = _hit_t((0.0, 5.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert t <= 0.001

    def test_ray_leaving_surface_skips_near_root(self):
        """Test that a ray starting on the surface returns the far root."""
        # Origin on the near surface, heading through the sphere
        t = _hit_t((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert abs(t - 2.0) < 1e-5

    def test_ray_leaving_outward_is_rejected(self):
        """Test that a ray bouncing off the surface does not re-hit it."""
        t = _hit_t((0.0, -1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert t <= 0.001

    def test_tangent_ray_hits_once(self):
        """Test that a grazing ray touches the sphere at its tangent point."""
        t = _hit_t((1.0, -5.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert abs(t - 5.0) < 1e-2


class TestOutwardNormal:
    """Tests for sphere_outward_normal."""

    def test_normal_points_away_from_center(self):
        """Test normals at two surface points."""
        from spheretrace.geometry.sphere import Sphere, sphere_outward_normal, vec3

        normals = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(1.0, 1.0, 1.0), radius=2.0)
            normals[0] = sphere_outward_normal(sphere, vec3(1.0, 1.0, 3.0))
            normals[1] = sphere_outward_normal(sphere, vec3(-1.0, 1.0, 1.0))

        test_kernel()
        n = normals.to_numpy()
        assert abs(n[0] - [0.0, 0.0, 1.0]).max() < 1e-6
        assert abs(n[1] - [-1.0, 0.0, 0.0]).max() < 1e-6
