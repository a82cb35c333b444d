"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face, far root)
- Negative radius spheres
- Open t interval bounds
- Numerical edge cases
"""

import pytest
import taichi as ti


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from spheretracer.core.ray import vec3
        from spheretracer.geometry.sphere import make_sphere

        center_result = ti.Vector.field(3, dtype=ti.f64, shape=())
        radius_result = ti.field(dtype=ti.f64, shape=())
        material_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), -0.5, 7)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius
            material_result[None] = sphere.material_id

        test_kernel()
        c = center_result[None]
        assert c[0] == pytest.approx(1.0)
        assert c[1] == pytest.approx(2.0)
        assert c[2] == pytest.approx(3.0)
        assert radius_result[None] == pytest.approx(-0.5)
        assert material_result[None] == 7

    def test_miss_record(self):
        """Test the miss record has no hit and no material."""
        from spheretracer.geometry.sphere import make_miss_record

        hit = ti.field(dtype=ti.i32, shape=())
        material = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = make_miss_record()
            hit[None] = rec.hit
            material[None] = rec.material_id

        test_kernel()
        assert hit[None] == 0
        assert material[None] == -1


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting the unit sphere head-on at t = 4."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())
        point = ti.Vector.field(3, dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())
        material = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=3)

            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            point[None] = record.point
            normal[None] = record.normal
            front_face[None] = record.front_face
            material[None] = record.material_id

        test_kernel()
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(4.0, rel=1e-9)
        p = point[None]
        assert p[0] == pytest.approx(0.0)
        assert p[1] == pytest.approx(0.0)
        assert p[2] == pytest.approx(-1.0)
        n = normal[None]
        assert n[2] == pytest.approx(-1.0)
        assert front_face[None] == 1
        assert material[None] == 3

    def test_hit_sphere_miss(self):
        """Test ray passing beside the sphere."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(5.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_inside_uses_far_root(self):
        """Test ray starting at the center hits the far side as a back face."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)

            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(1.0)
        # Normal faces back toward the ray
        assert normal[None][2] == pytest.approx(-1.0)
        assert front_face[None] == 0

    def test_hit_sphere_behind_ray(self):
        """Test that spheres behind the ray origin are missed."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_t_max_boundary(self):
        """Test that hits beyond t_max are rejected."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 100.0), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 50.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_bounds_are_exclusive(self):
        """Test a root exactly at t_max is not accepted."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 4.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_t_min_falls_back_to_far_root(self):
        """Test a near root below t_min yields the far root."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 1.001), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            record = hit_sphere(ray, sphere, 0.01, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel()
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(2.001)

    def test_hit_sphere_unnormalized_direction(self):
        """Test the hit point does not depend on the direction length."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        t_val = ti.field(dtype=ti.f64, shape=())
        point = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -2.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0, material_id=0)
            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            t_val[None] = record.t
            point[None] = record.point

        test_kernel()
        assert t_val[None] == pytest.approx(2.0)
        assert point[None][2] == pytest.approx(1.0)

    def test_normal_opposes_ray_for_many_directions(self):
        """Test dot(normal, direction) <= 0 and |normal| = 1 for every hit."""
        import math

        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        n = 64
        hits = ti.field(dtype=ti.i32, shape=n)
        dots = ti.field(dtype=ti.f64, shape=n)
        lengths = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                angle = 2.0 * math.pi * ti.cast(i, ti.f64) / n
                direction = vec3(ti.cos(angle), 0.3, ti.sin(angle))
                # Alternate between rays from inside and from outside
                origin = vec3(0.2, 0.1, -0.1)
                if i % 2 == 1:
                    origin = -4.0 * direction
                ray = make_ray(origin, direction)
                sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.5, material_id=0)
                record = hit_sphere(ray, sphere, 0.001, 1000.0)
                hits[i] = record.hit
                dots[i] = record.normal.dot(direction)
                lengths[i] = record.normal.norm()

        test_kernel()
        for i in range(n):
            assert hits[i] == 1
            assert dots[i] <= 0.0
            assert lengths[i] == pytest.approx(1.0)


class TestNegativeRadius:
    """Tests for inside-out spheres with negative radius."""

    def test_negative_radius_hits_same_surface(self):
        """Test negative radius keeps the hit distance."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        t_val = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=-1.0, material_id=0)
            t_val[None] = hit_sphere(ray, sphere, 0.001, 1000.0).t

        test_kernel()
        assert t_val[None] == pytest.approx(4.0)

    def test_negative_radius_flips_face(self):
        """Test an outside ray hits the back face of an inside-out sphere."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=-1.0, material_id=0)
            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert front_face[None] == 0
        # Stored normal still faces the ray
        assert normal[None][2] == pytest.approx(-1.0)

    def test_negative_radius_from_inside_is_front_face(self):
        """Test a ray from inside an inside-out sphere sees a front face."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=-0.5, material_id=0)
            front_face[None] = hit_sphere(ray, sphere, 0.001, 1000.0).front_face

        test_kernel()
        assert front_face[None] == 1


class TestRobustQuadratic:
    """Tests for numerical robustness of the quadratic formula."""

    def test_large_sphere_large_distance(self):
        """Test double precision keeps large distances accurate."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 1e6), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1000.0, material_id=0)
            record = hit_sphere(ray, sphere, 0.001, 1e10)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel()
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(999000.0, rel=1e-9)

    def test_small_sphere(self):
        """Test with a very small sphere."""
        from spheretracer.core.ray import make_ray, vec3
        from spheretracer.geometry.sphere import Sphere, hit_sphere

        t_val = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=0.001, material_id=0)
            t_val[None] = hit_sphere(ray, sphere, 1e-6, 1000.0).t

        test_kernel()
        assert t_val[None] == pytest.approx(0.999)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
