"""Unit tests for the path tracing integrator.

Tests cover:
- Sky gradient
- Bounce budget semantics
- Energy bounds for absorbing and diffuse surfaces
- Transparent dielectrics and perfect mirrors
- Render target setup
"""

import pytest
import taichi as ti

SKY_HORIZONTAL = (0.75, 0.85, 1.0)


def _sky(direction):
    from src.rtweekend.core.integrator import sky_color
    from src.rtweekend.core.ray import vec3

    dx, dy, dz = direction
    result = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = sky_color(vec3(dx, dy, dz))

    test_kernel()
    return tuple(result[None])


class TestSkyColor:
    """Tests for the background gradient."""

    def test_straight_up(self):
        assert _sky((0.0, 1.0, 0.0)) == pytest.approx((0.5, 0.7, 1.0))

    def test_straight_down(self):
        assert _sky((0.0, -1.0, 0.0)) == pytest.approx((1.0, 1.0, 1.0))

    def test_horizontal(self):
        assert _sky((1.0, 0.0, 0.0)) == pytest.approx(SKY_HORIZONTAL)

    def test_direction_length_ignored(self):
        assert _sky((0.0, 5.0, 0.0)) == pytest.approx((0.5, 0.7, 1.0))


class TestRayColor:
    """Tests for single traced paths."""

    def test_empty_scene_is_sky(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 50) == pytest.approx((0.5, 0.7, 1.0))

    def test_zero_depth_miss_is_sky(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 0) == pytest.approx(SKY_HORIZONTAL)

    def test_zero_depth_hit_is_black(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0) == (0.0, 0.0, 0.0)

    def test_black_absorber(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.0, 0.0, 0.0))
        for stream in range(16):
            color = trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), 50, stream)
            assert color == (0.0, 0.0, 0.0)

    def test_diffuse_ground_bounded_by_albedo(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))
        for stream in range(32):
            color = trace_ray((0.0, 1.0, 0.0), (0.1, -1.0, 0.2), 50, stream)
            assert all(0.0 <= c <= 0.5 for c in color)

    def test_unit_ior_sphere_is_invisible(self, seeded_streams):
        """Glass matching the surrounding medium passes rays straight through."""
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -5.0), 1.0, 1.0)
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 50)
        assert color == pytest.approx(SKY_HORIZONTAL)

    def test_perfect_mirror(self, seeded_streams):
        """A smooth metal sphere sends the ray back, tinted by its albedo."""
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -5.0), 1.0, (0.8, 0.8, 0.8), 0.0)
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 50)
        assert color == pytest.approx(tuple(0.8 * c for c in SKY_HORIZONTAL))

    def test_mirror_needs_one_bounce(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -5.0), 1.0, (0.8, 0.8, 0.8), 0.0)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1) == pytest.approx(
            tuple(0.8 * c for c in SKY_HORIZONTAL)
        )
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0) == (0.0, 0.0, 0.0)

    def test_unknown_material_absorbs(self, seeded_streams):
        from src.rtweekend.core.integrator import trace_ray
        from src.rtweekend.scene.intersection import add_sphere

        # Sphere stored directly, without a registered material
        add_sphere((0.0, 0.0, -5.0), 1.0, 5)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 50) == (0.0, 0.0, 0.0)


class TestRenderTarget:
    """Tests for render target setup."""

    def test_setup(self):
        from src.rtweekend.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(32, 18)
        assert get_image_dimensions() == (32, 18)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (1601, 10), (10, 1201)])
    def test_invalid_dimensions(self, width, height):
        from src.rtweekend.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_render_rows_fills_band(self, seeded_streams):
        """Rendering a band of rows leaves the other rows untouched."""
        from src.rtweekend.camera.thin_lens import ThinLensCamera, setup_camera
        from src.rtweekend.core.integrator import (
            get_color_sum_numpy,
            render_rows,
            setup_render_target,
        )

        setup_camera(ThinLensCamera(vfov=90.0, aspect_ratio=2.0))
        setup_render_target(8, 4)
        # Rows counted from the bottom: rows 0 and 1 are the lower half
        render_rows(0, 2, 2, 5)
        image = get_color_sum_numpy()

        assert image.shape == (4, 8, 3)
        assert (image[:2] == 0.0).all()
        assert (image[2:] > 0.0).all()
        # Two sky samples per pixel
        assert image.max() <= 2.0
