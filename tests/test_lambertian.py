"""Unit tests for the Lambertian material.

Tests cover:
- Material registry (add, validate, capacity)
- Scatter direction stays in the normal's hemisphere
- Attenuation equals the albedo and rays are never absorbed
"""

import math

import pytest
import taichi as ti

N_SAMPLES = 2000


class TestLambertianRegistry:
    """Tests for Lambertian material storage."""

    def test_add_material(self):
        from src.rtweekend.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
            lambertian_albedos,
        )

        idx = add_lambertian_material((0.5, 0.25, 1.0))
        assert idx == 0
        assert get_lambertian_material_count() == 1
        assert tuple(lambertian_albedos[idx]) == pytest.approx((0.5, 0.25, 1.0))

    def test_sequential_indices(self):
        from src.rtweekend.materials.lambertian import add_lambertian_material

        assert add_lambertian_material((0.1, 0.1, 0.1)) == 0
        assert add_lambertian_material((0.2, 0.2, 0.2)) == 1

    @pytest.mark.parametrize(
        "albedo",
        [
            (1.1, 0.5, 0.5),
            (0.5, -0.1, 0.5),
            (0.5, 0.5, 2.0),
            (math.nan, 0.5, 0.5),
            (0.5, 0.5, math.inf),
        ],
    )
    def test_albedo_out_of_range(self, albedo):
        from src.rtweekend.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )

        with pytest.raises(ValueError, match="outside \\[0, 1\\]"):
            add_lambertian_material(albedo)
        assert get_lambertian_material_count() == 0

    def test_boundary_albedo_allowed(self):
        from src.rtweekend.materials.lambertian import add_lambertian_material

        add_lambertian_material((0.0, 1.0, 0.0))

    def test_clear(self):
        from src.rtweekend.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    def test_capacity(self):
        from src.rtweekend.materials.lambertian import (
            MAX_LAMBERTIAN_MATERIALS,
            add_lambertian_material,
        )

        for _ in range(MAX_LAMBERTIAN_MATERIALS):
            add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(RuntimeError, match="Maximum number of Lambertian materials"):
            add_lambertian_material((0.5, 0.5, 0.5))


class TestLambertianScatter:
    """Tests for the diffuse scatter function."""

    def test_scatter_properties(self, seeded_streams):
        """Every sample scatters, into the upper hemisphere, with the albedo."""
        from src.rtweekend.core.ray import vec3
        from src.rtweekend.materials.lambertian import scatter_lambertian

        dots = ti.field(dtype=ti.f64, shape=N_SAMPLES)
        scattered = ti.field(dtype=ti.i32, shape=N_SAMPLES)
        attenuations = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for k in range(N_SAMPLES):
                direction, attenuation, did_scatter = scatter_lambertian(
                    vec3(0.3, 0.6, 0.9), normal, k
                )
                dots[k] = direction.dot(normal)
                scattered[k] = did_scatter
                attenuations[k] = attenuation

        test_kernel()
        assert (scattered.to_numpy() == 1).all()
        assert dots.to_numpy().min() >= 0.0
        assert (abs(attenuations.to_numpy() - [0.3, 0.6, 0.9]) < 1e-12).all()

    def test_cosine_weighted(self, seeded_streams):
        """The mean cosine of a cosine-weighted lobe is 2/3."""
        from src.rtweekend.core.ray import unit_vector, vec3
        from src.rtweekend.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for k in range(N_SAMPLES):
                direction, _, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal, k)
                cosines[k] = unit_vector(direction).dot(normal)

        test_kernel()
        assert cosines.to_numpy().mean() == pytest.approx(2.0 / 3.0, abs=0.03)

    def test_scatter_by_id(self, seeded_streams):
        from src.rtweekend.core.ray import vec3
        from src.rtweekend.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        add_lambertian_material((0.1, 0.2, 0.3))
        idx = add_lambertian_material((0.7, 0.8, 0.9))
        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_lambertian_by_id(idx, vec3(0.0, 1.0, 0.0), 0)
            result[None] = attenuation

        test_kernel()
        assert tuple(result[None]) == pytest.approx((0.7, 0.8, 0.9))
