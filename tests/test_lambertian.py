"""Unit tests for the Lambertian (diffuse) material."""

import pytest
import taichi as ti


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_attenuation_is_albedo(self, seeded_streams):
        from src.python.materials.lambertian import scatter_lambertian, vec3

        attenuation = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            _, atten = scatter_lambertian(vec3(0.7, 0.3, 0.1), vec3(0.0, 1.0, 0.0), 0)
            attenuation[None] = atten

        test_kernel()
        a = attenuation[None]
        assert (a[0], a[1], a[2]) == pytest.approx((0.7, 0.3, 0.1))

    def test_scattered_directions_stay_in_hemisphere(self, seeded_streams):
        """normal + unit vector never points below the surface."""
        from src.python.materials.lambertian import scatter_lambertian, vec3

        n = 1024
        cosines = ti.field(dtype=ti.f32, shape=n)
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for k in range(n):
                direction, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal, k)
                lengths[k] = direction.norm()
                cosines[k] = direction.dot(normal)

        test_kernel()
        assert cosines.to_numpy().min() >= -1e-5
        assert lengths.to_numpy().max() <= 2.0 + 1e-5
        assert lengths.to_numpy().min() > 0.0

    def test_mean_direction_leans_towards_normal(self, seeded_streams):
        from src.python.materials.lambertian import scatter_lambertian, vec3

        n = 1024
        mean = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for k in range(n):
                direction, _ = scatter_lambertian(vec3(1.0, 1.0, 1.0), vec3(1.0, 0.0, 0.0), k)
                mean[None] += direction / n

        test_kernel()
        m = mean[None]
        assert m[0] == pytest.approx(1.0, abs=0.1)
        assert abs(m[1]) < 0.1
        assert abs(m[2]) < 0.1


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_returns_sequential_indices(self):
        from src.python.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )

        assert add_lambertian_material((0.5, 0.5, 0.5)) == 0
        assert add_lambertian_material((0.1, 0.2, 0.3)) == 1
        assert get_lambertian_material_count() == 2

    def test_stored_albedo(self):
        from src.python.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
        )

        idx = add_lambertian_material((0.8, 0.8, 0.0))
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_lambertian_albedo(mat_idx)

        test_kernel(idx)
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.8, 0.8, 0.0))

    def test_scatter_by_id_uses_registered_albedo(self, seeded_streams):
        from src.python.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
            vec3,
        )

        add_lambertian_material((0.9, 0.9, 0.9))
        idx = add_lambertian_material((0.2, 0.4, 0.6))
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            _, atten = scatter_lambertian_by_id(mat_idx, vec3(0.0, 1.0, 0.0), 0)
            result[None] = atten

        test_kernel(idx)
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.2, 0.4, 0.6))

    @pytest.mark.parametrize("albedo", [(1.1, 0.5, 0.5), (0.5, -0.1, 0.5)])
    def test_out_of_range_albedo_raises(self, albedo):
        from src.python.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_clear(self):
        from src.python.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    def test_capacity_exceeded_raises(self):
        from src.python.materials.lambertian import (
            MAX_LAMBERTIAN_MATERIALS,
            add_lambertian_material,
            num_lambertian_materials,
        )

        num_lambertian_materials[None] = MAX_LAMBERTIAN_MATERIALS
        with pytest.raises(RuntimeError):
            add_lambertian_material((0.5, 0.5, 0.5))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
