"""Unit tests for ray_color, pixel sampling and the render target.

Tests cover:
- Sky gradient on a miss
- Depth budget and absorption give black
- Throughput multiplies material attenuation
- Gamma 2 byte conversion with clamping
- Render target setup, row rendering and NumPy export orientation
"""

import numpy as np
import pytest
import taichi as ti


class TestSkyAndDepth:
    """Tests for ray_color on trivial scenes."""

    def test_empty_scene_straight_up_is_zenith_blue(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color

        color = trace_ray_color((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=5)
        assert color == pytest.approx((0.5, 0.7, 1.0), abs=1e-6)

    def test_empty_scene_horizontal_is_half_blend(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color

        color = trace_ray_color((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), max_depth=5)
        assert color == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)

    def test_empty_scene_straight_down_is_white(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color

        color = trace_ray_color((0.0, 0.0, 0.0), (0.0, -3.0, 0.0), max_depth=5)
        assert color == pytest.approx((1.0, 1.0, 1.0), abs=1e-6)

    def test_zero_depth_is_black(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color

        color = trace_ray_color((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=0)
        assert color == (0.0, 0.0, 0.0)

    def test_budget_exhausted_on_hit_is_black(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -2.0), 0.5, (0.5, 0.5, 0.5))

        color = trace_ray_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=1)
        assert color == (0.0, 0.0, 0.0)


class TestMaterialsInRayColor:
    """Tests for attenuation and absorption along a path."""

    def test_mirror_floor_tints_reflected_sky(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, (0.8, 0.6, 0.2), fuzz=0.0)

        color = trace_ray_color((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=2)
        # Reflected straight up: albedo * zenith
        assert color == pytest.approx((0.4, 0.42, 0.2), abs=1e-4)

    def test_ray_trapped_between_mirrors_is_black(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5), fuzz=0.0)
        scene.add_metal_sphere((0.0, 1005.0, 0.0), 1000.0, (0.5, 0.5, 0.5), fuzz=0.0)

        # Bounces between the two mirrors until the budget runs out
        color = trace_ray_color((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=10)
        assert color == (0.0, 0.0, 0.0)

    def test_glass_does_not_darken_escaping_ray(self, seeded_streams):
        """A head-on ray through a glass ball leaves it along the axis."""
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 3.0, 0.0), 1.0, ior=1.5)

        results = [
            trace_ray_color((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=10, stream=k)
            for k in range(32)
        ]
        # Either refracted straight through (zenith) or reflected back down (white)
        for color in results:
            assert color == pytest.approx((0.5, 0.7, 1.0), abs=1e-4) or color == pytest.approx(
                (1.0, 1.0, 1.0), abs=1e-4
            )
        assert any(c == pytest.approx((0.5, 0.7, 1.0), abs=1e-4) for c in results)

    def test_lambertian_albedo_bounds_color(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.25, 0.1))

        for k in range(16):
            color = trace_ray_color((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=50, stream=k)
            # One bounce off the convex ground then straight to the sky
            assert 0.0 < color[0] <= 0.5 + 1e-5
            assert 0.0 < color[1] <= 0.25 + 1e-5
            assert 0.0 < color[2] <= 0.1 + 1e-5

    def test_unknown_material_absorbs(self, seeded_streams):
        from src.python.core.integrator import trace_ray_color
        from src.python.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=99)

        color = trace_ray_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=5)
        assert color == (0.0, 0.0, 0.0)


class TestScatterDispatch:
    """Tests for scatter_material over many random streams."""

    NUM_STREAMS = 512

    def _scatter_all(self, material_id):
        from src.python.core.integrator import scatter_material, vec3
        from src.python.core.sampler import seed_streams

        n = self.NUM_STREAMS
        seed_streams(seed=99, count=n)
        flags = ti.field(dtype=ti.i32, shape=n)
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(mat_id: ti.i32):
            for k in range(n):
                # Alternate entering and leaving the surface
                _, atten, did_scatter = scatter_material(
                    mat_id, vec3(0.6, -0.8, 0.0), vec3(0.0, 1.0, 0.0), k % 2, k
                )
                flags[k] = did_scatter
                attenuations[k] = atten

        test_kernel(material_id)
        return flags.to_numpy(), attenuations.to_numpy()

    def test_lambertian_always_scatters_with_albedo(self):
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        mat_id = scene.add_lambertian_material((0.25, 0.5, 0.75))

        flags, attenuations = self._scatter_all(mat_id)

        assert (flags == 1).all()
        np.testing.assert_allclose(
            attenuations, np.tile([0.25, 0.5, 0.75], (self.NUM_STREAMS, 1)), atol=1e-6
        )

    def test_dielectric_always_scatters_with_white_attenuation(self):
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.1, 0.1, 0.1))
        mat_id = scene.add_dielectric_material(1.5)

        flags, attenuations = self._scatter_all(mat_id)

        assert (flags == 1).all()
        assert (attenuations == 1.0).all()

    def test_metal_flag_comes_from_the_metal(self):
        from src.python.scene.manager import SceneManager

        scene = SceneManager()
        mat_id = scene.add_metal_material((0.9, 0.8, 0.7), fuzz=0.0)

        flags, attenuations = self._scatter_all(mat_id)

        # A sharp reflection off an incoming ray is always above the surface
        assert (flags == 1).all()
        np.testing.assert_allclose(attenuations[0], [0.9, 0.8, 0.7], atol=1e-6)


class TestToByte:
    """Tests for gamma correction and byte conversion."""

    @pytest.mark.parametrize(
        "linear,expected",
        [
            (0.0, 0),
            (0.25, 128),
            (1.0, 255),
            (4.0, 255),
            (-0.5, 0),
            (0.01, 25),
        ],
    )
    def test_to_byte(self, linear, expected):
        from src.python.core.integrator import to_byte

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(value: ti.f32):
            result[None] = to_byte(value)

        test_kernel(linear)
        assert result[None] == expected


class TestRenderTarget:
    """Tests for the render target and row rendering."""

    def test_setup_and_dimensions(self):
        from src.python.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(40, 20)
        assert get_image_dimensions() == (40, 20)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1), (5000, 10), (10, 5000)])
    def test_invalid_dimensions_raise(self, width, height):
        from src.python.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_uninitialized_target_raises(self):
        from src.python.core.integrator import (
            _render_target_initialized,
            get_pixel_buffer_numpy,
            render_rows,
        )

        _render_target_initialized[None] = 0
        with pytest.raises(RuntimeError, match="not set up"):
            get_pixel_buffer_numpy()
        with pytest.raises(RuntimeError):
            render_rows(0, 1, 1, 1)

    def test_row_range_outside_image_raises(self):
        from src.python.core.integrator import render_rows, setup_render_target

        setup_render_target(8, 4)
        with pytest.raises(ValueError):
            render_rows(2, 5, 1, 1)
        with pytest.raises(ValueError):
            render_rows(3, 2, 1, 1)

    def test_sky_render_gradient_and_orientation(self):
        """Top rows look further up, so they are bluer than bottom rows."""
        from src.python.camera.thin_lens import ThinLensCamera, setup_camera
        from src.python.core.integrator import (
            get_linear_image_numpy,
            get_pixel_buffer_numpy,
            render_rows,
            setup_render_target,
        )
        from src.python.core.sampler import seed_streams

        width, height = 16, 8
        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=90.0,
                aspect_ratio=width / height,
            )
        )
        setup_render_target(width, height)
        seed_streams(7, width * height)
        render_rows(0, height, samples_per_pixel=4, max_depth=5)

        pixels = get_pixel_buffer_numpy()
        linear = get_linear_image_numpy()
        assert pixels.shape == (height, width, 3)
        assert pixels.dtype == np.uint8
        assert linear.shape == (height, width, 3)

        # Blue channel of the sky is always 1.0
        assert (pixels[:, :, 2] == 255).all()
        # Red falls off towards the zenith
        assert linear[0, :, 0].mean() < linear[-1, :, 0].mean()
        assert pixels[0, :, 0].mean() < pixels[-1, :, 0].mean()

    def test_partial_rows_leave_rest_black(self):
        from src.python.camera.thin_lens import ThinLensCamera, setup_camera
        from src.python.core.integrator import (
            get_pixel_buffer_numpy,
            render_rows,
            setup_render_target,
        )
        from src.python.core.sampler import seed_streams

        setup_camera(ThinLensCamera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0)))
        setup_render_target(4, 4)
        seed_streams(0, 16)
        render_rows(0, 2, samples_per_pixel=1, max_depth=2)

        pixels = get_pixel_buffer_numpy()
        assert (pixels[:2] > 0).any()
        assert (pixels[2:] == 0).all()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
