"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output. It verifies that all components work together correctly
and that the output meets basic quality criteria.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

# Diffuse grey sphere (albedo 0.5) lit by the sky: the hemisphere average of
# the gradient is (0.75, 0.85, 1.0), halved by the albedo.
EXPECTED_CENTER_LINEAR = (0.375, 0.425, 0.5)
EXPECTED_CENTER_RGB8 = (156, 166, 181)

GOLDEN_SIZE = 21
CENTER = GOLDEN_SIZE // 2


@pytest.fixture
def golden_scene():
    """A unit diffuse sphere at the origin seen head-on by a pinhole camera."""
    from spheretrace.camera.thin_lens import ThinLensCamera, setup_camera
    from spheretrace.core.integrator import setup_render_target
    from spheretrace.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, 0.0), 1.0, (0.5, 0.5, 0.5))
    setup_camera(
        ThinLensCamera(
            lookfrom=(0.0, 0.0, 3.0),
            lookat=(0.0, 0.0, 0.0),
            vup=(0.0, 1.0, 0.0),
            vfov=40.0,
            aspect_ratio=1.0,
            aperture=0.0,
            focus_dist=3.0,
        )
    )
    setup_render_target(GOLDEN_SIZE, GOLDEN_SIZE)
    return scene


class TestGoldenImage:
    """Regression tests against the analytic center pixel."""

    def test_center_pixel_matches_expected_color(self, golden_scene) -> None:
        """Test that the center pixel mean matches the expected linear color."""
        from spheretrace.core.integrator import render_pixel_sum

        samples = 2000
        total = render_pixel_sum(CENTER, CENTER, samples, max_depth=10, seed=1234)
        mean = np.array(total) / samples

        np.testing.assert_allclose(mean, EXPECTED_CENTER_LINEAR, atol=0.03)

    def test_rendered_image_center_pixel(self, golden_scene) -> None:
        """Test the center pixel of the full 8-bit image."""
        from spheretrace.core.renderer import Renderer

        renderer = Renderer(GOLDEN_SIZE, GOLDEN_SIZE)
        renderer.render(samples=400, max_depth=10, seed=1234)
        image = renderer.get_image_uint8()

        center = image[CENTER, CENTER].astype(int)
        np.testing.assert_allclose(center, EXPECTED_CENTER_RGB8, atol=6)
        # Corners miss the sphere and see the sky, which is brighter
        assert image[0, 0].astype(int).sum() > center.sum()


class TestDeterminism:
    """Tests for reproducibility of accumulated sums."""

    def test_same_seed_bit_identical(self, golden_scene) -> None:
        """Test that 1000 samples with a fixed seed reproduce exactly."""
        from spheretrace.core.integrator import render_pixel_sum

        first = render_pixel_sum(CENTER, CENTER, 1000, max_depth=50, seed=42)
        second = render_pixel_sum(CENTER, CENTER, 1000, max_depth=50, seed=42)

        assert first == second

    def test_different_seed_differs(self, golden_scene) -> None:
        """Test that another seed draws different samples."""
        from spheretrace.core.integrator import render_pixel_sum

        first = render_pixel_sum(CENTER, CENTER, 1000, max_depth=50, seed=42)
        second = render_pixel_sum(CENTER, CENTER, 1000, max_depth=50, seed=43)

        assert first != second

    def test_full_image_reproducible(self, golden_scene) -> None:
        """Test that whole renders with the same seed are identical."""
        from spheretrace.core.renderer import Renderer

        renderer = Renderer(GOLDEN_SIZE, GOLDEN_SIZE)
        renderer.render(samples=8, max_depth=10, seed=5, rows_per_batch=7)
        first = renderer.get_color_sum_numpy()
        renderer.render(samples=8, max_depth=10, seed=5, rows_per_batch=3)

        np.testing.assert_array_equal(renderer.get_color_sum_numpy(), first)


class TestRandomSceneIntegration:
    """End-to-end render of the procedural cover scene."""

    def test_random_scene_renders(self, tmp_path: Path) -> None:
        """Test that a small cover render is finite and saves as PPM."""
        from spheretrace.camera.thin_lens import setup_camera
        from spheretrace.core.renderer import Renderer
        from spheretrace.scene.random_scene import create_random_scene

        _, camera = create_random_scene(seed=0)
        setup_camera(camera)

        renderer = Renderer(30, 20)
        renderer.render(samples=2, max_depth=8, seed=0)

        sums = renderer.get_color_sum_numpy()
        assert np.all(np.isfinite(sums))
        assert np.all(sums >= 0.0)
        # Mean sample color cannot exceed white sky
        assert np.all(sums / 2.0 <= 1.0 + 1e-5)

        image = renderer.get_image_uint8()
        assert image.max() > 0

        path = tmp_path / "cover.ppm"
        renderer.save(path)
        assert path.read_text(encoding="ascii").startswith("P3\n30 20\n255\n")

    def test_cli_main(self, tmp_path: Path) -> None:
        """Test the example CLI end to end with a tiny render."""
        import importlib.util

        script = Path(__file__).parent.parent / "examples" / "render_random_scene.py"
        module_spec = importlib.util.spec_from_file_location("render_random_scene", script)
        module = importlib.util.module_from_spec(module_spec)
        module_spec.loader.exec_module(module)

        args = module.parse_args(
            ["--width", "24", "--samples", "1", "--max-depth", "4", "--output", "x.ppm"]
        )
        config = module.build_config(args)
        config.output = str(tmp_path / "cli.ppm")

        output = module.render_random_scene(config, rows_per_batch=8, quiet=True)
        assert output.exists()

    def test_cli_writes_ppm_alongside_png(self, tmp_path: Path) -> None:
        """Test that --ppm writes the same pixels as the PNG from one render."""
        import importlib.util

        from spheretrace.preview.export import load_png

        script = Path(__file__).parent.parent / "examples" / "render_random_scene.py"
        module_spec = importlib.util.spec_from_file_location("render_random_scene", script)
        module = importlib.util.module_from_spec(module_spec)
        module_spec.loader.exec_module(module)

        ppm_path = tmp_path / "image.ppm"
        args = module.parse_args(
            ["--width", "12", "--samples", "1", "--max-depth", "3", "--ppm", str(ppm_path)]
        )
        assert args.ppm == str(ppm_path)
        assert args.debug is False

        config = module.build_config(args)
        config.output = str(tmp_path / "image.png")
        png_path = module.render_random_scene(
            config, rows_per_batch=4, quiet=True, ppm_output=args.ppm
        )

        png = load_png(png_path)
        tokens = ppm_path.read_text(encoding="ascii").split()
        assert tokens[:4] == ["P3", "12", "8", "255"]
        ppm = np.array([int(x) for x in tokens[4:]], dtype=np.uint8).reshape(8, 12, 3)
        np.testing.assert_array_equal(ppm, png)

    def test_cli_debug_flag(self) -> None:
        """Test that --debug is parsed for the Taichi runtime."""
        import importlib.util

        script = Path(__file__).parent.parent / "examples" / "render_random_scene.py"
        module_spec = importlib.util.spec_from_file_location("render_random_scene", script)
        module = importlib.util.module_from_spec(module_spec)
        module_spec.loader.exec_module(module)

        assert module.parse_args(["--debug"]).debug is True
