"""Tests for image export (PPM and PNG)."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from spheretrace.preview.export import compute_rmse, load_png, save_png, write_ppm


@pytest.fixture
def small_image() -> np.ndarray:
    """A 2x3 image with distinct pixel values."""
    return np.array(
        [
            [[255, 0, 0], [0, 255, 0], [0, 0, 255]],
            [[1, 2, 3], [128, 128, 128], [255, 255, 255]],
        ],
        dtype=np.uint8,
    )


class TestWritePpm:
    """Tests for plain-text PPM output."""

    def test_ppm_format(self, tmp_path: Path, small_image: np.ndarray) -> None:
        """Test the exact header and pixel layout of the PPM file."""
        path = tmp_path / "image.ppm"
        write_ppm(small_image, path)

        assert path.read_text(encoding="ascii") == (
            "P3\n3 2\n255\n"
            "255 0 0\n0 255 0\n0 0 255\n"
            "1 2 3\n128 128 128\n255 255 255\n"
        )

    def test_creates_parent_directories(self, tmp_path: Path, small_image: np.ndarray) -> None:
        """Test that missing output directories are created."""
        path = tmp_path / "nested" / "dir" / "image.ppm"
        write_ppm(small_image, path)
        assert path.exists()

    @pytest.mark.parametrize(
        "image",
        [
            np.zeros((2, 2), dtype=np.uint8),
            np.zeros((2, 2, 4), dtype=np.uint8),
            np.zeros((2, 2, 3), dtype=np.float32),
        ],
    )
    def test_invalid_image_rejected(self, tmp_path: Path, image: np.ndarray) -> None:
        """Test that non-RGB8 arrays raise ValueError."""
        with pytest.raises(ValueError):
            write_ppm(image, tmp_path / "bad.ppm")


class TestPng:
    """Tests for PNG output."""

    def test_png_round_trip(self, tmp_path: Path, small_image: np.ndarray) -> None:
        """Test that a saved PNG loads back pixel for pixel."""
        path = tmp_path / "out" / "image.png"
        save_png(small_image, path)

        loaded = load_png(path)
        assert loaded.shape == (2, 3, 3)
        np.testing.assert_array_equal(loaded, small_image)

    def test_invalid_image_rejected(self, tmp_path: Path) -> None:
        """Test that a float image raises ValueError."""
        with pytest.raises(ValueError):
            save_png(np.zeros((2, 2, 3), dtype=np.float64), tmp_path / "bad.png")


class TestComputeRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self, small_image: np.ndarray) -> None:
        """Test that identical images have zero error."""
        assert compute_rmse(small_image, small_image.copy()) == 0.0

    def test_known_difference(self) -> None:
        """Test the error of a uniform offset."""
        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 3, dtype=np.uint8)
        assert compute_rmse(a, b) == pytest.approx(3.0)

    def test_shape_mismatch(self) -> None:
        """Test that mismatched shapes raise ValueError."""
        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((3, 2, 3)))
