"""Render driver wrapping the integrator.

The Renderer owns the render target size and renders the image in bands of
scanlines from the top of the image down, reporting progress after each
band. Once finished, the colour sums are mapped to 8-bit RGB and can be
written as PNG or PPM.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.thin_lens import setup_camera
    >>> from spheretrace.core.renderer import Renderer
    >>> from spheretrace.scene.random_scene import create_random_scene
    >>>
    >>> scene, camera = create_random_scene(seed=0)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render(samples=16, max_depth=10, seed=0)
    >>> renderer.save_png("output.png")
"""

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from spheretrace.core.color import to_rgb8
from spheretrace.core.integrator import (
    MAX_DEPTH,
    get_color_sum_numpy,
    get_samples_per_pixel,
    render_rows,
    setup_render_target,
)
from spheretrace.preview.export import save_png, write_ppm

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Band-by-band renderer for the current scene and camera.

    The scene and camera are global Taichi state; build the scene and call
    ``setup_camera`` before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Set up the render target.

        Raises:
            ValueError: If a dimension is not positive or exceeds the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self._samples = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def samples(self) -> int:
        """Samples per pixel of the last finished render, 0 before any."""
        return self._samples

    def render_bands(
        self,
        samples: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
        rows_per_batch: int = 16,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        Bands run from the top of the image to the bottom.

        Yields:
            Tuple of (rows_done, total_rows).

        Raises:
            ValueError: If rows_per_batch or samples is not positive.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")

        logger.info(
            f"Rendering {self._width}x{self._height}, {samples} spp, "
            f"max depth {max_depth}, seed {seed}"
        )
        start = time.perf_counter()

        rows_done = 0
        while rows_done < self._height:
            batch = min(rows_per_batch, self._height - rows_done)
            # Scanline 0 is the bottom row
            row_end = self._height - rows_done
            render_rows(samples, max_depth, seed, row_end - batch, row_end)
            rows_done += batch
            logger.debug(f"Rendered {rows_done}/{self._height} rows")
            yield (rows_done, self._height)

        self._samples = samples
        logger.info(f"Render finished in {time.perf_counter() - start:.2f}s")

    def render(
        self,
        samples: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
        rows_per_batch: int = 16,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render the full image.

        Args:
            samples: Samples per pixel.
            max_depth: Maximum bounces per path.
            seed: Render seed; the same seed reproduces the same image.
            rows_per_batch: Scanlines rendered per kernel launch.
            callback: Optional callback called after each band with
                (rows_done, total_rows).

        Example:
            >>> def progress(done, total):
            ...     print(f"Scanlines remaining: {total - done}")
            >>> renderer.render(100, callback=progress)
        """
        for rows_done, total_rows in self.render_bands(
            samples, max_depth, seed, rows_per_batch
        ):
            if callback is not None:
                callback(rows_done, total_rows)

    def get_color_sum_numpy(self) -> npt.NDArray[np.float32]:
        """Get the raw pre-gamma colour sums, shape (height, width, 3)."""
        return get_color_sum_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the finished image as 8-bit RGB, shape (height, width, 3).

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if self._samples == 0 or get_samples_per_pixel() == 0:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return to_rgb8(get_color_sum_numpy(), self._samples)

    def save_png(self, filepath: str | Path) -> None:
        """Save the finished image as PNG."""
        save_png(self.get_image_uint8(), filepath)
        logger.info(f"Saved PNG to {filepath}")

    def write_ppm(self, filepath: str | Path) -> None:
        """Save the finished image as plain-text PPM."""
        write_ppm(self.get_image_uint8(), filepath)
        logger.info(f"Saved PPM to {filepath}")

    def save(self, filepath: str | Path) -> None:
        """Save the finished image, choosing the format from the extension.

        Raises:
            ValueError: If the extension is neither .png nor .ppm.
        """
        suffix = Path(filepath).suffix.lower()
        if suffix == ".png":
            self.save_png(filepath)
        elif suffix == ".ppm":
            self.write_ppm(filepath)
        else:
            raise ValueError(f"Unsupported output format {suffix!r}; use .png or .ppm")
