"""Image export utilities for rendered images.

Rendered images are ``uint8`` arrays of shape (height, width, 3) with row 0
at the top. They can be written as:
    - PNG (via Pillow)
    - Plain-text PPM (``P3``), one ``r g b`` line per pixel

Parent directories of the output path are created as needed; any other I/O
error propagates to the caller.

Example:
    >>> import numpy as np
    >>> from spheretrace.preview.export import save_png, write_ppm
    >>> image = np.zeros((2, 3, 3), dtype=np.uint8)
    >>> write_ppm(image, "out/image.ppm")
    >>> save_png(image, "out/image.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def _check_rgb8(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {arr.dtype}")
    return arr


def _prepare_path(filepath: str | Path) -> Path:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an image as a plain-text PPM file.

    The header is ``P3``, ``<width> <height>`` and ``255``, each on its own
    line, followed by one ``r g b`` line per pixel from top to bottom and
    left to right.

    Args:
        image: Image array of shape (H, W, 3) with dtype uint8.
        filepath: Output file path.

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    arr = _check_rgb8(image)
    height, width = arr.shape[:2]
    path = _prepare_path(filepath)

    with path.open("w", encoding="ascii") as f:
        f.write(f"P3\n{width} {height}\n255\n")
        for row in arr:
            f.writelines(f"{r} {g} {b}\n" for r, g, b in row.tolist())


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as a PNG file.

    Args:
        image: Image array of shape (H, W, 3) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    arr = _check_rgb8(image)
    path = _prepare_path(filepath)
    PILImage.fromarray(np.ascontiguousarray(arr)).save(path)


def load_png(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Load an image file as an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as img:
        return np.asarray(img.convert("RGB"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
