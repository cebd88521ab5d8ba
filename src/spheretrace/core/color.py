"""Color accumulation and output mapping.

Each pixel accumulates the sum of N independent ``ray_color`` samples. This
module turns such sums into displayable 8-bit channels:

1. divide by the sample count,
2. gamma-correct with gamma = 2 (square root),
3. clamp each channel to [0, 0.999],
4. scale by 256 and truncate.

Clamping below 1.0 keeps a fully saturated channel at 255 instead of
wrapping to 256.

Example:
    >>> import numpy as np
    >>> from spheretrace.core.color import to_rgb8
    >>> to_rgb8(np.array([25.0, 100.0, 400.0]), samples=100)
    array([128, 255, 255], dtype=uint8)
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

# Upper clamp applied before scaling to bytes
MAX_INTENSITY = 0.999

# Gamma used for output encoding (gamma 2 -> square root)
OUTPUT_GAMMA = 2.0


def average_samples(
    color_sum: npt.ArrayLike,
    samples: int,
) -> npt.NDArray[np.float64]:
    """Divide an accumulated color sum by its sample count.

    Args:
        color_sum: A color or image of summed samples, last axis RGB.
        samples: Number of samples in each sum.

    Returns:
        The mean linear color(s) as float64.

    Raises:
        ValueError: If samples is not positive.
    """
    if samples <= 0:
        raise ValueError(f"Sample count must be positive, got {samples}")
    return np.asarray(color_sum, dtype=np.float64) / float(samples)


def gamma_correct(linear: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Apply gamma-2 encoding (square root) to linear colors.

    Negative values (numerical noise) are clipped to zero first.
    """
    linear_arr = np.maximum(np.asarray(linear, dtype=np.float64), 0.0)
    return np.power(linear_arr, 1.0 / OUTPUT_GAMMA)


def to_rgb8(color_sum: npt.ArrayLike, samples: int) -> npt.NDArray[np.uint8]:
    """Map accumulated sample sums to 8-bit RGB.

    Works on a single color of shape (3,) or an image of shape (H, W, 3).

    Args:
        color_sum: Sum of ``samples`` linear colors per pixel.
        samples: Number of samples in each sum.

    Returns:
        Array of the same shape with dtype uint8, channels in [0, 255].

    Raises:
        ValueError: If samples is not positive.
    """
    encoded = gamma_correct(average_samples(color_sum, samples))
    clamped = np.clip(encoded, 0.0, MAX_INTENSITY)
    # astype truncates toward zero, which is floor for non-negative values
    return (256.0 * clamped).astype(np.uint8)
