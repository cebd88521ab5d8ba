"""Preview module for image output.

Components:
    export: PNG and plain-text PPM writers, PNG loading and image comparison

Example:
    >>> from spheretrace.core.renderer import Renderer
    >>> from spheretrace.preview import save_png
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render(samples=16, max_depth=10)
    >>> save_png(renderer.get_image_uint8(), "output.png")
"""

from spheretrace.preview.export import compute_rmse, load_png, save_png, write_ppm

__all__ = [
    "save_png",
    "write_ppm",
    "load_png",
    "compute_rmse",
]
