"""Render configuration.

A RenderConfig gathers every setting of a render: image size, sampling,
seed, output path and camera. Defaults reproduce the cover image (1200 px
wide at 3:2, 500 samples per pixel, 50 bounces).

Example:
    >>> from spheretrace.config import RenderConfig
    >>> config = RenderConfig(image_width=400, samples_per_pixel=50)
    >>> config.image_height
    266
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from spheretrace.camera.thin_lens import ThinLensCamera
from spheretrace.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH


@dataclass
class RenderConfig:
    """Settings for a single render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height; also used by the camera.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Maximum bounces per path.
        seed: Seed for both the scene layout and the render.
        output: Output path; the extension (.png or .ppm) selects the format.
        camera: Camera settings.
    """

    image_width: int = 1200
    aspect_ratio: float = 3.0 / 2.0
    samples_per_pixel: int = 500
    max_depth: int = 50
    seed: int = 0
    output: str = "image.png"
    camera: ThinLensCamera = field(default_factory=ThinLensCamera)

    @property
    def image_height(self) -> int:
        """Image height in pixels, truncated from width / aspect_ratio."""
        return int(self.image_width / self.aspect_ratio)

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any size, sample count or depth is out of range,
                or the output extension is unsupported.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(
                f"Image size must be positive, got {self.image_width}x{self.image_height}"
            )
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image size {self.image_width}x{self.image_height} exceeds maximum "
                f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if Path(self.output).suffix.lower() not in (".png", ".ppm"):
            raise ValueError(f"Output must end in .png or .ppm, got {self.output!r}")

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a JSON-friendly dictionary."""
        return {
            "image_width": self.image_width,
            "aspect_ratio": self.aspect_ratio,
            "samples_per_pixel": self.samples_per_pixel,
            "max_depth": self.max_depth,
            "seed": self.seed,
            "output": self.output,
            "camera": self.camera.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a configuration from a dictionary.

        Missing keys keep their defaults. The camera's aspect ratio follows
        the image's unless the camera section sets it explicitly.

        Raises:
            ValueError: If the dictionary contains unknown keys.
        """
        known = {
            "image_width",
            "aspect_ratio",
            "samples_per_pixel",
            "max_depth",
            "seed",
            "output",
            "camera",
        }
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        defaults = cls()
        aspect_ratio = float(data.get("aspect_ratio", defaults.aspect_ratio))
        camera_data = dict(data.get("camera", {}))
        camera_data.setdefault("aspect_ratio", aspect_ratio)

        return cls(
            image_width=int(data.get("image_width", defaults.image_width)),
            aspect_ratio=aspect_ratio,
            samples_per_pixel=int(data.get("samples_per_pixel", defaults.samples_per_pixel)),
            max_depth=int(data.get("max_depth", defaults.max_depth)),
            seed=int(data.get("seed", defaults.seed)),
            output=str(data.get("output", defaults.output)),
            camera=ThinLensCamera.from_dict(camera_data),
        )


def load_config(filepath: str | Path) -> RenderConfig:
    """Load and validate a RenderConfig from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the JSON is malformed or the settings are invalid.
    """
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be an object, got {type(data).__name__}")

    config = RenderConfig.from_dict(data)
    config.validate()
    return config
