"""Render configuration and Taichi runtime initialization."""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# Largest supported image side, bounded by the preallocated render buffers
MAX_IMAGE_SIZE = 2048
MAX_SEED = 2**31

_ARCHES = ("cpu", "gpu", "cuda", "vulkan", "metal")


@dataclass
class RenderConfig:
    """Settings for a single render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height; the height is derived from it.
        samples_per_pixel: Number of camera rays averaged per pixel.
        max_depth: Maximum number of ray bounces.
        seed: Seed for the per-pixel random streams.

    Example:
        >>> config = RenderConfig(image_width=400, samples_per_pixel=50)
        >>> config.image_height
        225
    """

    image_width: int = 800
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 250
    max_depth: int = 10
    seed: int = 0

    @property
    def image_height(self) -> int:
        """Image height in pixels, int(image_width / aspect_ratio)."""
        return int(self.image_width / self.aspect_ratio)

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.image_height <= 0:
            raise ValueError(
                f"image_height derived from width {self.image_width} and aspect "
                f"ratio {self.aspect_ratio} is not positive"
            )
        if self.image_width > MAX_IMAGE_SIZE or self.image_height > MAX_IMAGE_SIZE:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed "
                f"maximum supported ({MAX_IMAGE_SIZE}x{MAX_IMAGE_SIZE})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        check_seed(self.seed)


def check_seed(seed: int) -> None:
    """Raise ValueError unless seed fits a Taichi i32 kernel argument."""
    if not 0 <= seed < MAX_SEED:
        raise ValueError(f"seed must be in [0, 2**31), got {seed}")


def init_taichi(arch: str = "cpu", **kwargs) -> None:
    """Initialize Taichi for rendering.

    Rendering relies on double precision, so the default float type is
    always f64.

    Args:
        arch: Backend name: "cpu", "gpu", "cuda", "vulkan" or "metal".
        **kwargs: Extra keyword arguments forwarded to ti.init.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if arch not in _ARCHES:
        raise ValueError(f"Unknown arch {arch!r}, expected one of {sorted(_ARCHES)}")
    ti.init(arch=getattr(ti, arch), default_fp=ti.f64, **kwargs)
    logger.debug("Taichi initialized on %s", arch)
