"""Progressive renderer for iterative sample accumulation.

This module provides a wrapper around the core integrator that supports:
- Rendering in batches that refine the image over time
- Progress callbacks or a generator interface for progress reporting
- Reset and resize without rebuilding the scene

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from spheretracer.core.progressive import ProgressiveRenderer
    >>> from spheretracer.scene.showcase import create_showcase_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225, max_depth=10, seed=0)
    >>> renderer.render(100, batch_size=10)
    >>> renderer.save_image("showcase.ppm")
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from spheretracer.core.config import check_seed
from spheretracer.core.integrator import (
    clear_render_target,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from spheretracer.preview.export import image_to_uint8, save_image

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the image size, depth budget and seed, and delegates
    to the global integrator buffers (which are Taichi fields). The scene and
    camera must be set up before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of bounces per path.
        seed: Seed of the per-pixel random streams.
    """

    def __init__(self, width: int, height: int, max_depth: int = 10, seed: int = 0) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum number of bounces per path.
            seed: Seed of the per-pixel random streams.

        Raises:
            ValueError: If dimensions are invalid, max_depth is negative or
                seed is outside [0, 2**31).
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        check_seed(seed)
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples, keeping the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.info(
            "Rendering %d spp at %dx%d (batch size %d)",
            num_samples,
            self.width,
            self.height,
            batch_size,
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, max_depth=self.max_depth, seed=self.seed)
            remaining -= batch
            logger.debug("Accumulated %d/%d spp", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

        logger.info("Finished rendering, %d spp accumulated", self.sample_count)

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the averaged linear image, shape (height, width, 3), top row first."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image, shape (height, width, 3)."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image; the format follows the file extension.

        Raises:
            ValueError: If the extension is not supported.
        """
        save_image(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
