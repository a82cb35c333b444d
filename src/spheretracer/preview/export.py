"""Image export utilities for rendered images.

Rendered images are linear float arrays of shape (H, W, 3) holding the
per-pixel average color, top row first. Export converts every channel to a
byte with gamma 2 correction:
    byte = int(256 * clamp(sqrt(value), 0, 0.999))

Supported formats:
    - PPM, plain-text P3 variant
    - PNG (8-bit via Pillow)

Example:
    >>> from spheretracer.preview.export import save_image
    >>> from spheretracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_numpy(), "output.ppm")
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Upper clamp applied after gamma correction, keeps 256 * value below 256
MAX_INTENSITY = 0.999


def gamma_correct(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    """Apply gamma 2 correction (square root) to a linear image.

    NaN and negative values map to 0.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0, posinf=1.0)
    return np.sqrt(np.clip(linear, 0.0, None))


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit with gamma correction.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    corrected = np.clip(gamma_correct(image), 0.0, MAX_INTENSITY)
    return (256.0 * corrected).astype(np.uint8)


def format_ppm(image: npt.NDArray[np.floating]) -> str:
    """Format a linear image as plain-text PPM (P3).

    The output is the header "P3", "<width> <height>" and "255" on separate
    lines, followed by one "r g b" line per pixel, rows top to bottom.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.

    Returns:
        The PPM document, ending with a newline.
    """
    pixels = image_to_uint8(image)
    height, width = pixels.shape[:2]

    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.NDArray[np.floating], target: str | Path | TextIO) -> None:
    """Write a linear image as plain-text PPM.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        target: File path, "-" for standard output, or an open text stream.
    """
    document = format_ppm(image)
    if target == "-":
        sys.stdout.write(document)
        sys.stdout.flush()
    elif isinstance(target, (str, Path)):
        Path(target).write_text(document, encoding="ascii")
    else:
        target.write(document)


def save_png(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a linear image as an 8-bit PNG file.

    Uses the same byte conversion as the PPM output.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image), mode="RGB")
    pil_image.save(filepath)


def output_format(filepath: str | Path) -> str:
    """Get the image format for an output path.

    Args:
        filepath: Output path ending in .ppm or .png, or "-" for PPM on
            standard output.

    Returns:
        "ppm" or "png".

    Raises:
        ValueError: If the extension is not supported.
    """
    if str(filepath) == "-":
        return "ppm"

    suffix = Path(filepath).suffix.lower()
    if suffix not in (".ppm", ".png"):
        raise ValueError(f"Unsupported image format {suffix!r}, expected .ppm or .png")
    return suffix[1:]


def save_image(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a linear image, choosing the format from the file extension.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output path ending in .ppm or .png, or "-" for PPM on
            standard output.

    Raises:
        ValueError: If the extension is not supported.
    """
    if output_format(filepath) == "png":
        save_png(image, filepath)
    else:
        write_ppm(image, "-" if str(filepath) == "-" else filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
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
