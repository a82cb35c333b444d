"""Command-line renderer.

Renders the showcase scene, or a scene loaded from a JSON file, and writes
the result as PPM or PNG.

Usage:
    spheretracer [options]
    python -m spheretracer [options]

Options:
    --width WIDTH             Image width in pixels (default: 800)
    --aspect-ratio RATIO      Width / height (default: 16/9)
    --samples SAMPLES         Samples per pixel (default: 250)
    --max-depth DEPTH         Maximum bounces per path (default: 10)
    --seed SEED               Random seed (default: 0)
    --batch-size SIZE         Samples per progress update (default: 10)
    --output OUTPUT           .ppm or .png path, "-" for PPM on stdout (default: -)
    --arch ARCH               Taichi backend (default: cpu)
    --scene-file PATH         JSON scene description
    --quiet / --verbose       Less / more log output

The JSON scene holds "materials" and "spheres" lists as produced by
SceneManager.to_dict(), plus an optional "camera" object with ThinLensCamera
fields. Without a camera the showcase camera is used.

Example:
    spheretracer --width 400 --samples 50 --output showcase.png
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import numpy as np

from spheretracer.core.config import RenderConfig, init_taichi
from spheretracer.preview.export import output_format

if TYPE_CHECKING:
    from spheretracer.camera.thin_lens import ThinLensCamera
    from spheretracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    defaults = RenderConfig()
    parser = argparse.ArgumentParser(
        prog="spheretracer",
        description="Render a scene of spheres with a Monte Carlo ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=defaults.image_width,
        help=f"Image width in pixels (default: {defaults.image_width})",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=defaults.aspect_ratio,
        help="Image width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=defaults.samples_per_pixel,
        help=f"Number of samples per pixel (default: {defaults.samples_per_pixel})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help=f"Maximum number of bounces per path (default: {defaults.max_depth})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help=f"Random seed (default: {defaults.seed})",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help='Output path ending in .ppm or .png, "-" for PPM on stdout (default: -)',
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu", "cuda", "vulkan", "metal"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene description (default: built-in showcase scene)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors, no progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    return parser.parse_args(argv)


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Send log records to stderr, keeping stdout free for image output."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def camera_from_dict(data: dict[str, Any], aspect_ratio: float) -> ThinLensCamera:
    """Build a ThinLensCamera from a JSON object.

    Missing fields fall back to vup (0, 1, 0), vfov 90, aperture 0 and a
    focus distance equal to |lookfrom - lookat|. The aspect ratio always
    follows the render configuration.

    Raises:
        ValueError: If lookfrom or lookat is missing.
    """
    from spheretracer.camera.thin_lens import ThinLensCamera

    if "lookfrom" not in data or "lookat" not in data:
        raise ValueError("Camera needs both 'lookfrom' and 'lookat'")

    lookfrom = tuple(float(x) for x in data["lookfrom"])
    lookat = tuple(float(x) for x in data["lookat"])
    return ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=tuple(float(x) for x in data.get("vup", (0.0, 1.0, 0.0))),
        vfov=float(data.get("vfov", 90.0)),
        aspect_ratio=aspect_ratio,
        aperture=float(data.get("aperture", 0.0)),
        focus_dist=float(data.get("focus_dist", math.dist(lookfrom, lookat))),
    )


def load_scene_file(path: Path, aspect_ratio: float) -> tuple[SceneManager, ThinLensCamera]:
    """Load a scene (and optionally its camera) from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    from spheretracer.scene.manager import SceneManager
    from spheretracer.scene.showcase import create_showcase_camera

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    scene = SceneManager()
    scene.from_dict(data)

    if "camera" in data:
        camera = camera_from_dict(data["camera"], aspect_ratio)
    else:
        camera = create_showcase_camera(aspect_ratio)
    return scene, camera


def render(
    config: RenderConfig,
    scene: SceneManager,
    camera: ThinLensCamera,
    output: str | Path | TextIO | None = None,
    batch_size: int = 10,
    progress: bool = False,
) -> np.ndarray:
    """Render a built scene and optionally write the image.

    Taichi must be initialized and the scene built before calling this.

    Args:
        config: Render settings.
        scene: The scene to render (already populated).
        camera: Camera configuration; it is set up here.
        output: Where to write the image: a .ppm/.png path, "-" for stdout,
            an open text stream (PPM), or None to skip writing.
        batch_size: Samples per progress update.
        progress: Print a progress line to stderr after each batch.

    Returns:
        The linear image, shape (height, width, 3), top row first.

    Raises:
        ValueError: If the configuration, camera or output format is invalid.
    """
    from spheretracer.camera.thin_lens import setup_camera
    from spheretracer.core.progressive import ProgressiveRenderer
    from spheretracer.preview.export import save_image, write_ppm

    config.validate()
    if isinstance(output, (str, Path)):
        output_format(output)
    setup_camera(camera)

    width, height = config.image_width, config.image_height
    logger.info(
        "Scene has %d spheres and %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    renderer = ProgressiveRenderer(width, height, max_depth=config.max_depth, seed=config.seed)
    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        print(
            f"\rSamples: {current}/{target} ({samples_per_sec:.1f} spp/s)",
            end="",
            file=sys.stderr,
            flush=True,
        )

    renderer.render(
        num_samples=config.samples_per_pixel,
        batch_size=batch_size,
        callback=progress_callback if progress else None,
    )
    if progress:
        print(file=sys.stderr)

    logger.info("Rendered %dx%d in %.2fs", width, height, time.time() - start_time)

    image = renderer.get_image_numpy()
    if output is None:
        return image
    if isinstance(output, (str, Path)):
        save_image(image, output)
        if str(output) != "-":
            logger.info("Saved to %s", Path(output).absolute())
    else:
        write_ppm(image, output)
    return image


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    config = RenderConfig(
        image_width=args.width,
        aspect_ratio=args.aspect_ratio,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
    )

    try:
        config.validate()
        output_format(args.output)
        init_taichi(args.arch)

        # Modules holding Taichi fields are imported after initialization
        from spheretracer.scene.showcase import create_showcase_scene

        if args.scene_file is not None:
            scene, camera = load_scene_file(args.scene_file, config.aspect_ratio)
        else:
            scene, camera = create_showcase_scene(config.aspect_ratio)

        render(
            config,
            scene,
            camera,
            output=args.output,
            batch_size=args.batch_size,
            progress=not args.quiet,
        )
        return 0
    except Exception as e:
        logger.error("Error: %s", e, exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
