"""Resize and recompress images to JPEG before upload."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import List

from PIL import Image

from .config import SUPPORTED_FORMATS, OptimizeConfig, OptimizeSettings
from .models import OptimizeResult, OptimizeSummary
from .scanner import get_image_files
from .utils import base_name, format_kb, format_mb, format_percent

logger = logging.getLogger("arweave_uploader")

USAGE = "Usage: arweave-optimize [inputDir] [outputDir]"


def _flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency onto white."""
    has_alpha = image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def _fit_inside(image: Image.Image, settings: OptimizeSettings) -> Image.Image:
    width, height = image.size
    scale = min(settings.max_width / width, settings.max_height / height)
    if scale >= 1 and settings.without_enlargement:
        return image
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(new_size, Image.LANCZOS)


def transform_image(source: Path, settings: OptimizeSettings) -> bytes:
    """Return JPEG bytes for ``source`` fitted inside the configured box."""
    with Image.open(source) as image:
        image.seek(0)
        frame = _flatten_to_rgb(image)
    frame = _fit_inside(frame, settings)
    buffer = BytesIO()
    frame.save(
        buffer,
        format="JPEG",
        quality=settings.jpeg_quality,
        progressive=settings.progressive,
        optimize=settings.optimize,
        subsampling=settings.chroma_subsampling,
    )
    return buffer.getvalue()


def output_path_for(source: Path, output_dir: Path) -> Path:
    return output_dir / f"{base_name(source.name)}.jpg"


def optimize_image(source: Path, output_dir: Path, settings: OptimizeSettings) -> OptimizeResult:
    """Optimize one image; failures are captured in the result, never raised."""
    destination = output_path_for(source, output_dir)
    try:
        original_size = source.stat().st_size
    except OSError as exc:
        logger.error("Error reading %s: %s", source, exc)
        return OptimizeResult(source, destination, 0, error=str(exc))

    try:
        data = transform_image(source, settings)
    except Exception as exc:  # noqa: BLE001 - one bad image must not stop the batch
        logger.error("Error optimizing %s: %s", source, exc)
        return OptimizeResult(source, destination, original_size, error=str(exc))

    if not data:
        logger.error("Error optimizing %s: transform produced no data", source)
        return OptimizeResult(source, destination, original_size, error="no data")

    try:
        destination.write_bytes(data)
    except OSError as exc:
        logger.error("Failed to write %s: %s", destination, exc)
        return OptimizeResult(source, destination, original_size, error=str(exc))

    return OptimizeResult(source, destination, original_size, optimized_size=len(data))


def optimize_images(images: List[Path], config: OptimizeConfig) -> OptimizeSummary:
    summary = OptimizeSummary()
    total = len(images)
    for index, source in enumerate(images, start=1):
        print(f"[{index}/{total}] {source.name}")
        result = optimize_image(source, config.output_dir, config.settings)
        summary.results.append(result)
        if result.ok:
            print(
                f"  {format_kb(result.original_size)} KB -> "
                f"{format_kb(result.optimized_size)} KB "
                f"({format_percent(result.savings_percent)}% saved)\n"
            )
        else:
            print("  Failed to optimize\n")
    return summary


def print_summary(summary: OptimizeSummary, output_dir: Path) -> None:
    print("=" * 60)
    print("\nSummary:")
    print("-" * 60)
    print(
        f"Total: {len(summary.results)} | Success: {summary.succeeded} | Failed: {summary.failed}"
    )
    print(
        f"Original: {format_mb(summary.original_bytes)} MB -> "
        f"Optimized: {format_mb(summary.optimized_bytes)} MB"
    )
    print(f"Space saved: {format_percent(summary.savings_percent)}%")
    print(f"\nOutput: {output_dir}/")


def run_optimize(config: OptimizeConfig) -> int:
    """Optimize every supported image in the input directory; returns an exit code."""
    print("Image Optimizer\n")
    print("=" * 60)
    print(f"Input:  {config.input_dir}")
    print(f"Output: {config.output_dir}\n")

    images = get_image_files(config.input_dir)
    if not images:
        print("No images found.")
        print("Supported formats:", ", ".join(SUPPORTED_FORMATS))
        print(f"\n{USAGE}")
        return 0

    try:
        if not config.output_dir.exists():
            config.output_dir.mkdir(parents=True, exist_ok=True)
            print(f"Created output directory: {config.output_dir}\n")
    except OSError as exc:
        logger.error("Error during optimization: %s", exc)
        return 1

    print(f"Found {len(images)} image(s) to optimize\n")
    print("=" * 60)

    summary = optimize_images(images, config)
    print_summary(summary, config.output_dir)
    return 0
