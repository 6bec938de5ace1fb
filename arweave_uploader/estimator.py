"""Compare Turbo upload costs for the original and optimized image sets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from .config import SUPPORTED_FORMATS, EstimateConfig
from .models import CostQuote
from .scanner import calculate_total_size, get_image_files
from .turbo import TurboFactory, TurboUnauthenticatedClient
from .utils import format_credits, format_kb, format_mb, format_percent, percent_saved

logger = logging.getLogger("arweave_uploader")

USAGE = "Usage: arweave-estimate [originalDir] [optimizedDir]"


def scan_set(directory: Path) -> Tuple[int, int]:
    """Return ``(file_count, total_bytes)`` for the images in ``directory``."""
    files = get_image_files(directory)
    return len(files), calculate_total_size(files)


def quote_bytes(client: TurboUnauthenticatedClient, byte_count: int) -> CostQuote:
    [quote] = client.get_upload_costs([byte_count])
    return quote


def print_quote(label: str, quote: CostQuote) -> None:
    print(f"{label} Images Upload Cost:")
    print("-" * 60)
    print(f"Data size: {quote.byte_count:,} bytes")
    print(f"Cost in winc: {quote.winc:,}")
    print(f"Cost in Credits: {format_credits(quote.credits)}")


def print_comparison(original: CostQuote, optimized: CostQuote) -> None:
    print("\n" + "=" * 60)
    print("SAVINGS COMPARISON")
    print("=" * 60)
    reduction = percent_saved(original.byte_count, optimized.byte_count)
    delta = original.credits - optimized.credits
    print(f"\nSize reduction: {format_percent(reduction)}%")
    print(f"  Original: {format_mb(original.byte_count)} MB")
    print(f"  Optimized: {format_mb(optimized.byte_count)} MB")
    print(f"\nCost savings: {format_credits(delta)} Credits")


def _print_set(count: int, total_bytes: int, label: str) -> None:
    print(f"Found {count} {label} image(s)")
    print(f"Total size: {format_kb(total_bytes)} KB ({format_mb(total_bytes)} MB)\n")


def run_estimate(
    config: EstimateConfig,
    client: Optional[TurboUnauthenticatedClient] = None,
) -> int:
    """Print the cost comparison; returns an exit code."""
    print("Arweave Upload Cost Estimator\n")
    print("=" * 60)
    print("Note: No private key required for cost estimation!\n")

    print(f"Scanning original images: {config.original_dir}/\n")
    original_count, original_bytes = scan_set(config.original_dir)
    if not original_count:
        print("No images found in original directory.")
        print("Supported formats:", ", ".join(SUPPORTED_FORMATS))
        print(f"\n{USAGE}")
        return 0
    _print_set(original_count, original_bytes, "original")

    optimized_bytes: Optional[int] = None
    if config.optimized_dir.exists():
        print(f"Scanning optimized images: {config.optimized_dir}/\n")
        optimized_count, total = scan_set(config.optimized_dir)
        if optimized_count:
            optimized_bytes = total
            _print_set(optimized_count, total, "optimized")

    print("=" * 60)
    print("Fetching upload cost estimates...\n")

    client = client or TurboFactory.unauthenticated(config.turbo)
    try:
        original = quote_bytes(client, original_bytes)
        print_quote("ORIGINAL", original)
        if optimized_bytes is not None:
            optimized = quote_bytes(client, optimized_bytes)
            print()
            print_quote("OPTIMIZED", optimized)
            print_comparison(original, optimized)
    except Exception as exc:  # noqa: BLE001 - reported and mapped to exit status
        logger.error("Error estimating upload cost: %s", exc)
        return 1

    print("\n" + "=" * 60)
    print("\nNext steps:")
    if optimized_bytes is None:
        print("  1. Run: arweave-optimize (to create optimized images)")
        print("  2. Run: arweave-estimate (to compare costs)")
    print("  3. Run: arweave-upload (to upload images)")
    return 0
