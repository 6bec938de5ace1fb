"""Command-line entry points for the image upload workflow."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Dict, Sequence

from dotenv import load_dotenv

from .config import (
    DEFAULT_APP_NAME,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_IMAGES_DIR,
    DEFAULT_METADATA_DIR,
    DEFAULT_OPTIMIZED_DIR,
    EstimateConfig,
    MetadataConfig,
    OptimizeConfig,
    TurboConfig,
    UploadConfig,
    resolve_wallet_path,
)
from .estimator import run_estimate
from .metadata import run_update_metadata
from .optimizer import run_optimize
from .uploader import run_upload

logger = logging.getLogger("arweave_uploader.cli")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        force=True,
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_optimize_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input_dir",
        nargs="?",
        default=DEFAULT_IMAGES_DIR,
        type=Path,
        help="Directory holding the original images (default: ./images)",
    )
    parser.add_argument(
        "output_dir",
        nargs="?",
        default=DEFAULT_OPTIMIZED_DIR,
        type=Path,
        help="Directory for optimized JPEGs (default: ./images-optimized)",
    )
    _add_common_arguments(parser)


def _add_estimate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "original_dir",
        nargs="?",
        default=DEFAULT_IMAGES_DIR,
        type=Path,
        help="Directory holding the original images (default: ./images)",
    )
    parser.add_argument(
        "optimized_dir",
        nargs="?",
        default=DEFAULT_OPTIMIZED_DIR,
        type=Path,
        help="Directory holding optimized images (default: ./images-optimized)",
    )
    _add_common_arguments(parser)


def _add_upload_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input_dir",
        nargs="?",
        default=DEFAULT_OPTIMIZED_DIR,
        type=Path,
        help="Folder to upload (default: ./images-optimized, falling back to ./images)",
    )
    parser.add_argument(
        "app_name",
        nargs="?",
        default=DEFAULT_APP_NAME,
        help="Value of the App-Name tag on every uploaded item",
    )
    parser.add_argument(
        "content_type",
        nargs="?",
        default=DEFAULT_CONTENT_TYPE,
        help="Content-Type used when a file's type cannot be detected",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of uploading ./images when the input folder is missing",
    )
    _add_common_arguments(parser)


def _add_metadata_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "results_file",
        nargs="?",
        default=None,
        type=Path,
        help="upload-results-*.json written by the upload command",
    )
    parser.add_argument(
        "metadata_dir",
        nargs="?",
        default=DEFAULT_METADATA_DIR,
        type=Path,
        help="Directory of per-item metadata JSON files (default: ./metadata)",
    )
    _add_common_arguments(parser)


def _run_optimize(args: argparse.Namespace) -> int:
    return run_optimize(OptimizeConfig(input_dir=args.input_dir, output_dir=args.output_dir))


def _run_estimate(args: argparse.Namespace) -> int:
    config = EstimateConfig(
        original_dir=args.original_dir,
        optimized_dir=args.optimized_dir,
        turbo=TurboConfig.from_env(),
    )
    return run_estimate(config)


def _run_upload(args: argparse.Namespace) -> int:
    config = UploadConfig(
        wallet_path=resolve_wallet_path(),
        input_dir=args.input_dir,
        app_name=args.app_name,
        content_type=args.content_type,
        fallback_dir=None if args.no_fallback else DEFAULT_IMAGES_DIR,
        turbo=TurboConfig.from_env(),
    )
    return run_upload(config)


def _run_update_metadata(args: argparse.Namespace) -> int:
    return run_update_metadata(
        MetadataConfig(results_file=args.results_file, metadata_dir=args.metadata_dir)
    )


COMMANDS: Dict[str, tuple] = {
    "optimize": (_add_optimize_arguments, _run_optimize, "Resize and recompress images to JPEG"),
    "estimate": (_add_estimate_arguments, _run_estimate, "Estimate Turbo upload costs"),
    "upload": (_add_upload_arguments, _run_upload, "Upload a folder through Turbo"),
    "update-metadata": (
        _add_metadata_arguments,
        _run_update_metadata,
        "Write uploaded image URLs into metadata files",
    ),
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Optimize, price, upload and catalogue images on Arweave via Turbo.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (add_arguments, _, help_text) in COMMANDS.items():
        add_arguments(subparsers.add_parser(name, help=help_text))
    return parser.parse_args(list(sys.argv[1:] if argv is None else argv))


def _prepare(verbose: bool) -> None:
    load_dotenv(dotenv_path=Path(os.getcwd()) / ".env")
    _configure_logging(verbose)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _prepare(args.verbose)
    logger.debug("Running %s", args.command)
    _, runner, _ = COMMANDS[args.command]
    return runner(args)


def _single_command(name: str) -> Callable[[Sequence[str] | None], int]:
    add_arguments, runner, help_text = COMMANDS[name]

    def entry(argv: Sequence[str] | None = None) -> int:
        parser = argparse.ArgumentParser(prog=f"arweave-{name}", description=help_text)
        add_arguments(parser)
        args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
        _prepare(args.verbose)
        return runner(args)

    entry.__name__ = f"{name.replace('-', '_')}_main"
    return entry


optimize_main = _single_command("optimize")
estimate_main = _single_command("estimate")
upload_main = _single_command("upload")
update_metadata_main = _single_command("update-metadata")


if __name__ == "__main__":
    sys.exit(main())
