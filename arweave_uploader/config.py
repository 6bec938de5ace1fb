"""Configuration objects and constants for the upload workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

SUPPORTED_FORMATS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp")

DEFAULT_IMAGES_DIR = Path("./images")
DEFAULT_OPTIMIZED_DIR = Path("./images-optimized")
DEFAULT_METADATA_DIR = Path("./metadata")
DEFAULT_WALLET_PATH = Path("./wallet.json")
DEFAULT_APP_NAME = "ArweaveUploader"
DEFAULT_CONTENT_TYPE = "image/*"
APP_VERSION = "1.0.0"

DEFAULT_UPLOAD_URL = "https://upload.ardrive.io"
DEFAULT_PAYMENT_URL = "https://payment.ardrive.io"
DEFAULT_GATEWAY_URL = "https://arweave.net"

WINC_PER_CREDIT = 10**12


@dataclass(frozen=True)
class OptimizeSettings:
    """Fixed transform applied to every image by the optimizer."""

    max_width: int = 2048
    max_height: int = 2048
    jpeg_quality: int = 92
    progressive: bool = True
    without_enlargement: bool = True
    chroma_subsampling: str = "4:2:0"
    optimize: bool = True


@dataclass(frozen=True)
class OptimizeConfig:
    input_dir: Path = DEFAULT_IMAGES_DIR
    output_dir: Path = DEFAULT_OPTIMIZED_DIR
    settings: OptimizeSettings = field(default_factory=OptimizeSettings)


@dataclass(frozen=True)
class TurboConfig:
    """Endpoints and HTTP settings for the Turbo services."""

    upload_url: str = DEFAULT_UPLOAD_URL
    payment_url: str = DEFAULT_PAYMENT_URL
    gateway_url: str = DEFAULT_GATEWAY_URL
    timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TurboConfig":
        env = os.environ if environ is None else environ
        return cls(
            upload_url=(env.get("TURBO_UPLOAD_URL") or DEFAULT_UPLOAD_URL).rstrip("/"),
            payment_url=(env.get("TURBO_PAYMENT_URL") or DEFAULT_PAYMENT_URL).rstrip("/"),
        )


@dataclass(frozen=True)
class EstimateConfig:
    original_dir: Path = DEFAULT_IMAGES_DIR
    optimized_dir: Path = DEFAULT_OPTIMIZED_DIR
    turbo: TurboConfig = field(default_factory=TurboConfig)


@dataclass(frozen=True)
class UploadConfig:
    """Settings for a single folder upload run.

    ``fallback_dir`` is used when ``input_dir`` does not exist; ``None``
    disables the fallback.
    """

    wallet_path: Path = DEFAULT_WALLET_PATH
    input_dir: Path = DEFAULT_OPTIMIZED_DIR
    app_name: str = DEFAULT_APP_NAME
    content_type: str = DEFAULT_CONTENT_TYPE
    fallback_dir: Optional[Path] = DEFAULT_IMAGES_DIR
    results_dir: Path = Path(".")
    max_concurrent_uploads: int = 5
    turbo: TurboConfig = field(default_factory=TurboConfig)


@dataclass(frozen=True)
class MetadataConfig:
    results_file: Optional[Path]
    metadata_dir: Path = DEFAULT_METADATA_DIR


def resolve_wallet_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the wallet location from ``ARWEAVE_WALLET`` or the default."""
    env = os.environ if environ is None else environ
    override = env.get("ARWEAVE_WALLET")
    if override:
        return Path(override).expanduser()
    return DEFAULT_WALLET_PATH
