"""Upload a folder through Turbo and record the resulting URLs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config import APP_VERSION, UploadConfig
from .dataitem import ArweaveSigner, Tag
from .errors import InputDirectoryError, WalletError
from .models import UploadedFile, UploadResults
from .turbo import FileEvent, FolderUploadResult, TurboFactory, UploadObserver
from .utils import iso_timestamp, results_file_name

logger = logging.getLogger("arweave_uploader")

USAGE = "Usage: arweave-upload [inputDir] [appName] [contentType]"

ClientFactory = Callable[[ArweaveSigner, UploadConfig], Any]


class ConsoleUploadObserver(UploadObserver):
    """Prints one line per file start and completion."""

    def on_file_start(self, event: FileEvent) -> None:
        print(f"[{event.file_index + 1}/{event.total_files}] Uploading: {event.file_name}")

    def on_file_complete(self, event: FileEvent) -> None:
        print(
            f"[{event.file_index + 1}/{event.total_files}] Done: {event.file_name} -> {event.id}"
        )

    def on_folder_progress(self, phase: str) -> None:
        if phase == "manifest":
            print("\nUploading manifest...")

    def on_folder_error(self, error: Exception) -> None:
        logger.error("Upload error: %s", error)


def load_wallet(path: Path) -> Dict[str, Any]:
    """Read the JWK wallet, raising ``WalletError`` if it is missing or malformed."""
    if not path.is_file():
        raise WalletError(f"Wallet file not found: {path}")
    try:
        jwk = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise WalletError(f"Wallet file {path} is not valid JSON: {exc}") from exc
    if not isinstance(jwk, dict):
        raise WalletError(f"Wallet file {path} is not valid JSON key material")
    return jwk


def load_signer(path: Path) -> ArweaveSigner:
    """Load the wallet and check that it can sign data items."""
    jwk = load_wallet(path)
    try:
        return ArweaveSigner.from_jwk(jwk)
    except ValueError as exc:
        raise WalletError(f"Wallet file {path} is not a valid Arweave key: {exc}") from exc


def resolve_input_dir(config: UploadConfig) -> Path:
    if config.input_dir.is_dir():
        return config.input_dir
    fallback = config.fallback_dir
    if fallback is not None and fallback.is_dir():
        logger.info("Optimized folder %s not found, using %s", config.input_dir, fallback)
        return fallback
    raise InputDirectoryError(f"Directory not found: {config.input_dir}")


def build_results(
    result: FolderUploadResult,
    gateway_url: str,
    uploaded_at: str,
) -> UploadResults:
    manifest_id = result.manifest_response["id"]
    folder_url = f"{gateway_url}/{manifest_id}"
    files = [
        UploadedFile(file_name=name, url=f"{folder_url}/{name}", id=entry["id"])
        for name, entry in result.manifest["paths"].items()
    ]
    return UploadResults(
        manifest_id=manifest_id,
        folder_url=folder_url,
        uploaded_at=uploaded_at,
        files=files,
        total_files=len(result.file_responses),
    )


def write_results(results: UploadResults, directory: Path) -> Path:
    """Create a new results file, adding a numeric suffix rather than overwriting."""
    first = directory / results_file_name(results.uploaded_at)
    path, attempt = first, 0
    while True:
        try:
            with path.open("x", encoding="utf-8") as handle:
                json.dump(results.to_dict(), handle, indent=2)
            return path
        except FileExistsError:
            attempt += 1
            path = first.with_name(f"{first.stem}-{attempt}{first.suffix}")


def _default_client(signer: ArweaveSigner, config: UploadConfig):
    return TurboFactory.authenticated(signer, config.turbo)


def _log_hints(error: Exception) -> None:
    message = str(error)
    if isinstance(error, WalletError) or "JSON" in message:
        logger.error("Make sure wallet.json is a valid Arweave wallet file")
    if "insufficient" in message:
        logger.error("Insufficient balance. Add credits to your Turbo account.")


def run_upload(
    config: UploadConfig,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    """Upload the input folder and save a results file; returns an exit code."""
    client_factory = client_factory or _default_client
    if not config.wallet_path.exists():
        logger.error("Wallet file not found: %s", config.wallet_path)
        logger.error("Set ARWEAVE_WALLET env var or place wallet.json in current directory")
        return 1

    try:
        signer = load_signer(config.wallet_path)
        input_dir = resolve_input_dir(config)
    except InputDirectoryError as exc:
        logger.error("%s", exc)
        print(f"\n{USAGE}")
        return 1
    except WalletError as exc:
        logger.error("Error during upload: %s", exc)
        _log_hints(exc)
        return 1

    print("Arweave Folder Uploader\n")
    print("=" * 60)
    print(f"Directory: {input_dir}")
    print(f"App Name:  {config.app_name}\n")

    tags = [Tag("App-Name", config.app_name), Tag("App-Version", APP_VERSION)]
    try:
        client = client_factory(signer, config)
        result = client.upload_folder(
            input_dir,
            max_concurrent_uploads=config.max_concurrent_uploads,
            tags=tags,
            content_type=config.content_type,
            events=ConsoleUploadObserver(),
        )
        results = build_results(result, config.turbo.gateway_url, iso_timestamp())

        print("\n" + "=" * 60)
        print("Upload Successful!\n")
        print(f"Manifest ID: {results.manifest_id}")
        print(f"Folder URL:  {results.folder_url}")
        print(f"Total Files: {results.total_files}\n")
    except Exception as exc:  # noqa: BLE001 - reported and mapped to exit status
        logger.error("Error during upload: %s", exc)
        _log_hints(exc)
        return 1

    try:
        path = write_results(results, config.results_dir)
    except OSError as exc:
        # the upload is already paid for; keep the record recoverable
        logger.error("Could not save results file in %s: %s", config.results_dir, exc)
        print(json.dumps(results.to_dict(), indent=2))
        return 1

    print(f"Results saved to: {path}")
    return 0
