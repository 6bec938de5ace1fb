"""Point metadata files at the URLs recorded by an upload run."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import MetadataConfig
from .errors import MetadataError, ResultsFileError
from .utils import base_name

logger = logging.getLogger("arweave_uploader")

USAGE = "Usage: arweave-update-metadata <upload-results.json> [metadataDir]"
EXAMPLE = "Example: arweave-update-metadata upload-results-2026-02-03.json ./metadata"


@dataclass
class ReconcileSummary:
    updated: int = 0
    skipped: int = 0
    unchanged: int = 0


def load_result_items(path: Path) -> List[Dict[str, Any]]:
    """Return the per-file records from a results file (``files`` or ``images``)."""
    try:
        results = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ResultsFileError(f"Could not read results file {path}: {exc}") from exc
    items = None
    if isinstance(results, dict):
        items = results.get("files")
        if items is None:
            items = results.get("images")
    if items is None:
        raise ResultsFileError("Invalid results file: missing 'files' or 'images' array")
    return items


def build_url_map(items: List[Dict[str, Any]]) -> Dict[str, str]:
    """Map base file name to URL; later records win."""
    url_map: Dict[str, str] = {}
    for item in items:
        url_map[base_name(item["fileName"])] = item["url"]
    return url_map


def lookup_url(url_map: Dict[str, str], entry_name: str) -> Optional[str]:
    """Match a metadata entry by its exact name, then by the stem of a ``.json`` name."""
    url = url_map.get(entry_name)
    if url is None and entry_name.lower().endswith(".json"):
        url = url_map.get(base_name(entry_name))
    return url


def _read_metadata(path: Path) -> Dict[str, Any]:
    try:
        metadata = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise MetadataError(f"Could not read metadata file {path}: {exc}") from exc
    if not isinstance(metadata, dict):
        raise MetadataError(f"Metadata file {path} does not contain a JSON object")
    return metadata


def reconcile_metadata(url_map: Dict[str, str], metadata_dir: Path) -> ReconcileSummary:
    try:
        entries = [entry for entry in metadata_dir.iterdir() if entry.is_file()]
    except OSError as exc:
        raise MetadataError(f"Could not read metadata directory {metadata_dir}: {exc}") from exc

    summary = ReconcileSummary()
    for entry in entries:
        url = lookup_url(url_map, entry.name)
        if not url:
            logger.warning("[SKIP] No URL found for: %s", entry.name)
            summary.skipped += 1
            continue

        metadata = _read_metadata(entry)
        if metadata.get("image") == url:
            print(f"[OK] {entry.name} (already up to date)")
            summary.unchanged += 1
            continue

        metadata["image"] = url
        entry.write_text(json.dumps(metadata, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"[UPDATED] {entry.name}")
        summary.updated += 1
    return summary


def run_update_metadata(config: MetadataConfig) -> int:
    """Rewrite ``image`` fields from a results file; returns an exit code."""
    if config.results_file is None:
        print("Update Metadata Image URLs\n")
        print("Updates metadata files with Arweave image URLs from upload results.\n")
        print(USAGE)
        print(f"\n{EXAMPLE}")
        return 0

    try:
        url_map = build_url_map(load_result_items(config.results_file))
        summary = reconcile_metadata(url_map, config.metadata_dir)
    except (ResultsFileError, MetadataError, KeyError, TypeError) as exc:
        logger.error("Error: %s", exc)
        return 1

    print(f"\nDone. Updated: {summary.updated}, Skipped: {summary.skipped}")
    return 0
