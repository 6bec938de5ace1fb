"""Directory scanning and image type detection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from filetype import guess

from .config import SUPPORTED_FORMATS

logger = logging.getLogger("arweave_uploader")


def is_supported_image(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_FORMATS


def get_image_files(directory: Path) -> List[Path]:
    """Return supported images directly inside ``directory`` in listing order.

    Unreadable or missing directories are reported and yield an empty list.
    """
    directory = Path(directory)
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        logger.error("Error reading directory %s: %s", directory, exc)
        return []
    return [entry for entry in entries if is_supported_image(entry) and entry.is_file()]


def calculate_total_size(paths: Iterable[Path]) -> int:
    return sum(Path(path).stat().st_size for path in paths)


def detect_content_type(data: bytes) -> Optional[str]:
    """Detect a MIME type from the file signature using filetype."""
    kind = guess(data)
    if kind:
        return kind.mime
    return None
