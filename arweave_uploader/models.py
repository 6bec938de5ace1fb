"""Data models shared by the optimizer, estimator, uploader and reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import percent_saved, winc_to_credits


@dataclass
class OptimizeResult:
    """Outcome of optimizing a single source image."""

    source: Path
    output: Path
    original_size: int
    optimized_size: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def savings_percent(self) -> float:
        return percent_saved(self.original_size, self.optimized_size)


@dataclass
class OptimizeSummary:
    """Aggregate of a whole optimizer batch."""

    results: List[OptimizeResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def original_bytes(self) -> int:
        return sum(result.original_size for result in self.results if result.ok)

    @property
    def optimized_bytes(self) -> int:
        return sum(result.optimized_size for result in self.results if result.ok)

    @property
    def savings_percent(self) -> float:
        if not self.original_bytes:
            return 0.0
        return percent_saved(self.original_bytes, self.optimized_bytes)


@dataclass
class CostQuote:
    """Upload price for a byte count, expressed in winc."""

    byte_count: int
    winc: int

    @property
    def credits(self) -> Decimal:
        return winc_to_credits(self.winc)


@dataclass
class UploadedFile:
    file_name: str
    url: str
    id: str

    def to_dict(self) -> Dict[str, str]:
        return {"fileName": self.file_name, "url": self.url, "id": self.id}


@dataclass
class UploadResults:
    """Persisted summary of one folder upload."""

    manifest_id: str
    folder_url: str
    uploaded_at: str
    files: List[UploadedFile]
    total_files: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        total = self.total_files if self.total_files is not None else len(self.files)
        return {
            "manifestId": self.manifest_id,
            "folderUrl": self.folder_url,
            "uploadedAt": self.uploaded_at,
            "totalFiles": total,
            "files": [item.to_dict() for item in self.files],
        }
