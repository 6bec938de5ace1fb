"""Utility helpers for file naming and size arithmetic."""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal
from typing import Optional

from .config import WINC_PER_CREDIT

EXTENSION_PATTERN = re.compile(r"\.[^.]+$")
CREDIT_PLACES = Decimal("0.000001")


def base_name(file_name: str) -> str:
    """Strip only the final extension segment: ``cat.final.jpg`` -> ``cat.final``."""
    return EXTENSION_PATTERN.sub("", file_name)


def format_kb(size: int) -> str:
    return f"{size / 1024:.2f}"


def format_mb(size: int) -> str:
    return f"{size / (1024 * 1024):.2f}"


def percent_saved(original_size: int, optimized_size: int) -> float:
    """Return ``(1 - optimized/original) * 100``."""
    return (1 - optimized_size / original_size) * 100


def format_percent(value: float) -> str:
    return f"{value:.2f}"


def winc_to_credits(winc: int) -> Decimal:
    return Decimal(int(winc)) / Decimal(WINC_PER_CREDIT)


def format_credits(credits: Decimal) -> str:
    return f"{credits.quantize(CREDIT_PLACES):f}"


def iso_timestamp(moment: Optional[dt.datetime] = None) -> str:
    """Render a UTC timestamp as ``2024-01-31T12:00:00.123Z``."""
    moment = moment or dt.datetime.now(dt.timezone.utc)
    moment = moment.astimezone(dt.timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def results_file_name(timestamp: str) -> str:
    return "upload-results-" + re.sub(r"[:.]", "-", timestamp) + ".json"
