"""Exceptions raised for failures that end a command."""

from __future__ import annotations

from typing import Optional


class UploaderError(Exception):
    """Base class for fatal workflow errors."""


class WalletError(UploaderError):
    pass


class InputDirectoryError(UploaderError):
    pass


class ResultsFileError(UploaderError):
    pass


class MetadataError(UploaderError):
    pass


class TurboError(UploaderError):
    """A Turbo service request failed."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
