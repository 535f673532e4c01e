"""Custom exception hierarchy for the HomeCare package."""

from __future__ import annotations

from typing import Sequence


class HomeCareError(Exception):
    """Base class for all HomeCare specific errors."""


class StorageError(HomeCareError):
    """Raised when the persisted state cannot be read or written."""


class ImportFileError(HomeCareError):
    """Raised when an uploaded state file is not a usable JSON document."""


class CollectionError(HomeCareError):
    """Raised when a record operation targets a section that is not a collection."""


class RecordNotFoundError(HomeCareError):
    """Raised when a record lookup by id fails."""


class RecordValidationError(HomeCareError):
    """Raised when a submitted record is missing required fields."""

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.missing = tuple(missing)


class SettingsError(HomeCareError):
    """Raised when a settings update names settings that do not exist."""

    def __init__(self, message: str, unknown: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.unknown = tuple(unknown)
