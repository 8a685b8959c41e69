"""Exception hierarchy shared by the analysis pipeline and its collaborators."""

from typing import Optional


class SnapsiftError(Exception):
    """Base class for all snapsift errors."""


class DecodeError(SnapsiftError):
    """Raised when an image asset cannot be read or decoded."""


class OCRError(SnapsiftError):
    """Raised when the OCR engine fails on an image."""


class HashComputationError(SnapsiftError):
    """Raised when a fingerprint cannot be computed for an image."""


class PersistenceError(SnapsiftError):
    """Raised when a record cannot be written to or removed from the store."""

    def __init__(self, message: str, record_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class RecordNotFoundError(SnapsiftError):
    """Raised when a record id is not present in the store."""
