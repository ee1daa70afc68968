"""Error types raised and reported by record operations."""

from __future__ import annotations


class RecordSyncError(Exception):
    """Base class for every error surfaced by a record operation."""


class NetworkError(RecordSyncError):
    """Transport failure or timeout. Safe to retry; never retried automatically."""


class ServerError(RecordSyncError):
    """The backend answered but rejected the request."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class ValidationError(RecordSyncError):
    """Malformed class name or field key."""


class NotSavedError(RecordSyncError):
    """Operation needs an object id but the record was never saved."""


class InvalidStateError(RecordSyncError):
    """Contradictory identity assignment or use of a deleted record."""


class CircularReferenceError(RecordSyncError):
    """Unsaved records in a batch reference each other."""


class BatchSaveError(RecordSyncError):
    """One or more records in a batch save failed.

    ``errors`` pairs each failed record with the error it produced, in
    batch order.
    """

    def __init__(self, errors: list[tuple[object, Exception]]):
        self.errors = errors
        super().__init__(f"{len(errors)} record(s) failed to save")
