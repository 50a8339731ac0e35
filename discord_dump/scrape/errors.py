"""Error taxonomy for the scrape pipeline.

Every failure raised by the client, writer or pager carries an ``ErrorKind``
so callers can tell retryable conditions from fatal ones without looking at
message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    TRANSPORT = "transport"
    AUTHORIZATION = "authorization"
    RATE_LIMIT = "rate_limit"
    FILE_CONFLICT = "file_conflict"
    SERIALIZATION = "serialization"

    @property
    def retryable(self) -> bool:
        """Whether trying again later may succeed."""
        return self in (ErrorKind.TRANSPORT, ErrorKind.RATE_LIMIT)


class ScrapeError(Exception):
    """Base error for all classified scrape failures."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


class FileConflictError(ScrapeError):
    """Raised when an output file cannot be created or reopened safely."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.FILE_CONFLICT, message)


class SerializationError(ScrapeError):
    """Raised when a record cannot be encoded or a payload cannot be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.SERIALIZATION, message)


class CheckpointMismatchError(Exception):
    """Raised when the stored checkpoint belongs to a different guild."""

    def __init__(self, expected: int, found: int) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"Checkpoint is for guild {found}, but guild {expected} was requested"
        )
