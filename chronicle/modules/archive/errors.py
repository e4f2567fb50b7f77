"""Archive error taxonomy and the Outcome result type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class ArchiveError(Exception):
    """Base class for every archive failure."""


class InvalidReference(ArchiveError):
    """The source reference is not an absolute URL."""


class DownloadFailed(ArchiveError):
    """Fetching the image bytes failed.

    ``reason`` is one of ``timeout``, ``network``, ``http_status`` or
    ``empty_body``.  The underlying exception, if any, is chained as
    ``__cause__``.
    """

    def __init__(self, message: str, reason: str = "network"):
        super().__init__(message)
        self.reason = reason


class StorageFailure(ArchiveError):
    """An OS-level error while creating, writing, listing or deleting."""


class AmbiguousMatch(ArchiveError):
    """A pattern matched several records where exactly one was required."""

    def __init__(self, pattern: str, matches: list[str]):
        super().__init__(
            f"'{pattern}' matches {len(matches)} images: {', '.join(matches)}"
        )
        self.pattern = pattern
        self.matches = matches


class NotFound(ArchiveError):
    """No record matches."""


@dataclass
class Outcome(Generic[T]):
    """A value plus the error that degraded it, if any.

    Best-effort operations never raise; they hand back the default value
    (empty list, ``False``, ``None``) with ``error`` set instead.
    """

    value: T
    error: ArchiveError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
