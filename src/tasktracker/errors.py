"""Tracker error kinds.

Lookup misses and validation failures are kept distinct from infrastructure
errors so a caller can decide whether a retry makes sense:

  NotFoundError     — no record for the id (never worth retrying)
  ValidationError   — bad id, empty title/description, dimension mismatch
  StorageError      — filesystem failure (possibly transient)
  ProviderError     — embedding call failed or timed out (possibly transient)

The tracker never retries internally.
"""

from __future__ import annotations

from pathlib import Path


class TrackerError(Exception):
    """Base class for every error raised by tasktracker."""


class NotFoundError(TrackerError):
    """Raised when a task id is absent from both the active and done locations."""


class ValidationError(TrackerError, ValueError):
    """Raised for invalid input or corrupt stored content."""


class DimensionMismatchError(ValidationError):
    """Raised when a stored vector and the query vector differ in length."""


class StorageError(TrackerError):
    """Raised when the task directory cannot be read or written."""


class CodecError(StorageError):
    """Raised when a task file is not a decodable task document."""


class StaleCopyError(StorageError):
    """Raised when a relocated task was written but its old file could not be removed.

    The record is readable at its new location; *path* is the stale copy left behind.
    """

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class ProviderError(TrackerError):
    """Raised when the embedding provider fails, including timeouts."""


def rewrap(exc: TrackerError, context: str) -> TrackerError:
    """Return a new error of the same kind as *exc* with *context* prepended.

    Keeps ``StaleCopyError.path`` so callers can still locate the stale file.
    """
    message = f"{context}: {exc}"
    if isinstance(exc, StaleCopyError):
        return StaleCopyError(message, exc.path)
    return type(exc)(message)
