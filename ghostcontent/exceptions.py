"""Application-level exception types.

Convention:
- ``GhostContentError`` subclasses are raised by the ghost stores and carry
  enough context (folder, file, manifest path) for callers to branch on
  retry, alert or abort.  The HTTP layer maps each of them to a status code
  in ``ghostcontent/main.py``.
- ``InternalServerError``: for errors whose details must never reach clients.
  The global handler logs the full message at ERROR and returns a generic
  "Internal server error" (500) to the client.
- ``ValueError``: for validation errors that are safe to forward to clients
  (path traversal, empty file names).  The global ``ValueError`` handler
  returns ``str(exc)`` as the 422 detail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class GhostContentError(Exception):
    """Base class for ghost content store failures."""


class ContentNotFoundError(GhostContentError, LookupError):
    """Raised on read or delete of an absent or tombstoned file."""

    def __init__(self, folder: str, file: str) -> None:
        super().__init__(f"File {file!r} not found in folder {folder!r}")
        self.folder = folder
        self.file = file


class TransactionFailedError(GhostContentError):
    """Raised when a mutating transaction fails to commit or roll back.

    The underlying driver error is always chained as ``__cause__``.
    """

    def __init__(self, folder: str, file: str, operation: str) -> None:
        super().__init__(f"Failed to {operation} {file!r} in folder {folder!r}")
        self.folder = folder
        self.file = file
        self.operation = operation


class ManifestReadError(GhostContentError):
    """Raised when a known-revisions manifest exists but cannot be read."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Cannot read revisions manifest {path}")
        self.path = path


class ReconciliationError(GhostContentError):
    """Raised when folder registration fails for any other reason."""

    def __init__(self, folder: str) -> None:
        super().__init__(f"Failed to reconcile folder {folder!r}")
        self.folder = folder


class InternalServerError(Exception):
    """Raised for internal errors whose details must not be exposed to clients.

    The global exception handler in ``ghostcontent/main.py`` catches this, logs
    the full message server-side, and returns HTTP 500 with a generic
    ``"Internal server error"`` detail.
    """
