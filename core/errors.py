"""Error types shared by the fetch pipeline and its callers."""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for catalog browsing errors."""


class RemoteUnavailable(GalleryError):
    """A remote select failed (network, HTTP status, timeout or bad payload).

    Attributes:
        operation: Name of the select that failed, e.g. "select_coins".
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class MalformedFilter(GalleryError, ValueError):
    """A FilterSpec reached the fetch boundary in an inconsistent state."""
