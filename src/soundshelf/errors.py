# Error taxonomy shared by storage backends, the proxy and the HTTP layer.
# Created: 2026-10-19

from __future__ import annotations


class StorageError(Exception):
    """Base class for failures that map onto a structured HTTP error."""

    http_status: int = 500
    code: str = "storage_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class BackendUnavailable(StorageError):
    """Upstream listing/fetch failed or returned a non-success status."""

    http_status = 500
    code = "backend_unavailable"


class NotFound(StorageError):
    """Key does not resolve to content."""

    http_status = 404
    code = "not_found"


class InvalidInput(StorageError):
    """Key is unusable even after traversal sequences were stripped."""

    http_status = 400
    code = "invalid_input"


class UpstreamTimeout(StorageError):
    """Outbound fetch exceeded the fixed timeout window."""

    http_status = 504
    code = "timeout"


class ClientAborted(StorageError):
    """Client went away mid-stream. Logged, never sent."""

    http_status = 499
    code = "client_aborted"


class ConfigurationError(Exception):
    """Raised at startup when a backend cannot be built from settings."""
