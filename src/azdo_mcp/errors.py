"""Exceptions raised by the Azure DevOps MCP server.

Every error carries a message meant to be shown to the calling agent as-is.
The server's call_tool turns any of these into an ``Error: ...`` text response.
"""
from typing import Optional


class AzureDevOpsError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(AzureDevOpsError):
    """Raised when tool arguments or payloads are malformed."""


class ProjectionError(InvalidInputError):
    """Raised when CSV projection is given neither an object nor an array."""


class SerializationError(AzureDevOpsError):
    """Raised when a response body cannot be decoded."""


class UpstreamError(AzureDevOpsError):
    """Raised when Azure DevOps answers with a non-success status.

    The backend's message text is preserved verbatim so callers can match on
    domain error names (e.g. ``CurrentIterationDoesNotExistException``).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"API error ({self.status_code}): {self.message}"
