"""
Error kinds raised by the Glass client.

Library exceptions (googleapiclient HttpError, google-auth RefreshError,
socket timeouts) are translated into these at the transport boundary so
callers only need to catch GlassError subclasses.
"""
from __future__ import annotations

from typing import Optional


class GlassError(Exception):
    """Base class for all Glass client errors."""


class ConfigurationError(GlassError):
    """Raised when required settings (API keys, token file) are missing."""


class TokenRefreshError(GlassError):
    """Raised when the access token could not be refreshed.

    The stored refresh token is likely revoked; the user has to re-consent.
    """


class RemoteCallError(GlassError):
    """A single Mirror API call returned a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class MalformedResponseError(GlassError):
    """Response body was not valid JSON or lacked expected fields."""


class InvalidActionError(GlassError, ValueError):
    """Unknown action or resource name. Programmer error, never retried."""


class TransportTimeoutError(GlassError):
    """The underlying HTTP call timed out."""
