"""Custom exceptions for pysmartme.

Every error carries a ``kind`` discriminator so callers can branch on the
failure class without importing each exception type.
"""

from __future__ import annotations


class SmartMeError(Exception):
    """Base exception for all smart-me errors."""

    kind = "error"


class ConfigurationError(SmartMeError):
    """Exception raised when credentials are missing, before any request is made."""

    kind = "configuration"


class AuthenticationError(SmartMeError):
    """Exception raised for 401 responses."""

    kind = "authentication"
    status = 401


class AuthorizationError(SmartMeError):
    """Exception raised for 403 responses."""

    kind = "authorization"
    status = 403


class NotFoundError(SmartMeError):
    """Exception raised for 404 responses."""

    kind = "not_found"
    status = 404


class RateLimitError(SmartMeError):
    """Exception raised when the API rate limit is exceeded.

    Requests are never retried automatically; the caller decides when to try again.

    Attributes:
        retry_after: Optional number of seconds the server asked us to wait.
    """

    kind = "rate_limit"
    status = 429

    def __init__(self, message: str = "", retry_after: int | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            message: Error message.
            retry_after: Optional number of seconds to wait before retrying.
        """
        super().__init__(message)
        self.retry_after = retry_after


class ApiError(SmartMeError):
    """Exception raised for any other non-2xx response.

    Attributes:
        status: HTTP status code returned by the API.
        message: Best-effort message extracted from the response body.
    """

    kind = "api"

    def __init__(self, status: int, message: str = "") -> None:
        """Initialize ApiError.

        Args:
            status: HTTP status code.
            message: Message extracted from the response body.
        """
        super().__init__(f"API Error ({status}): {message}")
        self.status = status
        self.message = message


class NetworkError(SmartMeError):
    """Exception raised when no response was received (connection failure or timeout)."""

    kind = "network"
