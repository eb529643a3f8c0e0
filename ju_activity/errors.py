"""
Error taxonomy raised by the session store, the activity coordinator and the gateway.

Every error carries a human-readable message so callers can show it as-is.
"""
from __future__ import annotations


class ActivityClientError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Unauthenticated(ActivityClientError):
    """An operation needs a signed-in identity and there is none."""


class Forbidden(ActivityClientError):
    """The current identity's role may not perform the operation."""


class NotFound(ActivityClientError):
    """A referenced entity is absent from the local collections."""


class NotApproved(ActivityClientError):
    """Attendance was requested for a student without an approved application."""


class UnsupportedOperation(ActivityClientError):
    """The requested patch shape is not supported."""


class ConfigurationError(ActivityClientError):
    """Configuration values failed validation."""


class GatewayFailure(ActivityClientError):
    """
    Any failure reported by, or while reaching, the remote gateway.

    status is the HTTP status code, or 0 when the request never got a response.
    """

    def __init__(self, message: str, status: int = 0) -> None:
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message} (HTTP {self.status})" if self.status else self.message
