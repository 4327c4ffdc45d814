"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class ParleyError(Exception):
    """Base exception for parley."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(ParleyError):
    """Resource not found (or not owned by the caller)."""

    pass


class ValidationError(ParleyError):
    """Validation error."""

    pass


class AuthenticationError(ParleyError):
    """Authentication failed."""

    pass


class AuthorizationError(ParleyError):
    """Authorization failed."""

    pass


class CapacityExceededError(ParleyError):
    """A thread or session has reached its message ceiling."""

    pass


class GuestLimitExceeded(CapacityExceededError):
    """Guest session has used up its message allowance."""

    def __init__(self, limit: int):
        super().__init__(
            f"Guest message limit of {limit} reached. Please sign in to continue chatting.",
            details={"limit": limit},
        )
        self.limit = limit


class UnsupportedFileTypeError(ParleyError):
    """Uploaded file type cannot be analyzed."""

    pass


class PayloadTooLargeError(ParleyError):
    """Uploaded payload exceeds the configured size limit."""

    pass


# ===========================================
# Provider errors (absorbed by the gateway)
# ===========================================


class ProviderError(ParleyError):
    """Base class for upstream model provider failures."""

    pass


class ProviderUnavailable(ProviderError):
    """No credential is configured for the provider."""

    pass


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str):
        super().__init__(message, details={"status": status})
        self.status = status

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


class ProviderTransportError(ProviderError):
    """Network failure or timeout while talking to the provider."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message, details={"timed_out": timed_out})
        self.timed_out = timed_out
