"""
Exceptions raised by the auth client SDK.

Transport failures are not wrapped: httpx.TransportError subclasses reach
the caller unchanged, and so does whatever the refresh endpoint raised.
"""

from typing import Optional

import httpx


class AuthClientError(Exception):
    """Base exception for auth client errors"""
    pass


class ConfigurationError(AuthClientError):
    """Client constructed with missing or invalid settings"""
    pass


class AuthenticationRequiredError(AuthClientError):
    """
    Raised when a 401 cannot be recovered because no refresh token is held.

    Every request queued behind the failed refresh cycle receives one of
    these as well.
    """

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class UnauthorizedError(AuthClientError):
    """
    Terminal 401 from the auth service.

    Raised when a request that was already replayed once after a refresh
    fails again, or when automatic refresh is disabled.
    """

    def __init__(self, message: str, response: Optional[httpx.Response] = None):
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code if self.response is not None else 401


__all__ = [
    "AuthClientError",
    "ConfigurationError",
    "AuthenticationRequiredError",
    "UnauthorizedError",
]
