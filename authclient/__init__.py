"""
authclient
==========

Async Python client SDK for the auth service: credential login/signup,
OAuth2 authorization-code and fragment flows, token storage, and automatic
401-triggered token refresh with single-flight coordination.

Main Components:
----------------
- client.py: AuthClient, the high-level entry point
- gateway/: RequestGateway (bearer injection, refresh coordination, replay)
- auth/: token utilities, token stores, OAuth helpers
- config.py: ClientSettings loaded from the environment
- errors.py: exception hierarchy

Usage:
------
    from authclient import AuthClient, UserCredentials

    async with AuthClient("https://auth.example.com/api") as client:
        await client.login(UserCredentials(username="ada", password="secret"))
"""

from .client import AuthClient
from .config import ClientSettings, get_settings
from .errors import (
    AuthClientError,
    AuthenticationRequiredError,
    ConfigurationError,
    UnauthorizedError,
)
from .gateway import HttpxTransport, RefreshState, RequestDescriptor, RequestGateway
from .logging_config import setup_logging
from .models import (
    AuthTokens,
    AuthUser,
    LoginResponse,
    OAuth2FragmentResult,
    OAuthCallbackParams,
    OAuthCallbackResult,
    OAuthSignupResponse,
    SignupResponse,
    TokenValidationResponse,
    UserCredentials,
)

__version__ = "0.1.0"

__all__ = [
    "AuthClient",
    "ClientSettings",
    "get_settings",
    "AuthClientError",
    "AuthenticationRequiredError",
    "ConfigurationError",
    "UnauthorizedError",
    "HttpxTransport",
    "RefreshState",
    "RequestDescriptor",
    "RequestGateway",
    "setup_logging",
    "AuthTokens",
    "AuthUser",
    "LoginResponse",
    "OAuth2FragmentResult",
    "OAuthCallbackParams",
    "OAuthCallbackResult",
    "OAuthSignupResponse",
    "SignupResponse",
    "TokenValidationResponse",
    "UserCredentials",
]
