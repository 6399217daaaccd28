"""
Auth Client
===========

High-level SDK entry point for the auth service.

Endpoints used:
---------------
- POST /login, POST /signup: credential flows
- POST /token/refresh: refresh (path configurable, called directly through
  the transport so it is never intercepted by the gateway)
- POST /token/validate, GET /health
- GET /oauth/{provider}/auth, POST /oauth/login, POST /oauth/signup

Every call goes through a RequestGateway, so an expired access token is
refreshed once and the call replayed transparently.

Usage:
------
    async with AuthClient("https://auth.example.com/api") as client:
        await client.login(UserCredentials(username="ada", password="..."))
        response = await client.request("GET", "/me")
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .auth.storage import TokenStore, create_token_store
from .auth.tokens import extract_tokens, is_token_expired
from .config import ClientSettings, get_settings
from .errors import AuthClientError, ConfigurationError
from .gateway import HttpxTransport, RequestDescriptor, RequestGateway
from .models import (
    AuthTokens,
    LoginResponse,
    OAuthAuthResponse,
    OAuthCallbackParams,
    OAuthSignupResponse,
    SignupResponse,
    TokenValidationResponse,
    UserCredentials,
)

logger = logging.getLogger(__name__)


class AuthClient:
    """
    Core authentication client for login, signup, OAuth, token refresh
    and validation.

    Args:
        base_url: Auth service base URL (falls back to the http_client's
                  base URL, then to AUTH_BASE_URL)
        settings: Client settings (defaults to get_settings())
        enable_auto_refresh: Override AUTH_ENABLE_AUTO_REFRESH
        token_store: Override the store selected by AUTH_TOKEN_STORAGE
        http_client: Pre-configured httpx.AsyncClient; not closed by aclose().
                     Its base URL is filled in when it has none.

    Raises:
        ConfigurationError: If no base URL can be determined, or base_url
            conflicts with the http_client's base URL
    """

    extract_tokens = staticmethod(extract_tokens)
    is_token_expired = staticmethod(is_token_expired)

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        settings: Optional[ClientSettings] = None,
        enable_auto_refresh: Optional[bool] = None,
        token_store: Optional[TokenStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()

        base = base_url
        if not base and http_client is not None and str(http_client.base_url):
            base = str(http_client.base_url)
        if not base:
            base = self.settings.base_url_str
        if not base:
            raise ConfigurationError("Base URL is required for AuthClient initialization.")
        self.base_url = base.rstrip("/")

        if enable_auto_refresh is None:
            enable_auto_refresh = self.settings.AUTH_ENABLE_AUTO_REFRESH

        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.settings.AUTH_TIMEOUT_SECONDS),
            )
        elif not str(http_client.base_url):
            http_client.base_url = self.base_url
        elif str(http_client.base_url).rstrip("/") != self.base_url:
            raise ConfigurationError(
                f"base_url {self.base_url!r} conflicts with the http_client base URL "
                f"{str(http_client.base_url)!r}"
            )
        self._http_client = http_client

        self._transport = HttpxTransport(http_client)
        self.gateway = RequestGateway(
            self._transport,
            self._refresh_token_flow,
            enable_auto_refresh=enable_auto_refresh,
            token_store=token_store if token_store is not None else create_token_store(self.settings),
        )

        logger.info(
            "AuthClient initialized",
            extra={"base_url": self.base_url, "auto_refresh": enable_auto_refresh},
        )

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    # =========================================================================
    # Token accessors
    # =========================================================================

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        self.gateway.set_tokens(access_token, refresh_token)

    def clear_tokens(self) -> None:
        self.gateway.clear_tokens()

    def get_access_token(self) -> Optional[str]:
        return self.gateway.get_access_token()

    def get_refresh_token(self) -> Optional[str]:
        return self.gateway.get_refresh_token()

    def is_authenticated(self) -> bool:
        return self.gateway.is_authenticated()

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """
        Send an authenticated request through the gateway.

        The response is returned as-is for every status except a 401 the
        gateway could not recover from.
        """
        return await self.gateway.send(
            RequestDescriptor(
                method=method.upper(),
                url=url,
                headers=dict(headers or {}),
                params=params,
                json=json,
                content=content,
            )
        )

    async def _call(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    async def _refresh_token_flow(self, refresh_token: str) -> AuthTokens:
        """Exchange a refresh token for a new token pair."""
        try:
            response = await self._transport.dispatch(
                RequestDescriptor(
                    method="POST",
                    url=self.settings.AUTH_REFRESH_PATH,
                    json={"refresh_token": refresh_token},
                )
            )
            response.raise_for_status()
            tokens = AuthTokens.model_validate(response.json())
        except Exception as e:
            logger.error(f"Token refresh API call failed: {e}")
            raise
        logger.info("Token refresh API call successful")
        return tokens

    # =========================================================================
    # Credential flows
    # =========================================================================

    async def login(self, credentials: UserCredentials) -> LoginResponse:
        logger.info("Login requested", extra={"username": credentials.username})
        try:
            response = await self._call("POST", "/login", json=credentials.model_dump())
            result = LoginResponse.model_validate(response.json())
        except Exception as e:
            logger.error(f"Login failed: {e}", extra={"username": credentials.username})
            raise
        self.set_tokens(result.access_token, result.refresh_token)
        logger.info("Login successful", extra={"username": credentials.username})
        return result

    async def signup(self, credentials: UserCredentials) -> SignupResponse:
        logger.info("Signup requested", extra={"username": credentials.username})
        try:
            response = await self._call("POST", "/signup", json=credentials.model_dump())
            result = SignupResponse.model_validate(response.json())
        except Exception as e:
            logger.error(f"Signup failed: {e}", extra={"username": credentials.username})
            raise
        logger.info("Signup successful", extra={"username": credentials.username})
        return result

    async def validate_token(self, token: str) -> TokenValidationResponse:
        response = await self._call("POST", "/token/validate", json={"token": token})
        return TokenValidationResponse.model_validate(response.json())

    async def health_check(self) -> Any:
        response = await self._call("GET", "/health")
        return response.json()

    # =========================================================================
    # OAuth flows
    # =========================================================================

    async def generate_oauth_auth_url(self, provider: str, state: str, scopes: List[str]) -> str:
        """
        Ask the auth service for the provider's authorization URL.

        Raises:
            AuthClientError: If the response carries no auth_url
        """
        response = await self._call(
            "GET",
            f"/oauth/{provider}/auth",
            params={"state": state, "scopes": " ".join(scopes)},
        )
        result = OAuthAuthResponse.model_validate(response.json())
        if not result.auth_url:
            logger.error("Invalid response from OAuth auth endpoint", extra={"provider": provider})
            raise AuthClientError("Invalid response from OAuth auth endpoint")
        return result.auth_url

    async def oauth_login_callback(self, provider: str, params: OAuthCallbackParams) -> LoginResponse:
        try:
            response = await self._call(
                "POST",
                "/oauth/login",
                json={"provider": provider, "code": params.code, "state": params.state},
            )
            result = LoginResponse.model_validate(response.json())
        except Exception as e:
            logger.error(f"OAuth login failed: {e}", extra={"provider": provider})
            raise
        self.set_tokens(result.access_token, result.refresh_token)
        logger.info("OAuth login successful", extra={"provider": provider})
        return result

    async def oauth_signup_callback(
        self, provider: str, params: OAuthCallbackParams
    ) -> OAuthSignupResponse:
        try:
            response = await self._call(
                "POST",
                "/oauth/signup",
                json={"provider": provider, "code": params.code, "state": params.state},
            )
            result = OAuthSignupResponse.model_validate(response.json())
        except Exception as e:
            logger.error(f"OAuth signup failed: {e}", extra={"provider": provider})
            raise
        self.set_tokens(result.access_token, result.refresh_token)
        logger.info("OAuth signup successful", extra={"provider": provider})
        return result
