"""
OAuth authorization-code helpers.

This module handles:
- Generating and remembering the CSRF state for an authorization request
- Reading code/state/error back out of the redirect URL
- Exchanging the code through the auth service (OAuthCallbackHandler)
"""

import logging
import secrets
from typing import TYPE_CHECKING, Dict, Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit

from ..models import AuthUser, OAuthCallbackParams, OAuthCallbackResult
from .tokens import extract_tokens

if TYPE_CHECKING:
    from ..client import AuthClient

logger = logging.getLogger(__name__)


# =============================================================================
# State
# =============================================================================

def generate_oauth_state() -> str:
    """Generate an unguessable state value for OAuth CSRF protection."""
    return secrets.token_urlsafe(24)


class OAuthStateStore:
    """Remembers the state of the single authorization request in progress."""

    def __init__(self) -> None:
        self._state: Optional[str] = None

    def store(self, state: str) -> None:
        logger.debug("Storing OAuth state")
        self._state = state

    def get(self) -> Optional[str]:
        return self._state

    def clear(self) -> None:
        logger.debug("Clearing stored OAuth state")
        self._state = None

    def validate(self, received_state: Optional[str]) -> bool:
        """
        Check a state returned by the provider against the stored one.

        Returns:
            True only if a state is stored and both match
        """
        if not received_state or self._state is None:
            return False
        is_valid = secrets.compare_digest(received_state, self._state)
        if not is_valid:
            logger.warning("OAuth state mismatch")
        return is_valid


# =============================================================================
# Redirect URL parsing
# =============================================================================

def extract_oauth_params(url: str) -> Dict[str, Optional[str]]:
    """
    Extract OAuth callback parameters from a redirect URL's query string.

    Returns:
        Dict with 'code', 'state' and 'error' (None when absent)
    """
    query = parse_qs(urlsplit(url).query)
    return {
        "code": query.get("code", [None])[0],
        "state": query.get("state", [None])[0],
        "error": query.get("error", [None])[0],
    }


def is_oauth_callback(url: str) -> bool:
    """True if the URL looks like an authorization-code redirect."""
    parts = urlsplit(url)
    return "/auth/" in parts.path and "code=" in parts.query


def clean_oauth_url(url: str) -> str:
    """Strip path, query and fragment, keeping only the origin."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "", "", ""))


# =============================================================================
# Callback Handler
# =============================================================================

class OAuthCallbackHandler:
    """
    Framework-agnostic OAuth callback processing.

    The provider must be given explicitly; it is never guessed from the
    callback URL.

    Args:
        auth_client: Client used to exchange the authorization code
        state_store: Where the state of the pending request was stored
        provider: OAuth provider name (e.g., 'github', 'google')
    """

    def __init__(self, auth_client: "AuthClient", state_store: OAuthStateStore, provider: str):
        if not provider:
            raise ValueError("An OAuth provider is required")
        self.auth_client = auth_client
        self.state_store = state_store
        self.provider = provider

    def is_oauth_callback(self, url: str) -> bool:
        return is_oauth_callback(url)

    async def process_callback(self, url: str) -> OAuthCallbackResult:
        """
        Validate a redirect URL and exchange its code for tokens.

        Never raises for expected failures; they are reported in the result.
        """
        if not self.is_oauth_callback(url):
            return OAuthCallbackResult(success=False, error="Not an OAuth callback URL")

        params = extract_oauth_params(url)

        if params["error"]:
            return OAuthCallbackResult(success=False, error=f"OAuth error: {params['error']}")
        if not params["code"]:
            return OAuthCallbackResult(success=False, error="Authorization code not found")
        if not params["state"]:
            return OAuthCallbackResult(success=False, error="State parameter not found")
        if not self.state_store.validate(params["state"]):
            return OAuthCallbackResult(
                success=False,
                error="Invalid state parameter - possible CSRF attack",
            )

        self.state_store.clear()

        try:
            response = await self.auth_client.oauth_login_callback(
                self.provider,
                OAuthCallbackParams(code=params["code"], state=params["state"]),
            )
        except Exception as e:
            logger.error(
                f"OAuth callback exchange failed: {e}",
                extra={"provider": self.provider},
            )
            return OAuthCallbackResult(success=False, error=str(e) or "OAuth authentication failed")

        return OAuthCallbackResult(
            success=True,
            tokens=extract_tokens(response),
            user=AuthUser(id=response.id, identifier=response.identifier),
        )

    def clean_url(self, url: str) -> str:
        return clean_oauth_url(url)
