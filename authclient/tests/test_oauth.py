"""
OAuth Tests

Tests state bookkeeping, redirect URL parsing, the authorization-code
callback handler and the token-fragment handler.
"""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from authclient.auth.fragment import OAuth2FragmentHandler, extract_oauth2_tokens, is_oauth2_callback
from authclient.auth.oauth import (
    OAuthCallbackHandler,
    OAuthStateStore,
    clean_oauth_url,
    extract_oauth_params,
    generate_oauth_state,
    is_oauth_callback,
)
from authclient.models import LoginResponse, OAuthCallbackParams


CALLBACK_URL = "https://app.example.com/auth/github/callback?code=abc123&state=s3cr3t"


# ============================================================================
# State
# ============================================================================

def test_generated_states_are_unique_and_url_safe():
    states = {generate_oauth_state() for _ in range(20)}

    assert len(states) == 20
    for state in states:
        assert len(state) >= 24
        assert all(c.isalnum() or c in "-_" for c in state)


def test_state_store_validates_matching_state():
    store = OAuthStateStore()
    store.store("s3cr3t")

    assert store.get() == "s3cr3t"
    assert store.validate("s3cr3t") is True
    assert store.validate("other") is False


def test_state_store_rejects_when_nothing_stored():
    store = OAuthStateStore()

    assert store.validate("anything") is False
    assert store.validate(None) is False


def test_state_store_clear():
    store = OAuthStateStore()
    store.store("s3cr3t")
    store.clear()

    assert store.get() is None
    assert store.validate("s3cr3t") is False


# ============================================================================
# Redirect URL Parsing
# ============================================================================

def test_extract_oauth_params():
    assert extract_oauth_params(CALLBACK_URL) == {"code": "abc123", "state": "s3cr3t", "error": None}
    assert extract_oauth_params("https://app.example.com/auth/cb?error=access_denied") == {
        "code": None,
        "state": None,
        "error": "access_denied",
    }


def test_is_oauth_callback():
    assert is_oauth_callback(CALLBACK_URL) is True
    assert is_oauth_callback("https://app.example.com/auth/github/callback") is False
    assert is_oauth_callback("https://app.example.com/home?code=abc") is False


def test_clean_oauth_url_keeps_origin_only():
    assert clean_oauth_url(CALLBACK_URL) == "https://app.example.com"


# ============================================================================
# Callback Handler
# ============================================================================

@pytest.fixture
def state_store():
    store = OAuthStateStore()
    store.store("s3cr3t")
    return store


@pytest.fixture
def mock_auth_client():
    client = Mock()
    client.oauth_login_callback = AsyncMock(
        return_value=LoginResponse(
            id="user-1",
            identifier="ada@example.com",
            access_token="A1",
            refresh_token="R1",
        )
    )
    return client


class TestOAuthCallbackHandler:
    """Test suite for authorization-code callback processing"""

    def test_provider_is_required(self, mock_auth_client, state_store):
        with pytest.raises(ValueError):
            OAuthCallbackHandler(mock_auth_client, state_store, "")

    @pytest.mark.asyncio
    async def test_successful_callback(self, mock_auth_client, state_store):
        handler = OAuthCallbackHandler(mock_auth_client, state_store, "github")

        result = await handler.process_callback(CALLBACK_URL)

        assert result.success is True
        assert result.tokens.access_token == "A1"
        assert result.tokens.refresh_token == "R1"
        assert result.user.id == "user-1"
        assert result.user.identifier == "ada@example.com"
        assert state_store.get() is None
        mock_auth_client.oauth_login_callback.assert_awaited_once_with(
            "github", OAuthCallbackParams(code="abc123", state="s3cr3t")
        )

    @pytest.mark.asyncio
    async def test_provider_comes_from_constructor_not_url(self, mock_auth_client, state_store):
        handler = OAuthCallbackHandler(mock_auth_client, state_store, "microsoft")

        await handler.process_callback(CALLBACK_URL)

        assert mock_auth_client.oauth_login_callback.await_args.args[0] == "microsoft"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url, error",
        [
            ("https://app.example.com/home", "Not an OAuth callback URL"),
            ("https://app.example.com/auth/cb?code=x&error=access_denied", "OAuth error: access_denied"),
            ("https://app.example.com/auth/cb?code=&state=s3cr3t", "Authorization code not found"),
            ("https://app.example.com/auth/cb?code=abc", "State parameter not found"),
            (
                "https://app.example.com/auth/cb?code=abc&state=forged",
                "Invalid state parameter - possible CSRF attack",
            ),
        ],
    )
    async def test_rejected_callbacks(self, mock_auth_client, state_store, url, error):
        handler = OAuthCallbackHandler(mock_auth_client, state_store, "github")

        result = await handler.process_callback(url)

        assert result.success is False
        assert result.error == error
        mock_auth_client.oauth_login_callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_exchange_failure_is_reported(self, mock_auth_client, state_store):
        request = httpx.Request("POST", "http://auth.test/oauth/login")
        mock_auth_client.oauth_login_callback.side_effect = httpx.HTTPStatusError(
            "Server error '502 Bad Gateway'",
            request=request,
            response=httpx.Response(502, request=request),
        )
        handler = OAuthCallbackHandler(mock_auth_client, state_store, "github")

        result = await handler.process_callback(CALLBACK_URL)

        assert result.success is False
        assert "502" in result.error

    def test_clean_url(self, mock_auth_client, state_store):
        handler = OAuthCallbackHandler(mock_auth_client, state_store, "github")
        assert handler.clean_url(CALLBACK_URL) == "https://app.example.com"


# ============================================================================
# Fragment Handler
# ============================================================================

FRAGMENT_URL = (
    "https://app.example.com/dashboard?tab=1#access_token=A1&refresh_token=R1"
    "&user_id=user-1&token_type=Bearer&expires_in=3600"
)


class TestOAuth2FragmentHandler:
    """Test suite for tokens delivered in the URL fragment"""

    def test_detects_fragment(self):
        handler = OAuth2FragmentHandler()

        assert handler.is_oauth2_fragment(FRAGMENT_URL) is True
        assert handler.is_oauth2_fragment("https://app.example.com/#error=denied") is True
        assert handler.is_oauth2_fragment("https://app.example.com/#section-2") is False
        assert is_oauth2_callback(FRAGMENT_URL) is True

    def test_extracts_tokens(self):
        result = OAuth2FragmentHandler().process_fragment(FRAGMENT_URL)

        assert result.success is True
        assert result.tokens.access_token == "A1"
        assert result.tokens.refresh_token == "R1"
        assert result.tokens.user_id == "user-1"
        assert result.tokens.token_type == "Bearer"
        assert result.tokens.expires_in == 3600

    def test_token_type_defaults_to_bearer(self):
        result = OAuth2FragmentHandler().process_fragment(
            "https://app.example.com/#access_token=A1&refresh_token=R1&user_id=u"
        )

        assert result.tokens.token_type == "Bearer"
        assert result.tokens.expires_in is None

    def test_error_fragment(self):
        result = OAuth2FragmentHandler().process_fragment(
            "https://app.example.com/#error=access_denied&error_description=User+cancelled"
        )

        assert result.success is False
        assert result.error == "access_denied"
        assert result.error_description == "User cancelled"

    def test_error_fragment_without_description(self):
        result = OAuth2FragmentHandler().process_fragment("https://app.example.com/#error=")

        assert result.error == "Unknown OAuth error"
        assert result.error_description == "No description provided"

    def test_incomplete_fragment(self):
        result = OAuth2FragmentHandler().process_fragment(
            "https://app.example.com/#access_token=A1&user_id=u"
        )

        assert result.success is False
        assert result.error == "incomplete_auth_data"

    def test_same_fragment_is_processed_once(self):
        handler = OAuth2FragmentHandler()

        assert handler.process_fragment(FRAGMENT_URL).success is True
        second = handler.process_fragment(FRAGMENT_URL)

        assert second.success is False
        assert second.error == "already_processed"

        handler.reset()
        assert handler.process_fragment(FRAGMENT_URL).success is True

    def test_process_and_clear(self):
        handler = OAuth2FragmentHandler()

        result, cleaned = handler.process_and_clear(FRAGMENT_URL)

        assert result.success is True
        assert cleaned == "https://app.example.com/dashboard?tab=1"
        # Clearing resets the handler, so the same fragment is accepted again
        assert handler.process_fragment(FRAGMENT_URL).success is True

    def test_extract_oauth2_tokens(self):
        assert extract_oauth2_tokens(FRAGMENT_URL).tokens.access_token == "A1"
