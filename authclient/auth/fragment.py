"""
OAuth2 fragment handling.

In the fragment flow the auth service finishes the provider dance itself and
redirects back with the tokens in the URL fragment:

    https://app.example.com/#access_token=...&refresh_token=...&user_id=...

or with ``error`` / ``error_description`` on failure.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlsplit, urlunsplit

from ..models import AuthTokens, OAuth2FragmentResult

logger = logging.getLogger(__name__)


def _fragment(url: str) -> str:
    return urlsplit(url).fragment


class OAuth2FragmentHandler:
    """
    Extracts tokens from a redirect URL fragment.

    Remembers the last fragment it processed so a redirect handled twice
    (e.g. a re-rendered page) does not yield the same tokens twice.
    """

    def __init__(self) -> None:
        self._has_processed = False
        self._current_fragment = ""

    def is_oauth2_fragment(self, url: str) -> bool:
        params = parse_qs(_fragment(url), keep_blank_values=True)
        return "access_token" in params or "error" in params

    def reset(self) -> None:
        self._has_processed = False
        self._current_fragment = ""

    def process_fragment(self, url: str) -> OAuth2FragmentResult:
        fragment = _fragment(url)

        if self._has_processed and self._current_fragment == fragment:
            logger.info("Fragment already processed, skipping")
            return OAuth2FragmentResult(
                success=False,
                error="already_processed",
                error_description="This OAuth2 fragment has already been processed",
            )

        self._current_fragment = fragment
        self._has_processed = True

        query = parse_qs(fragment, keep_blank_values=True)
        params = {key: values[0] for key, values in query.items()}

        if "error" in params:
            error = params["error"] or "Unknown OAuth error"
            description = params.get("error_description") or "No description provided"
            logger.warning(
                f"OAuth2 error in fragment: {error}",
                extra={"error_description": description},
            )
            return OAuth2FragmentResult(success=False, error=error, error_description=description)

        access_token = params.get("access_token")
        refresh_token = params.get("refresh_token")
        user_id = params.get("user_id")

        if not access_token or not refresh_token or not user_id:
            logger.error("Missing required authentication parameters in fragment")
            return OAuth2FragmentResult(
                success=False,
                error="incomplete_auth_data",
                error_description="Missing required authentication parameters",
            )

        return OAuth2FragmentResult(
            success=True,
            tokens=AuthTokens(
                access_token=access_token,
                refresh_token=refresh_token,
                user_id=user_id,
                token_type=params.get("token_type") or "Bearer",
                expires_in=_parse_expires_in(params.get("expires_in")),
            ),
        )

    def clear_fragment(self, url: str) -> str:
        """Return ``url`` without its fragment and reset the processing state."""
        parts = urlsplit(url)
        self.reset()
        return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))

    def process_and_clear(self, url: str) -> Tuple[OAuth2FragmentResult, str]:
        result = self.process_fragment(url)
        return result, self.clear_fragment(url)


def _parse_expires_in(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def is_oauth2_callback(url: str) -> bool:
    """Check whether a URL carries OAuth2 fragment parameters."""
    return OAuth2FragmentHandler().is_oauth2_fragment(url)


def extract_oauth2_tokens(url: str) -> OAuth2FragmentResult:
    """One-shot fragment extraction with a fresh handler."""
    result, _ = OAuth2FragmentHandler().process_and_clear(url)
    return result
