"""
Token utility functions.

Client-side inspection of JWT access tokens. Signatures are never verified
here: the auth service is the only party that can do that, and the results
are only used to decide when a refresh is worth attempting.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import jwt
from jwt.exceptions import InvalidTokenError

from ..models import AuthTokens, LoginResponse, OAuthSignupResponse

logger = logging.getLogger(__name__)


def is_token_expired(exp: Union[int, float]) -> bool:
    """
    Check whether a UNIX expiry timestamp lies in the past.

    Args:
        exp: Expiry timestamp in seconds

    Returns:
        True if the token is expired
    """
    now = int(time.time())
    expired = exp < now
    logger.debug("Checked token expiration", extra={"exp": exp, "now": now, "expired": expired})
    return expired


def extract_tokens(response: Union[LoginResponse, OAuthSignupResponse]) -> AuthTokens:
    """Pull the token pair out of a login or OAuth signup response."""
    return AuthTokens(
        access_token=response.access_token,
        refresh_token=response.refresh_token,
    )


def get_token_payload(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT payload without verifying its signature.

    Args:
        token: Encoded JWT

    Returns:
        Claims dictionary, or None if the token is malformed
    """
    if not token:
        return None
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except InvalidTokenError as e:
        logger.debug(f"Could not decode token payload: {e}")
        return None


def get_token_expiration(token: str) -> Optional[datetime]:
    """
    Extract the expiry of a JWT as an aware UTC datetime.

    Returns:
        Expiry datetime, or None if the token has no usable 'exp' claim
    """
    payload = get_token_payload(token)
    if not payload or payload.get("exp") is None:
        return None
    try:
        return datetime.fromtimestamp(float(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def is_token_expiring(token: str, buffer_minutes: float = 5) -> bool:
    """
    Check whether a JWT is expired or will expire within the buffer.

    Tokens whose expiry cannot be read are treated as expiring.

    Args:
        token: Encoded JWT
        buffer_minutes: How far ahead to look

    Returns:
        True if the token should be refreshed
    """
    expiration = get_token_expiration(token)
    if expiration is None:
        return True

    remaining = expiration - datetime.now(timezone.utc)
    return remaining <= timedelta(minutes=buffer_minutes)
