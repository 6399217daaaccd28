"""
Authentication helpers: token inspection, token storage, and the OAuth
authorization-code and fragment flows.
"""

from .fragment import OAuth2FragmentHandler, extract_oauth2_tokens, is_oauth2_callback
from .oauth import (
    OAuthCallbackHandler,
    OAuthStateStore,
    clean_oauth_url,
    extract_oauth_params,
    generate_oauth_state,
    is_oauth_callback,
)
from .storage import (
    FileTokenStore,
    MemoryTokenStore,
    TokenStore,
    create_token_store,
    format_tokens_for_storage,
    parse_tokens_from_storage,
)
from .tokens import (
    extract_tokens,
    get_token_expiration,
    get_token_payload,
    is_token_expired,
    is_token_expiring,
)

__all__ = [
    "OAuth2FragmentHandler",
    "extract_oauth2_tokens",
    "is_oauth2_callback",
    "OAuthCallbackHandler",
    "OAuthStateStore",
    "clean_oauth_url",
    "extract_oauth_params",
    "generate_oauth_state",
    "is_oauth_callback",
    "FileTokenStore",
    "MemoryTokenStore",
    "TokenStore",
    "create_token_store",
    "format_tokens_for_storage",
    "parse_tokens_from_storage",
    "extract_tokens",
    "get_token_expiration",
    "get_token_payload",
    "is_token_expired",
    "is_token_expiring",
]
