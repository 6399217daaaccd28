"""
Data Models Module

Pydantic models for the payloads exchanged with the auth service and the
results handed back to SDK callers.

Models are organized by functional area:
- Token models (token pairs, validation responses)
- Credential flow models (login, signup)
- OAuth models (auth URL, callback parameters, signup responses)
- Result models (callback and fragment processing outcomes)

Response models ignore fields they do not know about, so newer service
versions keep working with older clients.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceModel(BaseModel):
    """Base for models parsed from auth service responses."""
    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Token Models
# ============================================================================

class AuthTokens(ServiceModel):
    """Access/refresh token pair plus optional OAuth2 metadata."""
    access_token: str = Field(..., description="Bearer access token")
    refresh_token: Optional[str] = Field(None, description="Refresh token, if the session is refreshable")
    user_id: Optional[str] = Field(None, description="User identifier (OAuth2 fragment flow)")
    token_type: Optional[str] = Field(None, description="Token type, usually 'Bearer'")
    expires_in: Optional[int] = Field(None, description="Access token lifetime in seconds")


class TokenClaims(ServiceModel):
    """Claims echoed back by the validation endpoint."""
    sub: str = Field(..., description="Subject (user identifier)")
    exp: int = Field(..., description="Expiry as a UNIX timestamp")


class TokenValidationResponse(ServiceModel):
    """Response from POST /token/validate."""
    valid: bool
    claims: Optional[TokenClaims] = None


# ============================================================================
# Credential Flow Models
# ============================================================================

class UserCredentials(BaseModel):
    """Username/password pair for /login and /signup."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupResponse(ServiceModel):
    id: str
    identifier: str


class LoginResponse(ServiceModel):
    id: str
    identifier: str
    access_token: str
    refresh_token: str


# ============================================================================
# OAuth Models
# ============================================================================

class OAuthAuthResponse(ServiceModel):
    """Response from GET /oauth/{provider}/auth."""
    auth_url: Optional[str] = None


class OAuthInfo(ServiceModel):
    """Identity details reported by the OAuth provider."""
    provider: str
    email: str
    name: str


class OAuthSignupResponse(ServiceModel):
    id: str
    access_token: str
    refresh_token: str
    oauth_info: OAuthInfo


class OAuthCallbackParams(BaseModel):
    """Authorization code and state returned to the redirect URI."""
    code: str
    state: str


class AuthUser(ServiceModel):
    id: str
    identifier: Optional[str] = None
    oauth_info: Optional[OAuthInfo] = None


# ============================================================================
# Result Models
# ============================================================================

class OAuthCallbackResult(BaseModel):
    """Outcome of processing an authorization-code callback URL."""
    success: bool
    tokens: Optional[AuthTokens] = None
    user: Optional[AuthUser] = None
    error: Optional[str] = None


class OAuth2FragmentResult(BaseModel):
    """Outcome of processing tokens delivered in a URL fragment."""
    success: bool
    tokens: Optional[AuthTokens] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
