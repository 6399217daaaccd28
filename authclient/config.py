"""
Configuration module for the auth client SDK.

This module uses Pydantic Settings to load and validate environment variables
for the auth service location, automatic token refresh, token persistence
and logging.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


TOKEN_STORAGE_KINDS = ("memory", "file")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ClientSettings(BaseSettings):
    """
    Client settings loaded from environment variables.

    Everything here can also be overridden per instance through the
    AuthClient constructor.
    """

    # =========================================================================
    # Auth Service
    # =========================================================================

    AUTH_BASE_URL: Optional[str] = Field(
        None,
        description="Auth service base URL (e.g., https://auth.example.com/api)",
    )

    AUTH_REFRESH_PATH: str = Field(
        default="/token/refresh",
        description="Path of the refresh endpoint, relative to AUTH_BASE_URL",
        min_length=1,
    )

    AUTH_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Timeout applied by the HTTP transport to every call",
        gt=0,
        le=600,
    )

    # =========================================================================
    # Token Handling
    # =========================================================================

    AUTH_ENABLE_AUTO_REFRESH: bool = Field(
        default=True,
        description="Refresh the access token automatically on 401 responses",
    )

    AUTH_TOKEN_STORAGE: str = Field(
        default="memory",
        description="Where tokens are kept: 'memory' or 'file'",
    )

    AUTH_TOKEN_FILE: Path = Field(
        default=Path("~/.authclient/tokens.json"),
        description="JSON file used when AUTH_TOKEN_STORAGE is 'file'",
    )

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level for the authclient loggers",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def base_url_str(self) -> Optional[str]:
        """Base URL without trailing slash, or None when not configured."""
        if not self.AUTH_BASE_URL:
            return None
        return self.AUTH_BASE_URL.rstrip("/")

    @property
    def token_file_path(self) -> Path:
        return self.AUTH_TOKEN_FILE.expanduser()

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("AUTH_BASE_URL")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """
        Validate that the base URL uses http or https.

        Args:
            v: Raw base URL

        Returns:
            Stripped URL, or None when empty

        Raises:
            ValueError: If the scheme is missing or unsupported
        """
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid AUTH_BASE_URL: '{v}'. Expected an http:// or https:// URL"
            )
        return v

    @field_validator("AUTH_TOKEN_STORAGE")
    @classmethod
    def validate_token_storage(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in TOKEN_STORAGE_KINDS:
            raise ValueError(
                f"AUTH_TOKEN_STORAGE must be one of {list(TOKEN_STORAGE_KINDS)}, got: {v}"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {list(LOG_LEVELS)}, got: {v}")
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> ClientSettings:
    """
    Get or create a singleton ClientSettings instance.

    Cached so the environment is read once per process. Call
    ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        ClientSettings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable holds an invalid value.
    """
    return ClientSettings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Optional[ClientSettings] = None) -> dict:
    """
    Validate client configuration and return a status report.

    Returns:
        Dictionary with validation status, errors and warnings.

    Example:
        >>> status = validate_configuration()
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    settings = settings or get_settings()
    errors = []
    warnings = []

    if not settings.base_url_str:
        errors.append("AUTH_BASE_URL is not set")
    elif settings.base_url_str.startswith("http://") and not any(
        host in settings.base_url_str for host in ("localhost", "127.0.0.1")
    ):
        warnings.append("AUTH_BASE_URL uses plain http; tokens travel unencrypted")

    if not settings.AUTH_ENABLE_AUTO_REFRESH:
        warnings.append("Automatic token refresh is disabled; every 401 is terminal")

    if settings.AUTH_TOKEN_STORAGE == "file":
        parent = settings.token_file_path.parent
        if parent.exists() and not parent.is_dir():
            errors.append(f"AUTH_TOKEN_FILE parent is not a directory: {parent}")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "token_storage": settings.AUTH_TOKEN_STORAGE,
        "auto_refresh": settings.AUTH_ENABLE_AUTO_REFRESH,
    }


if __name__ == "__main__":
    """
    Run this module directly to validate your .env configuration:
        python -m authclient.config
    """
    config = get_settings()
    status = validate_configuration(config)

    print("Auth client configuration")
    print(f"  Base URL:       {config.base_url_str or '(not set)'}")
    print(f"  Refresh path:   {config.AUTH_REFRESH_PATH}")
    print(f"  Auto refresh:   {config.AUTH_ENABLE_AUTO_REFRESH}")
    print(f"  Token storage:  {config.AUTH_TOKEN_STORAGE}")
    print(f"  Timeout:        {config.AUTH_TIMEOUT_SECONDS}s")

    for error in status["errors"]:
        print(f"  error: {error}")
    for warning in status["warnings"]:
        print(f"  warning: {warning}")
