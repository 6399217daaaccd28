"""
Token storage implementations.

The request gateway keeps the credential pair in a TokenStore and reads it
back on every request. MemoryTokenStore is the default; FileTokenStore
persists the pair as JSON so a CLI or long-running job can resume a session
after a restart.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Protocol, Union

from pydantic import ValidationError

from ..config import ClientSettings
from ..models import AuthTokens

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    """Holder of the current access/refresh token pair."""

    def load(self) -> Optional[AuthTokens]:
        ...

    def save(self, tokens: AuthTokens) -> None:
        ...

    def clear(self) -> None:
        ...


# =============================================================================
# Serialization
# =============================================================================

def format_tokens_for_storage(tokens: AuthTokens) -> str:
    """Serialize tokens to JSON, stamped with the time they were stored."""
    payload = tokens.model_dump()
    payload["timestamp"] = int(time.time() * 1000)
    return json.dumps(payload)


def parse_tokens_from_storage(stored: str) -> Optional[AuthTokens]:
    """
    Parse tokens written by format_tokens_for_storage.

    Returns:
        AuthTokens, or None if the data is not valid JSON or lacks an access token
    """
    try:
        return AuthTokens.model_validate(json.loads(stored))
    except (ValueError, TypeError, ValidationError):
        return None


# =============================================================================
# Stores
# =============================================================================

class MemoryTokenStore:
    """In-process token storage. Nothing survives the process."""

    def __init__(self, tokens: Optional[AuthTokens] = None) -> None:
        self._tokens = tokens

    def load(self) -> Optional[AuthTokens]:
        return self._tokens

    def save(self, tokens: AuthTokens) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = None


class FileTokenStore:
    """
    JSON file token storage.

    Reads are served from memory after the first load; every save or clear
    is written through to disk. The file is created with owner-only
    permissions.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()
        self._tokens: Optional[AuthTokens] = None
        self._loaded = False

    def load(self) -> Optional[AuthTokens]:
        if self._loaded:
            return self._tokens

        self._loaded = True
        if not self.path.exists():
            return None

        try:
            stored = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read token file: {e}", extra={"path": str(self.path)})
            return None

        self._tokens = parse_tokens_from_storage(stored)
        if self._tokens is None:
            logger.warning("Ignoring corrupt token file", extra={"path": str(self.path)})
        return self._tokens

    def save(self, tokens: AuthTokens) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # The target is only ever replaced whole, never rewritten in place
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(format_tokens_for_storage(tokens))
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        self._tokens = tokens
        self._loaded = True
        logger.debug("Stored tokens to file", extra={"path": str(self.path)})

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        self._tokens = None
        self._loaded = True
        logger.debug("Removed token file", extra={"path": str(self.path)})


def create_token_store(settings: ClientSettings) -> TokenStore:
    """Build the store selected by AUTH_TOKEN_STORAGE."""
    if settings.AUTH_TOKEN_STORAGE == "file":
        return FileTokenStore(settings.token_file_path)
    return MemoryTokenStore()
