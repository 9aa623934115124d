"""Persistent storage for the platform bearer token.

The token is kept in a small JSON file under a fixed key so it survives
restarts, the same way the web client keeps it in local storage.
"""

import json
from pathlib import Path
from typing import Optional

from fokushub.logging_config import get_logger

logger = get_logger(__name__)

TOKEN_KEY = "fokushub_token"


def mask_token(token: Optional[str], visible: int = 20) -> str:
    """Shorten a token for logging.

    Args:
        token: Bearer token or None
        visible: Number of leading characters to keep

    Returns:
        Token prefix followed by "...", or "No token"
    """
    if not token:
        return "No token"
    return f"{token[:visible]}..."


class TokenStore:
    """File-backed bearer token storage."""

    def __init__(self, path: str):
        """Initialize token store.

        Args:
            path: JSON file the token is persisted in
        """
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read token file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        """Return the stored token, or None when there is none."""
        token = self._read().get(TOKEN_KEY)
        return token or None

    def set(self, token: str) -> None:
        """Persist a token, replacing any previous one."""
        if not token:
            raise ValueError("Token cannot be empty")
        data = self._read()
        data[TOKEN_KEY] = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f)
        logger.debug(f"Stored token {mask_token(token)}")

    def remove(self) -> None:
        """Forget the stored token."""
        data = self._read()
        if TOKEN_KEY not in data:
            return
        del data[TOKEN_KEY]
        with open(self.path, "w") as f:
            json.dump(data, f)
        logger.debug("Removed stored token")


class StaticTokenStore:
    """In-memory token holder for a token supplied by the caller.

    Used when a request arrives with its own Authorization header, so the
    forwarded token never touches the persisted store.
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token

    def get(self) -> Optional[str]:
        return self.token or None

    def set(self, token: str) -> None:
        self.token = token

    def remove(self) -> None:
        self.token = None
