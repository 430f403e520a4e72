"""
Account records that own a user's OAuth tokens.

GlassClient only needs the GoogleAccount protocol below. TokenFileAccount is a
ready-made implementation that persists tokens to a JSON file
(~/cred/glass_token.json by default), suitable for scripts and single-user use.
"""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from .config import load_settings
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class GoogleAccount(Protocol):
    """What the client reads from and writes back to an account."""

    @property
    def token(self) -> Optional[str]: ...

    @property
    def refresh_token(self) -> Optional[str]: ...

    @property
    def has_expired_token(self) -> bool: ...

    @property
    def key(self) -> str:
        """Stable identity of the stored account, shared by every record loaded from it."""
        ...

    def reload(self) -> None:
        """Re-read token fields from the store."""
        ...

    def update_tokens(self, tokens: Mapping[str, Any]) -> None: ...


class TokenFileAccount:
    """
    Account backed by a JSON token file.

    File shape:
        {"token": "...", "refresh_token": "...", "expires_at": 1700000000, "id_token": "..."}

    Usage:
        account = TokenFileAccount.load()
        client  = GlassClient(account)
    """

    def __init__(self, path: Path | str, data: Optional[dict[str, Any]] = None) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = dict(data or {})

    @classmethod
    def load(cls, path: Path | str | None = None) -> "TokenFileAccount":
        """Read the token file. Raises ConfigurationError if it does not exist."""
        path = Path(path) if path else load_settings().token_file
        if not path.exists():
            raise ConfigurationError(f"Token file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ConfigurationError(f"Token file {path} is not valid JSON") from exc
        return cls(path, data)

    # ── Read accessors ────────────────────────────────────────────────────────

    @property
    def key(self) -> str:
        return str(self.path.expanduser().resolve())

    @property
    def token(self) -> Optional[str]:
        return self._data.get("token")

    @property
    def refresh_token(self) -> Optional[str]:
        return self._data.get("refresh_token")

    @property
    def expires_at(self) -> Optional[int]:
        return self._data.get("expires_at")

    @property
    def id_token(self) -> Optional[str]:
        return self._data.get("id_token")

    @property
    def has_expired_token(self) -> bool:
        """True when no expiry is recorded or the expiry is not in the future."""
        return self.expires_at is None or self.expires_at <= time.time()

    def reload(self) -> None:
        """Pick up tokens written by another record of the same file."""
        if self.path.exists():
            self._data = json.loads(self.path.read_text(encoding="utf-8"))

    # ── Write ─────────────────────────────────────────────────────────────────

    def update_tokens(self, tokens: Mapping[str, Any]) -> None:
        """Merge refreshed token fields and rewrite the file."""
        self._data.update({k: v for k, v in tokens.items() if v is not None})
        self.save()
        logger.info("Token saved to %s (expires_at=%s)", self.path, self.expires_at)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
