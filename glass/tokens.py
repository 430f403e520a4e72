"""
TokenLifecycleManager — installs OAuth credentials on the transport and
refreshes a stale access token exactly once per client construction.

Refreshed credentials are translated into the account's persisted shape:
    {"token": <access_token>, "expires_at": <epoch seconds>, "id_token": <id_token>}
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping, Optional

from .accounts import GoogleAccount
from .config import ApiKeys

logger = logging.getLogger(__name__)


class _AccountRefreshGuard:
    """
    One lock and one refresh counter per stored account.

    Accounts are keyed by their `key` (e.g. the token file path), so two
    records loaded from the same store share a lock. A thread that waited
    while another refreshed the same account sees the counter move and
    reuses the persisted tokens.
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._generations: dict[str, int] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._mutex:
            return self._locks.setdefault(key, threading.Lock())

    def generation(self, key: str) -> int:
        with self._mutex:
            return self._generations.get(key, 0)

    def bump(self, key: str) -> None:
        with self._mutex:
            self._generations[key] = self._generations.get(key, 0) + 1


_guard = _AccountRefreshGuard()

# Google access tokens live one hour when the response omits expires_in
DEFAULT_TOKEN_LIFETIME = 3600


def account_key(account: Any) -> str:
    """Stable identity for locking; objects without a key lock on themselves."""
    key = getattr(account, "key", None)
    return str(key) if key else f"object:{id(account)}"


def convert_user_data(token_response: Mapping[str, Any], now: Optional[float] = None) -> dict[str, Any]:
    """Translate a refresh response into the account's token fields."""
    expires_in = token_response.get("expires_in")
    if expires_in is None:
        logger.warning(
            "Refresh response has no expires_in, assuming %ds", DEFAULT_TOKEN_LIFETIME
        )
        expires_in = DEFAULT_TOKEN_LIFETIME
    if now is None:
        now = time.time()
    return {
        "token": token_response.get("access_token"),
        "expires_at": int(now) + int(expires_in),
        "id_token": token_response.get("id_token"),
    }


class TokenLifecycleManager:
    """
    Credential setup for one client instance.

    Usage:
        manager = TokenLifecycleManager(transport, account, api_keys)
        manager.setup()     # may refresh + persist; raises TokenRefreshError
    """

    def __init__(
        self,
        transport: Any,
        account: GoogleAccount,
        api_keys: ApiKeys,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        expired: Optional[bool] = None,
    ) -> None:
        self.transport = transport
        self.account = account
        self.api_keys = api_keys
        self.access_token = access_token if access_token is not None else account.token
        self.refresh_token = refresh_token if refresh_token is not None else account.refresh_token
        self._expiry_from_account = expired is None
        self.expired = expired if expired is not None else bool(account.has_expired_token)

    def setup(self) -> None:
        self.transport.set_client_credentials(self.api_keys.client_id, self.api_keys.client_secret)
        self.transport.set_user_tokens(self.access_token, self.refresh_token)
        if self.expired:
            self.refresh()

    def refresh(self) -> dict[str, Any]:
        """
        Refresh the access token and persist it on the account.

        Runs under the account's lock and re-reads the account once the lock
        is held. If another client refreshed the same account meanwhile, its
        persisted tokens are installed instead of refreshing again.
        """
        key = account_key(self.account)
        seen = _guard.generation(key)
        with _guard.lock_for(key):
            reload = getattr(self.account, "reload", None)
            if callable(reload):
                reload()
            if _guard.generation(key) != seen or self._account_already_fresh():
                logger.debug("Token for account already refreshed by another client, reusing it")
                self._reuse_account_tokens()
                return {"token": self.access_token}

            logger.info("Access token expired, refreshing")
            tokens = convert_user_data(self.transport.refresh_access_token())
            self.account.update_tokens(tokens)
            _guard.bump(key)

        self.access_token = tokens["token"]
        self.expired = False
        logger.info("Token refreshed and persisted (expires_at=%s)", tokens["expires_at"])
        return tokens

    def _account_already_fresh(self) -> bool:
        # Only trust the account when the stale flag came from it
        return self._expiry_from_account and not self.account.has_expired_token

    def _reuse_account_tokens(self) -> None:
        self.access_token = self.account.token
        self.refresh_token = self.account.refresh_token or self.refresh_token
        self.transport.set_user_tokens(self.access_token, self.refresh_token)
        self.expired = False
