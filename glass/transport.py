"""
MirrorTransport — OAuth2 authorization and request execution for the Mirror API v1.

Holds one google-auth Credentials object (client keys + user tokens) and
builds the googleapiclient service lazily, so a client that only refreshes
tokens never pays for a discovery build.

Usage:
    transport = MirrorTransport()
    transport.set_client_credentials(keys.client_id, keys.client_secret)
    transport.set_user_tokens(account.token, account.refresh_token)

    handle = transport.method(Resource.TIMELINE, ApiAction.LIST)
    result = transport.execute(descriptor)
"""
from __future__ import annotations

import logging
import socket
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import requests
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import build_http

from .config import SCOPES, TOKEN_URI
from .errors import GlassError, TokenRefreshError, TransportTimeoutError
from .models import ApiAction, ApiCallDescriptor, ApiResult, Resource, check_action
from .response import ResponseMap

logger = logging.getLogger(__name__)


class MirrorTransport:
    """
    Authorization object plus executor for Mirror API calls.

    Token refresh goes through google-auth; calls go through googleapiclient.
    Library exceptions are translated into glass.errors types here.
    """

    def __init__(self, api_name: str = "mirror", api_version: str = "v1") -> None:
        self._api_name = api_name
        self._api_version = api_version
        self._client_id: Optional[str] = None
        self._client_secret: Optional[str] = None
        self._creds: Optional[Credentials] = None
        self._service: Any = None

    # ── Authorization ─────────────────────────────────────────────────────────

    def set_client_credentials(self, client_id: str, client_secret: str) -> None:
        self._client_id = client_id
        self._client_secret = client_secret

    def set_user_tokens(self, access_token: Optional[str], refresh_token: Optional[str]) -> None:
        self._creds = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
            scopes=SCOPES,
        )
        # Service objects capture the credentials they were built with
        self._service = None

    @property
    def credentials(self) -> Credentials:
        if self._creds is None:
            raise TokenRefreshError("No user tokens installed on the transport")
        return self._creds

    def refresh_access_token(self) -> dict[str, Any]:
        """
        Refresh the access token and return a token-endpoint shaped dict:
            {"access_token", "refresh_token", "expires_in", "id_token"}

        Raises TokenRefreshError when the refresh is rejected and
        TransportTimeoutError when the token endpoint times out. Never retried here.
        """
        creds = self.credentials
        if not creds.refresh_token:
            raise TokenRefreshError("Cannot refresh: account has no refresh token")
        try:
            creds.refresh(Request())
        except (RefreshError, TransportError) as exc:
            raise _auth_error(exc, "token refresh") from exc

        expires_in: Optional[int] = None
        if creds.expiry is not None:
            # google-auth keeps expiry as naive UTC
            now = datetime.now(timezone.utc).replace(tzinfo=None)
            expires_in = max(0, int((creds.expiry - now).total_seconds()))

        return {
            "access_token": creds.token,
            "refresh_token": creds.refresh_token,
            "expires_in": expires_in,
            "id_token": creds.id_token,
        }

    # ── Method registry ───────────────────────────────────────────────────────

    @property
    def service(self) -> Any:
        """googleapiclient Resource for the Mirror API (built on first access)."""
        if self._service is None:
            self._service = build(
                self._api_name,
                self._api_version,
                http=self.authorized_http(),
                cache_discovery=False,
            )
        return self._service

    def authorized_http(self) -> AuthorizedHttp:
        """httplib2 client that signs requests but never refreshes on 401.

        Refresh happens once, in TokenLifecycleManager, so the new token is
        persisted; a 401 here comes back as a failed ApiResult.
        """
        return AuthorizedHttp(self.credentials, http=build_http(), refresh_status_codes=())

    def method(self, resource: Resource | str, action: ApiAction | str) -> Callable[..., Any]:
        """Remote method handle, e.g. service.timeline().list."""
        res, act = check_action(resource, action)
        collection = getattr(self.service, res.value)()
        return getattr(collection, act.value)

    # ── Execution ─────────────────────────────────────────────────────────────

    def execute(self, descriptor: ApiCallDescriptor) -> ApiResult:
        """
        Run one call. Non-2xx responses come back as ApiResult(success=False);
        timeouts raise TransportTimeoutError, unparseable bodies raise
        MalformedResponseError.
        """
        kwargs: dict[str, Any] = dict(descriptor.parameters)
        if descriptor.body is not None:
            kwargs["body"] = descriptor.body.to_dict()

        request = descriptor.method(**kwargs)
        # Keep the raw body: ResponseMap does the JSON parsing
        request.postproc = lambda resp, content: (resp, content)

        try:
            resp, content = request.execute()
        except HttpError as exc:
            message = str(exc.reason or exc)
            logger.debug(
                "%s.%s failed: %s %s",
                descriptor.resource.value, descriptor.action.value, exc.resp.status, message,
            )
            return ApiResult(
                success=False,
                status=int(exc.resp.status),
                data=ResponseMap(),
                body=_text(exc.content),
                error_message=message,
            )
        except (socket.timeout, TimeoutError) as exc:
            raise TransportTimeoutError(
                f"{descriptor.resource.value}.{descriptor.action.value} timed out"
            ) from exc
        except (RefreshError, TransportError) as exc:
            raise _auth_error(exc, f"{descriptor.resource.value}.{descriptor.action.value}") from exc

        body = _text(content)
        return ApiResult(
            success=True,
            status=int(getattr(resp, "status", 200)),
            data=ResponseMap.from_json(body),
            body=body,
        )


def _text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content)


def _auth_error(exc: Exception, what: str) -> GlassError:
    """Timeouts anywhere in the cause chain are network failures, not revoked tokens."""
    cause: Optional[BaseException] = exc
    while cause is not None:
        if isinstance(cause, (requests.exceptions.Timeout, socket.timeout, TimeoutError)):
            return TransportTimeoutError(f"{what} timed out: {cause}")
        cause = cause.__cause__ or next(
            (arg for arg in getattr(cause, "args", ()) if isinstance(arg, BaseException)), None
        )
    if isinstance(exc, RefreshError):
        return TokenRefreshError(f"{what} rejected: {exc}")
    return TokenRefreshError(f"{what} failed in transport: {exc}")
