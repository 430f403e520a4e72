"""Tests for MirrorTransport — googleapiclient and google-auth are mocked."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from glass.errors import InvalidActionError, MalformedResponseError, TokenRefreshError, TransportTimeoutError
from glass.models import ApiAction, ApiCallDescriptor, Resource
from glass.response import ResponseMap
from glass.transport import MirrorTransport


# ── Helpers ────────────────────────────────────────────────────────────────────


def descriptor(request: MagicMock, action: ApiAction = ApiAction.GET, **kwargs) -> ApiCallDescriptor:
    method = MagicMock(return_value=request)
    return ApiCallDescriptor(Resource.TIMELINE, action, method=method, **kwargs)


def request_returning(content: bytes, status: int = 200) -> MagicMock:
    request = MagicMock()
    request.execute.return_value = (MagicMock(status=status), content)
    return request


def http_error(status: int, content: bytes) -> HttpError:
    return HttpError(MagicMock(status=status, reason="Error"), content)


@pytest.fixture
def transport() -> MirrorTransport:
    t = MirrorTransport()
    t.set_client_credentials("client-id", "client-secret")
    t.set_user_tokens("access", "refresh")
    return t


# ── Authorization ──────────────────────────────────────────────────────────────


class TestRefresh:
    def test_returns_token_endpoint_shape(self, transport: MirrorTransport) -> None:
        def fake_refresh(self, request):
            self.token = "fresh"
            self.expiry = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(seconds=3600)

        with patch("google.oauth2.credentials.Credentials.refresh", fake_refresh):
            data = transport.refresh_access_token()

        assert data["access_token"] == "fresh"
        assert data["refresh_token"] == "refresh"
        assert 3590 <= data["expires_in"] <= 3600

    def test_refresh_error_translated(self, transport: MirrorTransport) -> None:
        with patch(
            "google.oauth2.credentials.Credentials.refresh",
            side_effect=RefreshError("invalid_grant"),
        ):
            with pytest.raises(TokenRefreshError):
                transport.refresh_access_token()

    def test_token_endpoint_timeout_is_not_a_revoked_grant(self, transport: MirrorTransport) -> None:
        timeout = requests.exceptions.ReadTimeout("read timed out")
        error = TransportError(timeout)
        error.__cause__ = timeout
        with patch("google.oauth2.credentials.Credentials.refresh", side_effect=error):
            with pytest.raises(TransportTimeoutError):
                transport.refresh_access_token()

    def test_connection_failure_still_refresh_error(self, transport: MirrorTransport) -> None:
        with patch(
            "google.oauth2.credentials.Credentials.refresh",
            side_effect=TransportError("connection reset"),
        ):
            with pytest.raises(TokenRefreshError):
                transport.refresh_access_token()

    def test_no_refresh_token(self) -> None:
        t = MirrorTransport()
        t.set_user_tokens("access", None)
        with pytest.raises(TokenRefreshError):
            t.refresh_access_token()

    def test_credentials_carry_client_keys(self, transport: MirrorTransport) -> None:
        creds = transport.credentials
        assert creds.client_id == "client-id"
        assert creds.client_secret == "client-secret"
        assert creds.token == "access"


# ── Registry ───────────────────────────────────────────────────────────────────


class TestMethod:
    def test_resolves_collection_method(self, transport: MirrorTransport) -> None:
        service = MagicMock()
        with patch("glass.transport.build", return_value=service) as build:
            handle = transport.method(Resource.TIMELINE, ApiAction.LIST)
            transport.method(Resource.CONTACTS, ApiAction.GET)
        assert handle is service.timeline.return_value.list
        build.assert_called_once()

    def test_unauthorized_response_is_not_refreshed_silently(self, transport: MirrorTransport) -> None:
        inner = MagicMock()
        inner.request.return_value = (MagicMock(status=401), b'{"error": "unauthorized"}')
        with patch("glass.transport.build_http", return_value=inner), patch(
            "google.oauth2.credentials.Credentials.refresh"
        ) as refresh:
            http = transport.authorized_http()
            resp, _ = http.request("https://www.googleapis.com/mirror/v1/timeline")

        assert resp.status == 401
        inner.request.assert_called_once()
        refresh.assert_not_called()

    def test_service_built_on_non_refreshing_http(self, transport: MirrorTransport) -> None:
        with patch("glass.transport.build") as build, patch("glass.transport.AuthorizedHttp") as authorized:
            transport.service
        assert authorized.call_args.kwargs["refresh_status_codes"] == ()
        assert build.call_args.kwargs["http"] is authorized.return_value
        assert "credentials" not in build.call_args.kwargs

    def test_unknown_action(self, transport: MirrorTransport) -> None:
        with pytest.raises(InvalidActionError):
            transport.method("timeline", "explode")


# ── Execution ──────────────────────────────────────────────────────────────────


class TestExecute:
    def test_success_parses_body(self, transport: MirrorTransport) -> None:
        request = request_returning(b'{"id": "x", "pageToken": "y"}')
        d = descriptor(request, parameters={"id": "x"})

        result = transport.execute(d)

        d.method.assert_called_once_with(id="x")
        assert result.success is True
        assert result.data["PAGETOKEN"] == "y"

    def test_body_sent_as_plain_dict(self, transport: MirrorTransport) -> None:
        request = request_returning(b'{"id": "x"}')
        d = descriptor(request, action=ApiAction.INSERT, body=ResponseMap({"text": "hi"}))
        transport.execute(d)
        sent = d.method.call_args.kwargs["body"]
        assert sent == {"text": "hi"}
        assert type(sent) is dict

    def test_empty_delete_body(self, transport: MirrorTransport) -> None:
        result = transport.execute(descriptor(request_returning(b"", status=204), action=ApiAction.DELETE))
        assert result.success is True
        assert result.data == {}

    def test_http_error_becomes_failed_result(self, transport: MirrorTransport) -> None:
        request = MagicMock()
        request.execute.side_effect = http_error(500, b'{"error": {"message": "Backend Error"}}')

        result = transport.execute(descriptor(request))

        assert result.success is False
        assert result.status == 500
        assert "Backend Error" in result.error_message

    def test_timeout_raises(self, transport: MirrorTransport) -> None:
        request = MagicMock()
        request.execute.side_effect = TimeoutError("timed out")
        with pytest.raises(TransportTimeoutError):
            transport.execute(descriptor(request))

    def test_malformed_body_raises(self, transport: MirrorTransport) -> None:
        with pytest.raises(MalformedResponseError):
            transport.execute(descriptor(request_returning(b"<html>oops</html>")))

    def test_refresh_during_call_translated(self, transport: MirrorTransport) -> None:
        request = MagicMock()
        request.execute.side_effect = RefreshError("invalid_grant")
        with pytest.raises(TokenRefreshError):
            transport.execute(descriptor(request))
