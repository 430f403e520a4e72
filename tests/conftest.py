"""Shared pytest fixtures: a scripted transport and an in-memory account."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from glass.config import ApiKeys
from glass.models import ApiAction, ApiCallDescriptor, ApiResult, Resource, check_action
from glass.response import ResponseMap


class FakeAccount:
    """GoogleAccount kept in memory; records every update_tokens call."""

    def __init__(self, token: str = "old-token", refresh_token: str = "refresh-1", expired: bool = False) -> None:
        self.token = token
        self.refresh_token = refresh_token
        self.has_expired_token = expired
        self.updates: list[dict[str, Any]] = []
        self.key = f"fake:{id(self)}"

    def reload(self) -> None:
        pass

    def update_tokens(self, tokens: dict[str, Any]) -> None:
        self.updates.append(dict(tokens))
        self.token = tokens["token"]
        self.has_expired_token = False


class FakeTransport:
    """
    Transport double.

    Queue results per (resource, action) with `respond()`; every executed
    descriptor is kept in `calls`.
    """

    def __init__(self, refresh_response: Optional[dict[str, Any]] = None, refresh_error: Optional[Exception] = None) -> None:
        self.client_credentials: Optional[tuple[str, str]] = None
        self.user_tokens: list[tuple[Optional[str], Optional[str]]] = []
        self.refresh_calls = 0
        self.refresh_response = refresh_response or {
            "access_token": "new-token",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
            "id_token": "id-123",
        }
        self.refresh_error = refresh_error
        self.calls: list[ApiCallDescriptor] = []
        self._queue: dict[tuple[Resource, ApiAction], list[Any]] = {}

    # ── authorization ──

    def set_client_credentials(self, client_id: str, client_secret: str) -> None:
        self.client_credentials = (client_id, client_secret)

    def set_user_tokens(self, access_token: Optional[str], refresh_token: Optional[str]) -> None:
        self.user_tokens.append((access_token, refresh_token))

    def refresh_access_token(self) -> dict[str, Any]:
        self.refresh_calls += 1
        if self.refresh_error is not None:
            raise self.refresh_error
        return dict(self.refresh_response)

    # ── registry / execution ──

    def method(self, resource: Any, action: Any) -> Any:
        res, act = check_action(resource, action)
        return f"{res.value}.{act.value}"

    def respond(self, resource: Resource, action: ApiAction, *results: Any) -> None:
        self._queue.setdefault((resource, action), []).extend(results)

    def execute(self, descriptor: ApiCallDescriptor) -> ApiResult:
        self.calls.append(descriptor)
        queue = self._queue.get((descriptor.resource, descriptor.action), [])
        if not queue:
            return ok({})
        result = queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def ok(data: dict[str, Any]) -> ApiResult:
    return ApiResult(success=True, status=200, data=ResponseMap(data))


def failed(status: int = 500, message: str = "Backend Error") -> ApiResult:
    return ApiResult(success=False, status=status, data=ResponseMap(), error_message=message)


@pytest.fixture
def api_keys() -> ApiKeys:
    return ApiKeys(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def account() -> FakeAccount:
    return FakeAccount()
