"""
Typed data models for Mirror API resources and outgoing calls.

Resources are plain dataclasses. Business logic (payload normalisation,
pagination, token handling) lives in the builder and client classes, not here.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from .errors import InvalidActionError, MalformedResponseError
from .response import ResponseMap

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_case(key: str) -> str:
    """'speakableText' -> 'speakable_text'. Already snake keys pass through."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


# ── Actions ───────────────────────────────────────────────────────────────────

class Resource(str, Enum):
    """Mirror API collections the client talks to."""

    TIMELINE = "timeline"
    CONTACTS = "contacts"
    LOCATIONS = "locations"
    SUBSCRIPTIONS = "subscriptions"


class ApiAction(str, Enum):
    """Logical action names, mapped to remote methods via API_METHODS."""

    INSERT = "insert"
    PATCH = "patch"
    UPDATE = "update"
    DELETE = "delete"
    GET = "get"
    LIST = "list"

    @classmethod
    def coerce(cls, action: "ApiAction | str") -> "ApiAction":
        if isinstance(action, cls):
            return action
        try:
            return cls(action)
        except ValueError:
            raise InvalidActionError(f"Unknown API action: {action!r}") from None

    @property
    def has_body(self) -> bool:
        return self in _BODY_ACTIONS


_BODY_ACTIONS = frozenset({ApiAction.INSERT, ApiAction.PATCH, ApiAction.UPDATE})

# Remote methods exposed by each collection of the Mirror API v1.
API_METHODS: dict[Resource, frozenset[ApiAction]] = {
    Resource.TIMELINE: frozenset(ApiAction),
    Resource.CONTACTS: frozenset(ApiAction),
    Resource.LOCATIONS: frozenset({ApiAction.GET, ApiAction.LIST}),
    Resource.SUBSCRIPTIONS: frozenset(
        {ApiAction.INSERT, ApiAction.UPDATE, ApiAction.DELETE, ApiAction.LIST}
    ),
}


def check_action(resource: "Resource | str", action: "ApiAction | str") -> tuple[Resource, ApiAction]:
    """Validate a (resource, action) pair against API_METHODS."""
    try:
        res = Resource(resource)
    except ValueError:
        raise InvalidActionError(f"Unknown API resource: {resource!r}") from None
    act = ApiAction.coerce(action)
    if act not in API_METHODS[res]:
        raise InvalidActionError(f"{res.value}.{act.value} is not a Mirror API method")
    return res, act


# ── Timeline ──────────────────────────────────────────────────────────────────

@dataclass
class TimelineItem:
    """A Mirror timeline card.

    Only the commonly used fields are typed; anything else the caller or the
    server supplies is kept verbatim in `extra`.
    """

    id: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    title: Optional[str] = None
    speakable_text: Optional[str] = None
    display_time: Any = None        # datetime, date, ISO string or epoch seconds
    bundle_id: Optional[str] = None
    is_bundle_cover: Optional[bool] = None
    menu_items: list[dict] = field(default_factory=list)
    notification: Optional[dict] = None
    extra: dict[str, Any] = field(default_factory=dict)
    account: Any = field(default=None, repr=False, compare=False)

    def to_json(self) -> dict[str, Any]:
        """Snake_case content mapping, None/empty values dropped."""
        data: dict[str, Any] = {}
        for f in fields(self):
            if f.name in ("extra", "account"):
                continue
            value = getattr(self, f.name)
            if value is None or value == []:
                continue
            data[f.name] = value
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "TimelineItem":
        """Build from a wire (camelCase) or snake_case mapping."""
        known = {f.name for f in fields(cls)} - {"extra", "account"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in _plain(raw).items():
            name = snake_case(key)
            if name in known:
                kwargs[name] = value
            else:
                extra[key] = value
        return cls(extra=extra, **kwargs)


# ── Contacts ──────────────────────────────────────────────────────────────────

@dataclass
class Contact:
    """A Mirror contact (a person or service a card can be shared with).

    Unknown fields are kept in `extra`, as on TimelineItem.
    """

    id: str
    display_name: str
    image_urls: list[str] = field(default_factory=list)
    type: str = "INDIVIDUAL"        # 'INDIVIDUAL' | 'GROUP'
    accept_types: list[str] = field(default_factory=list)
    phone_number: Optional[str] = None
    priority: Optional[int] = None
    speakable_name: Optional[str] = None
    accept_commands: list[dict] = field(default_factory=list)
    sharing_features: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        data = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) not in (None, [])
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "Contact":
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in _plain(raw).items():
            name = snake_case(key)
            if name in known:
                kwargs[name] = value
            else:
                extra[key] = value
        try:
            return cls(extra=extra, **kwargs)
        except TypeError as exc:
            raise ValueError(f"Contact requires id and display_name: {exc}") from exc


# Request body schema per collection, used to wrap plain mappings.
REQUEST_SCHEMAS: dict[Resource, type] = {
    Resource.TIMELINE: TimelineItem,
    Resource.CONTACTS: Contact,
}


# ── Calls ─────────────────────────────────────────────────────────────────────

@dataclass
class ApiCallDescriptor:
    """One outgoing API call: remote method handle, query parameters, body."""

    resource: Resource
    action: ApiAction
    method: Callable[..., Any]
    parameters: dict[str, str] = field(default_factory=dict)
    body: Optional[ResponseMap] = None

    def __post_init__(self) -> None:
        if self.method is None:
            raise InvalidActionError(f"No remote method for {self.resource.value}.{self.action.value}")
        if self.body is not None and not self.action.has_body:
            raise ValueError(f"{self.action.value} calls do not carry a body")


@dataclass
class ApiResult:
    """Outcome of executing one descriptor."""

    success: bool
    status: int
    data: ResponseMap
    body: str = ""
    error_message: str = ""


@dataclass
class Page:
    """One page of a timeline list response."""

    items: list[dict]
    next_page_token: Optional[str] = None

    @classmethod
    def from_response(cls, data: ResponseMap) -> "Page":
        items = data.get("items") or []
        if not isinstance(items, list):
            raise MalformedResponseError(
                f"'items' should be a list, got {type(items).__name__}"
            )
        for i in items:
            if not isinstance(i, Mapping):
                raise MalformedResponseError(
                    f"list item should be an object, got {type(i).__name__}"
                )
        token = data.get("nextPageToken") or data.get("next_page_token")
        return cls(items=[_plain(i) for i in items], next_page_token=token or None)


def _plain(raw: Any) -> dict:
    if isinstance(raw, ResponseMap):
        return raw.to_dict()
    return dict(raw)
