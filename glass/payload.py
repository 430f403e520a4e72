"""
RequestBuilder — turns caller content into Mirror-shaped payloads and call
descriptors.

Outgoing keys are renamed snake_case -> lower camelCase ("speakable_text" ->
"speakableText"). The Mirror API only accepts displayTime as an RFC 3339 UTC
string with millisecond precision, so that one key is reformatted to
"YYYY-MM-DDTHH:MM:SS.000Z".
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

from .models import (
    REQUEST_SCHEMAS,
    ApiAction,
    ApiCallDescriptor,
    Resource,
    TimelineItem,
    check_action,
)
from .response import ResponseMap

_DISPLAY_TIME = "displayTime"
_UNDERSCORE_SEGMENT = re.compile(r"_+([^_]*)")


def camelize(key: Any) -> str:
    """Lower camelCase a key. Already-camelCase keys are left untouched."""
    key = str(key)
    if not key:
        return key
    head, *_ = key.split("_", 1)
    rest = key[len(head):]
    head = head[:1].lower() + head[1:]
    return head + _UNDERSCORE_SEGMENT.sub(lambda m: m.group(1).capitalize(), rest)


def format_date(value: Any) -> str:
    """
    Format a display time as UTC "YYYY-MM-DDTHH:MM:SS.000Z".

    Accepts datetime (naive values are taken as UTC), date, epoch seconds or
    an ISO 8601 string. Sub-second precision is dropped.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"displayTime is not an ISO 8601 timestamp: {value!r}") from exc
    else:
        raise TypeError(f"Cannot format {type(value).__name__} as displayTime")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S") + ".000Z"


def format_hash_properly(data: Mapping[str, Any]) -> ResponseMap:
    """Camelize every key; reformat the value stored under displayTime."""
    normalized = ResponseMap()
    for key, value in data.items():
        new_key = camelize(key)
        if new_key == _DISPLAY_TIME and value is not None:
            value = format_date(value)
        normalized[new_key] = value
    return normalized


class RequestBuilder:
    """
    Builds ApiCallDescriptors for a transport's method registry.

    Usage:
        builder    = RequestBuilder(transport)
        descriptor = builder.build_call_descriptor("insert", {"content": "Hello"})
        result     = transport.execute(descriptor)
    """

    def __init__(self, transport: Any) -> None:
        self.transport = transport
        self.timeline_item: Optional[TimelineItem] = None

    def resolve(self, action: ApiAction | str, resource: Resource | str = Resource.TIMELINE) -> Any:
        """Remote method handle for (resource, action). Raises InvalidActionError."""
        res, act = check_action(resource, action)
        return self.transport.method(res, act)

    # ── Payloads ──────────────────────────────────────────────────────────────

    def build_content_payload(self, options: Optional[Mapping[str, Any]] = None) -> ResponseMap:
        """
        Normalized body for an insert/patch/update call.

        options["content"] may be a string (sent as {"text": ...}), a mapping,
        or a TimelineItem. Without it, the attached timeline item is merged
        with the remaining options.
        """
        options = dict(options or {})
        content = options.pop("content", None)

        if content is not None:
            if isinstance(content, str):
                data: dict[str, Any] = {"text": content}
            elif isinstance(content, TimelineItem):
                data = content.to_json()
            else:
                data = dict(content)
        else:
            data = self.timeline_item.to_json() if self.timeline_item is not None else {}
            data.update(options)

        return format_hash_properly(data)

    def text_content(self, text: str) -> ResponseMap:
        return format_hash_properly({"text": text})

    def schema_body(self, resource: Resource, value: Any) -> ResponseMap:
        """Wrap a plain mapping in the resource's request schema, then normalize."""
        schema = REQUEST_SCHEMAS[resource]
        if not isinstance(value, schema):
            value = schema.from_dict(value)
        return format_hash_properly(value.to_json())

    # ── Descriptors ───────────────────────────────────────────────────────────

    def build_call_descriptor(
        self,
        action: ApiAction | str,
        options: Optional[Mapping[str, Any]] = None,
        identifier: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        resource: Resource | str = Resource.TIMELINE,
        body: Optional[ResponseMap] = None,
    ) -> ApiCallDescriptor:
        """
        Descriptor for one call.

        For body-carrying actions the body is built from `options` unless an
        explicit `body` is given. `identifier` is only ever sent as the "id"
        parameter; an "id" key in the body is dropped for patch/update.
        """
        res, act = check_action(resource, action)
        params: dict[str, Any] = {k: v for k, v in (parameters or {}).items() if v is not None}
        if identifier is not None:
            params["id"] = identifier

        if act.has_body:
            if body is None:
                body = self.build_content_payload(options)
            if act in (ApiAction.PATCH, ApiAction.UPDATE):
                body.pop("id", None)
        else:
            body = None

        return ApiCallDescriptor(
            resource=res,
            action=act,
            method=self.resolve(act, res),
            parameters=params,
            body=body,
        )
