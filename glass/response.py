"""
ResponseMap — ordered, case-insensitive mapping for API payloads.

Keys can be looked up as "pageToken", "pagetoken" or "PAGETOKEN"; iteration
preserves the original key spelling and insertion order.
"""
from __future__ import annotations

import json
from typing import Any, Mapping, Union

from requests.structures import CaseInsensitiveDict

from .errors import MalformedResponseError


class ResponseMap(CaseInsensitiveDict):
    """A CaseInsensitiveDict whose nested objects are ResponseMaps too."""

    def __init__(self, data: Any = None, **kwargs: Any) -> None:
        super().__init__()
        self.update(data or {}, **kwargs)

    def __setitem__(self, key: str, value: Any) -> None:
        super().__setitem__(key, wrap(value))

    def to_dict(self) -> dict:
        """Plain (JSON-serialisable) dict copy with original key spelling."""
        return {key: unwrap(value) for key, value in self.items()}

    @classmethod
    def from_json(cls, body: Union[str, bytes, None]) -> "ResponseMap":
        """Parse a JSON object body. Empty bodies (e.g. DELETE) give an empty map."""
        if body is None:
            return cls()
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        if not body.strip():
            return cls()
        try:
            parsed = json.loads(body)
        except ValueError as exc:
            raise MalformedResponseError(f"Response body is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise MalformedResponseError(
                f"Expected a JSON object, got {type(parsed).__name__}"
            )
        return cls(parsed)


def wrap(value: Any) -> Any:
    if isinstance(value, ResponseMap):
        return value
    if isinstance(value, Mapping):
        return ResponseMap(value)
    if isinstance(value, list):
        return [wrap(v) for v in value]
    return value


def unwrap(value: Any) -> Any:
    if isinstance(value, ResponseMap):
        return value.to_dict()
    if isinstance(value, list):
        return [unwrap(v) for v in value]
    return value
