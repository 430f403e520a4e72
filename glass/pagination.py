"""
PaginatedListFetcher — walks timeline.list page by page into one list.

The loop is a two-state machine (FETCHING -> DONE):
  - a page with items appends them and follows nextPageToken
  - an empty page ends pagination, even if the server echoed a token
  - a failed page is logged and ends pagination; items collected so far are kept
Transport timeouts and malformed bodies are not absorbed; they propagate.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from .models import ApiAction, Page, Resource, TimelineItem
from .payload import RequestBuilder
from .response import ResponseMap

logger = logging.getLogger(__name__)


class FetchState(Enum):
    FETCHING = "fetching"
    DONE = "done"


class PaginatedListFetcher:
    """
    Aggregates the full timeline and caches it for the owning client.

    Usage:
        fetcher = PaginatedListFetcher(transport, builder)
        items   = fetcher.cached_list(as_hash=True)   # fetches once
        items   = fetcher.cached_list(as_hash=True)   # served from cache
        fetcher.invalidate()
    """

    def __init__(self, transport: Any, builder: RequestBuilder, resource: Resource = Resource.TIMELINE) -> None:
        self.transport = transport
        self.builder = builder
        self.resource = resource
        self.state = FetchState.DONE
        self._cache: Optional[list[dict]] = None

    @property
    def cached(self) -> Optional[list[dict]]:
        return self._cache

    def invalidate(self) -> None:
        self._cache = None

    # ── Fetch loop ────────────────────────────────────────────────────────────

    def fetch_all(self, parameters: Optional[dict[str, Any]] = None) -> list[dict]:
        """Fetch every page and replace the cache. Returns raw item dicts."""
        page_token: Optional[str] = None
        items: list[dict] = []
        pages = 0
        self.state = FetchState.FETCHING

        try:
            while self.state is FetchState.FETCHING:
                params = dict(parameters or {})
                if page_token:
                    params["pageToken"] = page_token
                descriptor = self.builder.build_call_descriptor(
                    ApiAction.LIST, parameters=params, resource=self.resource
                )
                result = self.transport.execute(descriptor)
                pages += 1

                if result.success:
                    page = Page.from_response(result.data)
                    if page.items:
                        items.extend(page.items)
                        page_token = page.next_page_token
                    else:
                        page_token = None
                    logger.debug("Page %d: %d item(s), next token %r", pages, len(page.items), page_token)
                else:
                    logger.error(
                        "An error occurred listing %s (page %d): %s",
                        self.resource.value, pages, result.error_message or result.status,
                    )
                    page_token = None

                if not page_token:
                    self.state = FetchState.DONE
        finally:
            # a timeout or malformed page leaves the fetcher reusable
            self.state = FetchState.DONE

        self._cache = items
        logger.info("Fetched %d %s item(s) in %d page(s)", len(items), self.resource.value, pages)
        return items

    def list(self, as_hash: bool = True) -> list[Any]:
        return self._shape(self.fetch_all(), as_hash)

    def cached_list(self, as_hash: bool = True) -> list[Any]:
        """Cached aggregate if present, otherwise a fresh full fetch."""
        items = self._cache if self._cache is not None else self.fetch_all()
        return self._shape(items, as_hash)

    @staticmethod
    def _shape(items: list[dict], as_hash: bool) -> list[Any]:
        if as_hash:
            return [ResponseMap(item) for item in items]
        return [TimelineItem.from_dict(item) for item in items]
