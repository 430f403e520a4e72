"""
GlassClient — high-level Mirror API operations for one user account.

Construction installs the app's OAuth client and the account's tokens on the
transport and refreshes the access token if the account says it is stale.
A TokenRefreshError from the constructor means the user must re-consent.

Usage:
    account = TokenFileAccount.load()
    client  = GlassClient(account)

    card  = client.insert({"content": "Hello from Glass"})
    client.patch(card["id"], {"text": "Updated"})
    items = client.cached_list()
"""
from __future__ import annotations

import logging
import warnings
from typing import Any, Mapping, Optional, Union

from .accounts import GoogleAccount
from .config import ApiKeys, load_api_keys, load_settings
from .errors import ConfigurationError, RemoteCallError
from .models import ApiAction, ApiCallDescriptor, Contact, Resource, TimelineItem
from .pagination import PaginatedListFetcher
from .payload import RequestBuilder
from .response import ResponseMap
from .tokens import TokenLifecycleManager
from .transport import MirrorTransport

logger = logging.getLogger(__name__)


class GlassClient:
    """
    Timeline, contact, location and subscription calls for one account.

    The timeline list cache belongs to this instance only; other clients for
    the same account keep their own.
    """

    def __init__(
        self,
        account: GoogleAccount,
        transport: Any = None,
        api_keys: Optional[ApiKeys] = None,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        has_expired_token: Optional[bool] = None,
        callback_url: Optional[str] = None,
    ) -> None:
        self.account = account
        self.transport = transport if transport is not None else MirrorTransport()
        self.api_keys = api_keys or load_api_keys()
        self._callback_url = callback_url

        self.tokens = TokenLifecycleManager(
            self.transport,
            account,
            self.api_keys,
            access_token=access_token,
            refresh_token=refresh_token,
            expired=has_expired_token,
        )
        self.tokens.setup()

        self.builder = RequestBuilder(self.transport)
        self.fetcher = PaginatedListFetcher(self.transport, self.builder)

    @classmethod
    def create(cls, timeline_item: TimelineItem, **opts: Any) -> "GlassClient":
        """Client for the item's own account, with the item attached."""
        if timeline_item.account is None:
            raise ValueError("Timeline item has no account attached")
        client = cls(timeline_item.account, **opts)
        return client.set_timeline_item(timeline_item)

    def set_timeline_item(self, timeline_item: Optional[TimelineItem]) -> "GlassClient":
        self.builder.timeline_item = timeline_item
        return self

    @property
    def timeline_item(self) -> Optional[TimelineItem]:
        return self.builder.timeline_item

    @property
    def access_token(self) -> Optional[str]:
        return self.tokens.access_token

    @property
    def callback_url(self) -> str:
        url = self._callback_url or load_settings().callback_url
        if not url:
            raise ConfigurationError("No callback URL configured (set GLASS_CALLBACK_URL)")
        return url

    @callback_url.setter
    def callback_url(self, url: str) -> None:
        self._callback_url = url

    # ── Execution ─────────────────────────────────────────────────────────────

    def _execute(self, descriptor: ApiCallDescriptor) -> ResponseMap:
        result = self.transport.execute(descriptor)
        if not result.success:
            raise RemoteCallError(
                f"{descriptor.resource.value}.{descriptor.action.value} failed: "
                f"{result.error_message or 'no error message'}",
                status=result.status,
            )
        return result.data

    # ── Timeline ──────────────────────────────────────────────────────────────

    def get(self, item_id: str) -> ResponseMap:
        """Fetch a single timeline item."""
        return self._execute(self.builder.build_call_descriptor(ApiAction.GET, identifier=item_id))

    def insert(self, options: Optional[Mapping[str, Any]] = None) -> ResponseMap:
        """
        Insert a timeline item.

        options["content"] may be plain text, a mapping or a TimelineItem; any
        other keys are merged into the attached timeline item. Snake_case keys
        such as speakable_text are sent as speakableText.
        """
        item = self._execute(self.builder.build_call_descriptor(ApiAction.INSERT, options))
        logger.info("Inserted timeline item %s", item.get("id"))
        return item

    def patch(self, item_id: str, options: Optional[Mapping[str, Any]] = None) -> ResponseMap:
        """Patch fields on an existing item. item_id is never sent in the body."""
        item = self._execute(
            self.builder.build_call_descriptor(ApiAction.PATCH, options, identifier=item_id)
        )
        logger.info("Patched timeline item %s", item_id)
        return item

    def update(
        self,
        item_id: str,
        timeline_item: Union[TimelineItem, Mapping[str, Any], None] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> ResponseMap:
        """Replace an item. Content is the given item, else options / attached item."""
        opts = dict(options or {})
        if timeline_item is not None:
            opts["content"] = timeline_item
        item = self._execute(
            self.builder.build_call_descriptor(ApiAction.UPDATE, opts, identifier=item_id)
        )
        logger.info("Updated timeline item %s", item_id)
        return item

    def delete(self, item_id: str) -> ResponseMap:
        result = self._execute(self.builder.build_call_descriptor(ApiAction.DELETE, identifier=item_id))
        logger.info("Deleted timeline item %s", item_id)
        return result

    def list(self, as_hash: bool = True) -> list[Any]:
        """Fetch the full timeline (all pages) and refresh the cache."""
        return self.fetcher.list(as_hash=as_hash)

    def cached_list(self, as_hash: bool = True) -> list[Any]:
        """Timeline from cache, fetching all pages only on first use."""
        return self.fetcher.cached_list(as_hash=as_hash)

    def invalidate_cached_list(self) -> None:
        self.fetcher.invalidate()

    def timeline_list(self, as_hash: bool = True) -> list[Any]:
        warnings.warn(
            "timeline_list() is deprecated, use cached_list() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.cached_list(as_hash=as_hash)

    # ── Contacts ──────────────────────────────────────────────────────────────

    def get_contact(self, contact_id: str) -> ResponseMap:
        return self._execute(
            self.builder.build_call_descriptor(
                ApiAction.GET, identifier=contact_id, resource=Resource.CONTACTS
            )
        )

    def insert_contact(self, contact: Union[Contact, Mapping[str, Any]]) -> ResponseMap:
        """Insert a contact given as a Contact or a mapping of its fields."""
        body = self.builder.schema_body(Resource.CONTACTS, contact)
        created = self._execute(
            self.builder.build_call_descriptor(
                ApiAction.INSERT, resource=Resource.CONTACTS, body=body
            )
        )
        logger.info("Inserted contact %s", created.get("id"))
        return created

    # ── Locations ─────────────────────────────────────────────────────────────

    def get_location(self, location_id: str = "latest") -> ResponseMap:
        return self._execute(
            self.builder.build_call_descriptor(
                ApiAction.GET, identifier=location_id, resource=Resource.LOCATIONS
            )
        )

    # ── Subscriptions ─────────────────────────────────────────────────────────

    def subscribe(
        self,
        collection: str = "timeline",
        callback_url: Optional[str] = None,
        operations: Optional[list[str]] = None,
        user_token: Optional[str] = None,
        verify_token: Optional[str] = None,
    ) -> ResponseMap:
        """Subscribe callback_url (default: configured URL) to a collection's notifications."""
        body: dict[str, Any] = {
            "collection": collection,
            "callback_url": callback_url or self.callback_url,
        }
        if operations:
            body["operation"] = operations
        if user_token:
            body["user_token"] = user_token
        if verify_token:
            body["verify_token"] = verify_token

        subscription = self._execute(
            self.builder.build_call_descriptor(
                ApiAction.INSERT,
                resource=Resource.SUBSCRIPTIONS,
                body=self.builder.build_content_payload({"content": body}),
            )
        )
        logger.info("Subscribed %s to %s notifications", body["callback_url"], collection)
        return subscription
