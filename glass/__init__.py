"""
Glass — client for the Google Mirror (Glass) timeline API.

Package structure:
    glass.client      — GlassClient facade (timeline CRUD, list, contacts, locations)
    glass.tokens      — TokenLifecycleManager (staleness check, refresh, persistence)
    glass.payload     — RequestBuilder (camelCase payloads, displayTime format, descriptors)
    glass.pagination  — PaginatedListFetcher (page loop + per-client cache)
    glass.transport   — MirrorTransport (google-auth credentials, googleapiclient calls)
    glass.accounts    — GoogleAccount protocol, TokenFileAccount
    glass.models      — Typed dataclasses (TimelineItem, Contact, descriptors)
    glass.response    — ResponseMap (case-insensitive JSON map)
    glass.config      — API keys and settings from environment / .env
    glass.errors      — Error kinds
    glass.base        — GlassScript base for CLI scripts
"""
from .client import GlassClient
from .errors import (
    GlassError,
    InvalidActionError,
    MalformedResponseError,
    RemoteCallError,
    TokenRefreshError,
    TransportTimeoutError,
)

__all__ = [
    "GlassClient",
    "GlassError",
    "InvalidActionError",
    "MalformedResponseError",
    "RemoteCallError",
    "TokenRefreshError",
    "TransportTimeoutError",
]
