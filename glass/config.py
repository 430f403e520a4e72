"""
Settings for the Glass client, read from the environment.

A .env file is loaded first (path from GLASS_ENV_FILE, default ~/glass/.env),
so local development can keep keys out of the shell profile.

Usage:
    from glass.config import load_api_keys, load_settings
    keys = load_api_keys()
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

ENV_FILE = Path(os.environ.get("GLASS_ENV_FILE", "~/glass/.env")).expanduser()
load_dotenv(ENV_FILE)

DEFAULT_TOKEN_FILE = "~/cred/glass_token.json"
DEFAULT_LOGS_DIR = "~/glass/logs"
TOKEN_URI = "https://oauth2.googleapis.com/token"

SCOPES: list[str] = [
    "https://www.googleapis.com/auth/glass.timeline",
    "https://www.googleapis.com/auth/glass.location",
]


@dataclass(frozen=True)
class ApiKeys:
    """Application-level OAuth client, shared by every account."""

    client_id: str
    client_secret: str


@dataclass(frozen=True)
class Settings:
    token_file: Path
    logs_dir: Path
    callback_url: Optional[str] = None


def load_api_keys() -> ApiKeys:
    """Read GLASS_CLIENT_ID / GLASS_CLIENT_SECRET, raising if either is unset."""
    client_id = os.environ.get("GLASS_CLIENT_ID", "")
    client_secret = os.environ.get("GLASS_CLIENT_SECRET", "")
    missing = [
        name
        for name, value in (("GLASS_CLIENT_ID", client_id), ("GLASS_CLIENT_SECRET", client_secret))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing OAuth client settings: {', '.join(missing)} "
            f"(set them in the environment or {ENV_FILE})"
        )
    return ApiKeys(client_id=client_id, client_secret=client_secret)


def load_settings() -> Settings:
    return Settings(
        token_file=Path(os.environ.get("GLASS_TOKEN_FILE", DEFAULT_TOKEN_FILE)).expanduser(),
        logs_dir=Path(os.environ.get("GLASS_LOGS_DIR", DEFAULT_LOGS_DIR)).expanduser(),
        callback_url=os.environ.get("GLASS_CALLBACK_URL") or None,
    )
