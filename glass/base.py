"""
GlassScript — abstract base class for Glass command-line scripts.

Provides:
  - Rotating file logger + stderr handler on the "glass" logger, scoped to <GLASS_LOGS_DIR>/<script>.log
  - A GlassClient built from the token file (--token-file overrides GLASS_TOKEN_FILE)
  - main() classmethod: parses --debug, runs the script, prints JSON to stdout
  - A clear exit (code 2) when the stored refresh token no longer works

Subclass usage:
    class MyScript(GlassScript):
        def run(self, client: GlassClient) -> dict:
            return {"count": len(client.cached_list())}

    if __name__ == "__main__":
        MyScript.main()
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from abc import ABC, abstractmethod
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, Sequence

from .accounts import TokenFileAccount
from .client import GlassClient
from .config import load_settings
from .errors import TokenRefreshError


class GlassScript(ABC):
    """Abstract base for Glass automation scripts."""

    def __init__(self, args: argparse.Namespace, log_level: int = logging.INFO) -> None:
        self.args = args
        self.script_name: str = type(self).__name__.lower()
        self.logger: logging.Logger = self._setup_logger(log_level, load_settings().logs_dir)

    # ── Logging ───────────────────────────────────────────────────────────────

    def _setup_logger(self, log_level: int, logs_dir: Path) -> logging.Logger:
        """Log to <logs_dir>/<script_name>.log (2 MB x 5 backups) and stderr.

        Handlers sit on the "glass" package logger, so client and transport
        messages land in the same file as the script's own.
        """
        logs_dir.mkdir(parents=True, exist_ok=True)

        package_logger = logging.getLogger("glass")
        package_logger.setLevel(log_level)
        # Drop handlers left by an earlier script in this process
        for handler in [h for h in package_logger.handlers if getattr(h, "_glass_script", False)]:
            package_logger.removeHandler(handler)
            handler.close()

        fmt = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler = RotatingFileHandler(
            logs_dir / f"{self.script_name}.log",
            maxBytes=2_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        stream_handler = logging.StreamHandler()
        for handler in (file_handler, stream_handler):
            handler.setFormatter(fmt)
            handler._glass_script = True
            package_logger.addHandler(handler)

        return logging.getLogger(f"glass.scripts.{self.script_name}")

    # ── Hooks ─────────────────────────────────────────────────────────────────

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Override to add script-specific arguments."""

    def build_client(self) -> GlassClient:
        account = TokenFileAccount.load(self.args.token_file)
        return GlassClient(account)

    @abstractmethod
    def run(self, client: GlassClient) -> dict[str, Any]:
        """Do the work; return a JSON-serialisable dict (printed to stdout)."""

    # ── CLI entrypoint ────────────────────────────────────────────────────────

    @classmethod
    def main(cls, argv: Optional[Sequence[str]] = None) -> int:
        doc = (cls.__doc__ or cls.__name__).strip().splitlines()[0]
        parser = argparse.ArgumentParser(description=doc)
        parser.add_argument("--debug", action="store_true", help="Enable DEBUG-level logging")
        parser.add_argument("--token-file", default=None, help="Path to the account token JSON")
        cls.add_arguments(parser)
        args = parser.parse_args(argv)

        script = cls(args, log_level=logging.DEBUG if args.debug else logging.INFO)

        t0 = time.monotonic()
        try:
            result = script.run(script.build_client())
        except TokenRefreshError as exc:
            script.logger.error("Authorization expired, re-consent required: %s", exc)
            print(json.dumps({"error": "reauthorization_required", "detail": str(exc)}), file=sys.stderr)
            return 2
        except Exception:
            script.logger.exception("Script failed after %.2fs", time.monotonic() - t0)
            raise

        script.logger.info("Completed in %.2fs", time.monotonic() - t0)
        print(json.dumps(result, indent=2, default=str))
        return 0
