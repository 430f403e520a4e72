"""
insert_card.py — insert a text or HTML card into the account's timeline.

Usage:
    python scripts/insert_card.py --text "Standup in 5 minutes"
    python scripts/insert_card.py --html-file card.html --display-time 2026-03-01T09:00:00Z
    python scripts/insert_card.py --text "Call back" --speakable "Call back Dana"

Output (JSON to stdout):
    { "id": "...", "displayTime": "..." }
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from glass.base import GlassScript
from glass.client import GlassClient
from glass.models import TimelineItem


class InsertCard(GlassScript):
    """Insert a single timeline card."""

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        body = parser.add_mutually_exclusive_group(required=True)
        body.add_argument("--text", metavar="TEXT", help="Plain-text card body.")
        body.add_argument("--html-file", metavar="PATH", help="File with the card's HTML.")
        parser.add_argument("--display-time", metavar="ISO8601", default=None)
        parser.add_argument("--speakable", metavar="TEXT", default=None,
                            help="Text read aloud by the 'read aloud' menu item.")

    def run(self, client: GlassClient) -> dict[str, Any]:
        item = TimelineItem(
            text=self.args.text,
            html=Path(self.args.html_file).read_text(encoding="utf-8") if self.args.html_file else None,
            display_time=self.args.display_time,
            speakable_text=self.args.speakable,
        )
        if item.speakable_text:
            item.menu_items.append({"action": "READ_ALOUD"})

        created = client.insert({"content": item})
        return {"id": created.get("id"), "displayTime": created.get("displayTime")}


if __name__ == "__main__":
    sys.exit(InsertCard.main())
