"""
timeline_dump.py — print every timeline item of the account as JSON.

Usage:
    python scripts/timeline_dump.py
    python scripts/timeline_dump.py --token-file ~/cred/other_token.json --debug

Output (JSON to stdout):
    {
        "count": 3,
        "items": [ { "id": "...", "text": "...", "displayTime": "..." }, ... ]
    }
"""
from __future__ import annotations

import sys
from typing import Any

from glass.base import GlassScript
from glass.client import GlassClient


class TimelineDump(GlassScript):
    """Dump the full Glass timeline (all pages) as JSON."""

    def run(self, client: GlassClient) -> dict[str, Any]:
        items = client.cached_list(as_hash=True)
        self.logger.info("Timeline has %d item(s)", len(items))
        return {"count": len(items), "items": [item.to_dict() for item in items]}


if __name__ == "__main__":
    sys.exit(TimelineDump.main())
