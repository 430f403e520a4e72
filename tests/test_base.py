"""Tests for the GlassScript CLI base."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from glass.base import GlassScript
from glass.client import GlassClient
from glass.config import ApiKeys
from glass.errors import TokenRefreshError
from tests.conftest import FakeAccount, FakeTransport


class CountScript(GlassScript):
    """Count timeline items."""

    transport = FakeTransport()

    def build_client(self) -> GlassClient:
        return GlassClient(
            FakeAccount(), transport=self.transport, api_keys=_keys()
        )

    def run(self, client: GlassClient) -> dict[str, Any]:
        return {"count": len(client.cached_list())}


class ExpiredScript(CountScript):
    """Always needs a refresh that fails."""

    def build_client(self) -> GlassClient:
        transport = FakeTransport(refresh_error=TokenRefreshError("invalid_grant"))
        return GlassClient(FakeAccount(expired=True), transport=transport, api_keys=_keys())


class BrokenScript(CountScript):
    """Fails with an unexpected error."""

    def run(self, client: GlassClient) -> dict[str, Any]:
        raise RuntimeError("disk full")


def _keys() -> ApiKeys:
    return ApiKeys("id", "secret")


@pytest.fixture(autouse=True)
def logs_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GLASS_LOGS_DIR", str(tmp_path / "logs"))
    yield tmp_path / "logs"
    package_logger = logging.getLogger("glass")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


class TestMain:
    def test_prints_json_result(self, capsys, logs_dir: Path) -> None:
        assert CountScript.main([]) == 0
        out = capsys.readouterr().out
        assert json.loads(out[out.index("{"):]) == {"count": 0}
        assert (logs_dir / "countscript.log").exists()

    def test_refresh_failure_exits_with_reauth_code(self, capsys) -> None:
        assert ExpiredScript.main(["--debug"]) == 2
        assert "reauthorization_required" in capsys.readouterr().err

    def test_unexpected_error_logged_then_raised(self, logs_dir: Path) -> None:
        with pytest.raises(RuntimeError, match="disk full"):
            BrokenScript.main([])
        for handler in logging.getLogger("glass").handlers:
            handler.flush()
        log = (logs_dir / "brokenscript.log").read_text(encoding="utf-8")
        assert "Script failed" in log
        assert "RuntimeError: disk full" in log
