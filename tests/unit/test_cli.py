"""Tests for the ``kubestatus`` click command."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from kubestatus.cli import main
from kubestatus.errors import ResourceLoadError
from kubestatus.models.config import StatusConfig


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[StatusConfig]:
    """Replace the cluster round trip with a stub that records its input."""
    seen: list[StatusConfig] = []

    async def fake_describe(status: StatusConfig) -> str:
        seen.append(status)
        return "In project shop\n"

    monkeypatch.setattr(main, "_describe", fake_describe)
    monkeypatch.setattr(main, "setup_logging", lambda level, fmt: None)
    monkeypatch.delenv("KUBESTATUS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("KUBESTATUS_LOG_FORMAT", raising=False)
    monkeypatch.delenv("KUBESTATUS_LOAD_TIMEOUT", raising=False)
    return seen


class TestCli:
    def test_prints_report_verbatim(self, captured: list[StatusConfig]) -> None:
        result = CliRunner().invoke(main.cli, ["-n", "shop"])

        assert result.exit_code == 0
        assert result.output == "In project shop\n"
        assert captured[0].namespace == "shop"
        assert captured[0].suggest is False

    def test_flags_override_config(self, captured: list[StatusConfig]) -> None:
        result = CliRunner().invoke(main.cli, ["-A", "-v", "--server", "https://api.example.com"])

        assert result.exit_code == 0
        status = captured[0]
        assert status.all_namespaces is True
        assert status.suggest is True
        assert status.server == "https://api.example.com"

    def test_load_failure_exits_nonzero(self, monkeypatch: pytest.MonkeyPatch, captured: list[StatusConfig]) -> None:
        async def failing(status: StatusConfig) -> str:
            raise ResourceLoadError([RuntimeError("connection refused")])

        monkeypatch.setattr(main, "_describe", failing)
        result = CliRunner().invoke(main.cli, [])

        assert result.exit_code == 1
        assert "unable to load resources: connection refused" in result.output

    def test_bad_environment_is_a_usage_error(
        self, monkeypatch: pytest.MonkeyPatch, captured: list[StatusConfig]
    ) -> None:
        monkeypatch.setenv("KUBESTATUS_LOG_LEVEL", "loud")
        result = CliRunner().invoke(main.cli, [])
        assert result.exit_code == 2
        assert captured == []
