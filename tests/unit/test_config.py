"""Tests for environment-based configuration loading."""

from __future__ import annotations

import os

import pytest

from kubestatus.config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("KUBESTATUS_"):
            monkeypatch.delenv(key)


class TestLoadConfig:
    def test_defaults(self) -> None:
        config = load_config()

        assert config.status.namespace == "default"
        assert config.status.all_namespaces is False
        assert config.status.suggest is False
        assert config.status.command_name == "oc"
        assert config.status.logs_command_name == "oc logs"
        assert config.status.set_probe_command_name == "oc set probe"
        assert config.status.load_timeout_seconds == 0
        assert config.log.level == "warning"
        assert config.log.format == "console"

    def test_command_name_flows_into_derived_commands(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_COMMAND_NAME", "kubectl")
        config = load_config()
        assert config.status.logs_command_name == "kubectl logs"
        assert config.status.set_probe_command_name == "kubectl set probe"

    def test_explicit_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_NAMESPACE", "shop")
        monkeypatch.setenv("KUBESTATUS_SUGGEST", "yes")
        monkeypatch.setenv("KUBESTATUS_LOGS_COMMAND", "stern")
        monkeypatch.setenv("KUBESTATUS_LOG_LEVEL", "DEBUG")

        config = load_config()

        assert config.status.namespace == "shop"
        assert config.status.suggest is True
        assert config.status.logs_command_name == "stern"
        assert config.log.level == "debug"

    @pytest.mark.parametrize(("raw", "expected"), [("30", 30), ("-5", 0), ("9000", 300)])
    def test_load_timeout_is_clamped(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
        monkeypatch.setenv("KUBESTATUS_LOAD_TIMEOUT", raw)
        assert load_config().status.load_timeout_seconds == expected

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_LOG_LEVEL", "loud")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_json_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_LOG_FORMAT", "JSON")
        assert load_config().log.format == "json"

    def test_invalid_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid log format"):
            load_config()

    def test_non_numeric_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESTATUS_LOAD_TIMEOUT", "soon")
        with pytest.raises(ValueError):
            load_config()
