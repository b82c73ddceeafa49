"""Tests for structlog configuration."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
import structlog

from kubestatus.observability.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


class TestSetupLogging:
    def test_console_is_the_default_renderer(self) -> None:
        setup_logging("info")
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)

    def test_console_lines_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("info")
        get_logger("loader").info("graph_loaded", nodes=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "graph_loaded" in captured.err
        assert "component=loader" in captured.err
        assert "nodes=3" in captured.err

    def test_json_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("info", "json")
        get_logger("loader").info("graph_loaded", nodes=3)

        line = json.loads(capsys.readouterr().err)
        assert line["event"] == "graph_loaded"
        assert line["component"] == "loader"
        assert line["level"] == "info"
        assert "ts" in line

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("warning", "json")
        get_logger("loader").info("graph_loaded")
        assert capsys.readouterr().err == ""
