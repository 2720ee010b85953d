# tests/core/test_logging.py
"""Tests for structured logging setup."""

import json
import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_sets_root_level(self) -> None:
        from flowbench.core.logging import configure_logging

        configure_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        from flowbench.core.logging import configure_logging, get_logger

        configure_logging("INFO", json_output=True)

        get_logger("flowbench.test").info("Pipeline run started", run_type="run")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)

        assert event["event"] == "Pipeline run started"
        assert event["run_type"] == "run"
        assert event["level"] == "info"

    def test_debug_filtered_at_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        from flowbench.core.logging import configure_logging, get_logger

        configure_logging("INFO")
        get_logger("flowbench.test").debug("Entering stage", stage="Finalizing...")

        assert "Entering stage" not in capsys.readouterr().err
