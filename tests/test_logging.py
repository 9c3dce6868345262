"""Tests for structlog setup."""

import json

import pytest
import structlog

from core.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_output_carries_bound_context(capsys):
    setup_logging("INFO", json=True)

    get_logger("tests", batch_id=7).info("Production batch completed", quantity=3)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "Production batch completed"
    assert payload["batch_id"] == 7
    assert payload["quantity"] == 3
    assert payload["level"] == "info"
    assert "timestamp" in payload


def test_level_filtering(capsys):
    setup_logging("WARNING", json=True)

    log = get_logger("tests")
    log.info("hidden")
    log.warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out


def test_unknown_level_falls_back_to_info(capsys):
    setup_logging("chatty", json=True)
    get_logger("tests").info("visible")
    assert "visible" in capsys.readouterr().out
