"""Unit tests for JSON log formatting."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from dns_zone_receiver.logging_config import JSONFormatter, configure_logging, parse_log_level


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("dns_zone_receiver.test", logging.ERROR, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_context_fields() -> None:
    payload = json.loads(
        JSONFormatter().format(_record("failed to save zone file", context={"path": "/x"}))
    )

    assert payload["level"] == "ERROR"
    assert payload["service"] == "dns-zone-receiver"
    assert payload["logger"] == "dns_zone_receiver.test"
    assert payload["message"] == "failed to save zone file"
    assert payload["context"] == {"path": "/x"}
    assert payload["timestamp"].endswith("Z")


def test_formatter_includes_exception() -> None:
    try:
        raise OSError("disk full")
    except OSError:
        record = logging.LogRecord(
            "t", logging.ERROR, __file__, 1, "boom", None, sys.exc_info()
        )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["exception"]["type"] == "OSError"
    assert payload["exception"]["message"] == "disk full"
    assert "context" not in payload


@pytest.mark.parametrize(
    ("name", "level"),
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
        ("verbose", logging.INFO),
        ("", logging.INFO),
    ],
)
def test_parse_log_level(name: str, level: int) -> None:
    assert parse_log_level(name) == level


def test_configure_logging_writes_json_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("warn")
        logging.getLogger("dns_zone_receiver.test").info("hidden")
        logging.getLogger("dns_zone_receiver.test").warning("shown")
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "shown"
