"""Structured JSON logging for the receiver.

Every record is written to stdout as one JSON object:

    {"timestamp": "2026-10-19T10:30:00.000Z", "level": "INFO",
     "service": "dns-zone-receiver", "logger": "dns_zone_receiver.service",
     "message": "zone file uploaded successfully",
     "context": {"path": "/srv/zones/example.com/all.zone"}}

Callers attach fields with ``extra={"context": {...}}``.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "dns-zone-receiver"

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as single-line JSON."""

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            log_entry["context"] = dict(context)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        return json.dumps(log_entry, default=str)

    def _format_timestamp(self, created: float) -> str:
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def parse_log_level(name: str) -> int:
    """Map a level name to a logging level, defaulting to INFO."""
    return _LEVEL_NAMES.get(name.strip().upper(), logging.INFO)


def configure_logging(log_level: str = "info") -> logging.Logger:
    """Install the JSON stdout handler on the root logger.

    Call once at startup. Existing root handlers are replaced.

    Args:
        log_level: Level name; unknown names fall back to INFO.

    Returns:
        The configured root logger.
    """
    level = parse_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    return root_logger
