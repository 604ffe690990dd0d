"""Centralized logging configuration for galileo-trace."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone


# Identifiers TraceLogger and the resolver attach through ``extra=``.
CONTEXT_FIELDS = ("trace_id", "project_id", "log_stream_id", "session_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per log line, with trace context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level_name: str | None = None, log_format: str | None = None) -> None:
    """Configure the root logger from GALILEO_LOG_LEVEL / GALILEO_LOG_FORMAT.

    Explicit arguments win over settings. Safe to call multiple times.
    """
    from galileo_trace.config import settings

    level_name = level_name or settings.log_level
    log_format = log_format or settings.log_format
    level = getattr(logging, level_name.upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    # Quiet HTTP client request logs unless we're at DEBUG
    if level > logging.DEBUG:
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)
