"""Provider logging configuration with JSON formatting.

Reconcilers log advisory warnings (tap device failures, port actions that did
not apply) with structured context in ``extra``. The JSON formatter carries
those fields through so they can be filtered by resource id downstream.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from ovs_provider.config import settings


# Attributes present on every LogRecord; anything else came in via ``extra``.
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}

_RESOURCE_ATTRS = ("resource_type", "resource_id")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Formats log records as JSON objects with consistent fields:
    - timestamp: ISO8601 formatted timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - service: Always "ovs-provider"
    - resource_type, resource_id: The resource a reconciler was working on,
      lifted out of ``extra`` so entries can be filtered per resource
    - extra: Any other context fields
    """

    def __init__(self, service: str = "ovs-provider"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _RESOURCE_ATTRS:
                log_entry[key] = value
            elif key not in _STANDARD_ATTRS:
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


class TextFormatter(logging.Formatter):
    """Text log formatter (development use).

    [timestamp] LEVEL logger: message [resource_type resource_id]
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as text."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        message = f"[{timestamp}] {record.levelname:8} {record.name}: {record.getMessage()}"

        resource_type = getattr(record, "resource_type", None)
        resource_id = getattr(record, "resource_id", None)
        if resource_type or resource_id:
            message += f" [{resource_type or '-'} {resource_id or '-'}]"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def setup_logging() -> None:
    """Configure provider logging based on settings.

    Sets up the root logger with either JSON or text formatting
    based on the log_format setting.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # stderr keeps stdout free for anything the orchestrator reads
    handler = logging.StreamHandler(sys.stderr)

    if settings.log_format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
