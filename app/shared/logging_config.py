"""
Structured logging configuration for the RenoDesk data service.

JSON lines in production, a human-readable layout when ENVIRONMENT is
"development". Every record carries the correlation id of the request or
script run it belongs to.

Usage:
    from app.shared.logging_config import setup_logging

    # At process start (main.py, scripts/):
    setup_logging(service_name=settings.SERVICE_NAME)

    # In modules:
    logger = logging.getLogger("RenoDesk.Database.Quotes")
    logger.info("Quote saved", extra={"quote_id": quote_id})

Output format (JSON, one line per log):
    {
        "timestamp": "2026-01-28T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "RenoDesk.Database.Quotes",
        "message": "Quote saved",
        "service": "renodesk-data-service",
        "correlation_id": "abc123",
        "quote_id": "42"
    }
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings

# Attributes every LogRecord has; anything else was passed through `extra`
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}

# Chatty SDK and transport loggers
_NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "hpack",
    "websockets",
    "realtime",
    "postgrest",
    "storage3",
    "supabase",
    "asyncio",
]


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class CorrelationIdFilter(logging.Filter):
    """Injects the current correlation id into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            from app.shared.correlation import get_correlation_id
            record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Single-line layout for local development."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        extras = ", ".join(f"{key}={value}" for key, value in _extra_fields(record).items())
        formatted = f"{timestamp} [{record.levelname}] [{correlation_id}] {record.name}: {record.getMessage()}"
        if extras:
            formatted += f" | {extras}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(
    service_name: Optional[str] = None,
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        service_name: Reported in every JSON line. Defaults to settings.SERVICE_NAME
        level: Log level name. Defaults to settings.LOG_LEVEL
        json_output: JSON lines when True. Defaults to True unless
                     settings.ENVIRONMENT is "development"
    """
    service_name = service_name or settings.SERVICE_NAME
    level = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level, logging.INFO)

    if json_output is None:
        json_output = settings.ENVIRONMENT.lower() != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter(service_name) if json_output else HumanReadableFormatter())
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("RenoDesk.Startup").info(
        "Logging configured",
        extra={
            "log_level": level,
            "json_output": json_output,
            "environment": settings.ENVIRONMENT,
        },
    )
