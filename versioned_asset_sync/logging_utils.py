"""
Structured JSON logging utilities.

Sync components log degraded remote operations instead of raising them.
The JSON formatter keeps those records queryable in cloud log sinks, and
the adapter stamps every record with the owner and asset key involved.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as single-line JSON objects with consistent fields:
    - timestamp: ISO 8601 format in UTC
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - Additional context fields from extra dict (owner, asset_key, ...)
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = None,
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        level: Logging level (default: INFO)
        logger_name: Specific logger to configure (default: root logger)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    logger.addHandler(handler)
    logger.setLevel(level)

    return logger


def get_sync_logger(name: str) -> logging.Logger:
    """
    Get a logger for sync components with consistent naming.

    Args:
        name: Component name (e.g., 'reconciler', 'upload')

    Returns:
        Logger instance with name 'versioned_asset_sync.{name}'
    """
    return logging.getLogger(f"versioned_asset_sync.{name}")


class SyncLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds asset context to all log messages.

    Usage:
        log = SyncLoggerAdapter(logger, {"owner": owner, "asset_key": key})
        log.warning("Remote write failed")
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Add extra context to log record."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def for_asset(logger: logging.Logger, owner: str, key: str) -> SyncLoggerAdapter:
    """Bind owner and asset key context to a logger."""
    return SyncLoggerAdapter(logger, {"owner": owner, "asset_key": key})
