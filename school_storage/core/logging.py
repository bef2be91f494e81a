"""
Structured logging configuration with JSON formatter.

This module provides:
- JSONFormatter for structured JSON logging
- Storage context fields (bucket, key, operation) passed via ``extra``
- setup_logging() to configure the package logger at process start
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Attributes every LogRecord carries; anything else came from ``extra``
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'message', 'taskName',
])

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for storage logs.

    Example output:
    {
        "timestamp": "2025-01-19T10:30:45.123456+00:00",
        "level": "INFO",
        "logger": "school_storage.storage.gateway",
        "message": "Created and configured bucket: gallery-images",
        "bucket": "gallery-images"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Custom fields from extra={'bucket': ..., 'key': ...}
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_entry[key] = self._serialize_value(value)

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize values that json cannot handle natively."""
        if isinstance(value, datetime):
            return value.isoformat()

        if isinstance(value, bytes):
            return f"<binary data: {len(value)} bytes>"

        if isinstance(value, Exception):
            return {
                "type": type(value).__name__,
                "message": str(value),
            }

        return value


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    logger_name: Optional[str] = "school_storage"
) -> logging.Logger:
    """
    Configure logging for the storage package.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Emit JSON lines instead of plain text
        logger_name: Name of logger to configure (None for root logger)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)

    # Prevent duplicate output through the root logger
    logger.propagate = False

    return logger
