"""Structured JSON logging for production observability"""

import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger.json import JsonFormatter

from forma_analytics.config import settings

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
}


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def describe_error(error: BaseException) -> Dict[str, str]:
    """Capture message, type name and stack of an exception"""
    return {
        "message": str(error),
        "name": type(error).__name__,
        "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    }


class StructuredLogger:
    """
    Severity-gated facade over a stdlib logger.

    - debug entries are only written in the development environment
    - nothing is written in the test environment unless enable_test_logs is set

    Context is attached under a single "context" key so it never collides
    with LogRecord attributes. message and error are positional-only, so
    any context key (including "message" or "error") lands in context.
    """

    def __init__(self, name: str = "forma_analytics"):
        self._logger = logging.getLogger(name)

    def _is_enabled(self, level: int) -> bool:
        if settings.environment == "test" and not settings.enable_test_logs:
            return False
        if level == logging.DEBUG and settings.environment != "development":
            return False
        return True

    def _write(
        self,
        level: int,
        message: str,
        context: Dict[str, Any],
        error: Optional[BaseException] = None,
    ) -> None:
        if not self._is_enabled(level):
            return

        extra: Dict[str, Any] = {}
        if context:
            extra["context"] = context
        if error is not None:
            extra["error"] = describe_error(error)

        self._logger.log(level, message, extra=extra)

    def debug(self, message: str, /, **context: Any) -> None:
        self._write(logging.DEBUG, message, context)

    def info(self, message: str, /, **context: Any) -> None:
        self._write(logging.INFO, message, context)

    def warn(self, message: str, /, **context: Any) -> None:
        self._write(logging.WARNING, message, context)

    def error(self, message: str, error: Optional[BaseException] = None, /, **context: Any) -> None:
        self._write(logging.ERROR, message, context, error)


logger = StructuredLogger()
