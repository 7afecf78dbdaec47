"""JSON structured logging for the content indexer.

Every record is emitted as one JSON object on stdout carrying the service
name, level, origin and the correlation id of the change event being
dispatched. Values passed through ``extra=`` (path, resource_type, handler,
...) become top-level keys. Uses python-json-logger for the JSON rendering.
"""

import logging
import sys
from typing import Any, TextIO

from pythonjsonlogger.json import JsonFormatter

from packages.common.config import get_config
from packages.common.tracing import get_correlation_id

SERVICE_NAME = "content-indexer"

# Client libraries that log every HTTP request at INFO.
_CHATTY_LOGGERS = ("elastic_transport", "urllib3")


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the correlation id of the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


class IndexerJsonFormatter(JsonFormatter):
    """JSON formatter adding service, origin and correlation fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["service"] = SERVICE_NAME
        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno
        log_record["correlation_id"] = getattr(record, "correlation_id", None)


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Route all logging through one JSON handler.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Log level name; defaults to LOG_LEVEL from config.
        stream: Output stream; defaults to stdout.

    Example:
        >>> setup_logging("DEBUG")
        >>> get_logger(__name__).info("Dispatched", extra={"path": "/content/doc1"})
    """
    log_level = (level or get_config().log_level).upper()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(IndexerJsonFormatter("%(message)s"))
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "CorrelationIdFilter",
    "IndexerJsonFormatter",
    "SERVICE_NAME",
    "get_logger",
    "setup_logging",
]
