# ruff: noqa: PLR6301
"""Centralized logging configuration for sqlkit.

This module provides the package loggers, structured JSON logging with
correlation IDs, and the SQL logger hooks installed with ``with_logger``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import IO, TYPE_CHECKING, Any

import msgspec

if TYPE_CHECKING:
    from logging import LogRecord

    from sqlkit.typing import Renderable

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "noop_logger",
    "set_correlation_id",
    "std_logger",
)

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_json_encoder = msgspec.json.Encoder()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set, or None to clear
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter with correlation ID support."""

    def format(self, record: LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if correlation_id := get_correlation_id():
            log_entry["correlation_id"] = correlation_id

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)  # pyright: ignore

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return _json_encoder.encode(log_entry).decode("utf-8")


class CorrelationIDFilter(logging.Filter):
    """Filter that adds correlation ID to log records."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance with standardized configuration.

    Args:
        name: Logger name. If not provided, returns the root sqlkit logger.

    Returns:
        Configured logger instance
    """
    if name is None:
        return logging.getLogger("sqlkit")

    if not name.startswith("sqlkit"):
        name = f"sqlkit.{name}"

    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())

    return logger


def configure_logging(level: str = "INFO", format_style: str = "structured", stream: IO[str] | None = None) -> None:
    """Send sqlkit's loggers, statement logging included, to one stream.

    ``with_logger(std_logger)`` logs every statement on ``sqlkit.sql``. With
    the structured style each entry is a JSON object carrying the ``sql`` and
    ``parameter_count`` fields.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: Log format style ("structured" for JSON, "simple" for text)
        stream: Where to write, stdout by default
    """
    root_logger = logging.getLogger("sqlkit")
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    formatter: logging.Formatter
    if format_style == "structured":
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    root_logger.debug(
        "sqlkit logging configured", extra={"extra_fields": {"level": level, "format_style": format_style}}
    )


_sql_logger = get_logger("sql")


def noop_logger(statement: Renderable) -> None:
    """Default SQL logger hook, does nothing."""


def std_logger(statement: Renderable) -> None:
    """Render ``statement`` and log it with its parameters on the ``sqlkit.sql`` logger."""
    sql, parameters, error = statement.render()
    if error is not None:
        _sql_logger.info("sql: error %s", error)
        return
    _sql_logger.info(
        "sql: executing %s -- %r",
        sql,
        list(parameters),
        extra={"extra_fields": {"sql": sql, "parameter_count": len(parameters)}},
    )
