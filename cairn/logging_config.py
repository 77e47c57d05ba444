"""
Central logging configuration for the Cairn service.

Provides:
- Structured logging (JSON in production, human-readable in development)
- Correlation via contextvars: correlation_scope binds the request id in the
  middleware and a pass-<hex> id for reconciliation passes run outside one
- Environment-aware log levels

Usage:
    from cairn.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Proof skipped", extra={"proof_id": proof_id})
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

# Correlation id - HTTP request id or reconciliation pass id
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "correlation_id",
))


def get_correlation_id() -> Optional[str]:
    """Get the current correlation id from context, if set."""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: str, *, inherit: bool = False) -> Iterator[str]:
    """
    Bind a correlation id for the duration of the block and yield the id in effect.

    With inherit=True an id bound by an enclosing scope wins, so a
    reconciliation pass started from a request logs under the request id.
    """
    current = correlation_id_var.get()
    if inherit and current is not None:
        yield current
        return
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Filter that adds correlation_id to log records from context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """Format log records as JSON for production log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        corr_id = getattr(record, "correlation_id", None)
        if corr_id and corr_id != "-":
            log_obj["correlation_id"] = corr_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Anything passed via extra= in the log call
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and value is not None:
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj)


def _create_dev_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] corr=%(correlation_id)s %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: 'development' or 'production'
        debug: If True, use DEBUG level regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        if not hasattr(record, "correlation_id"):
            setattr(record, "correlation_id", "-")
        return record

    logging.setLogRecordFactory(record_factory)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates on reload
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())

    if environment == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(_create_dev_formatter())

    root.addHandler(handler)

    # Reduce noise from third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Records automatically carry correlation_id when one is set. Use extra={}
    for additional structured fields:
        logger.warning("Token lookup failed", extra={"token_id": str(token_id)})
    """
    return logging.getLogger(name)
