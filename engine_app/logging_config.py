"""JSON logging for the outfit recommendation engine.

Every record carries the correlation id and engine operation active in the
current context, so the log lines of one recommendation pass can be joined
even when several passes interleave on the event loop.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import time
import uuid
from typing import Any, Dict, Iterator, Optional, TextIO

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)
OPERATION: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("operation", default=None)

# attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRIBUTES = set(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {"message"}

SENSITIVE_KEYS = frozenset({"user_id", "location", "api_key", "appid", "brand", "price", "email"})
_EMAIL_PATTERN = re.compile(r"[\w.\-]+@[\w.\-]+\.\w+")
_QUERY_SECRET_PATTERN = re.compile(r"(appid|api_key)=[^&\s]+", re.IGNORECASE)


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", record.getMessage()),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
            "operation": getattr(record, "operation", None) or OPERATION.get(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = "[redacted]" if key in SENSITIVE_KEYS else redact_for_log(value)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None, stream: TextIO | None = None) -> None:
    """Install a single JSON handler on the root logger."""

    desired_level = level or os.getenv("LOG_LEVEL", "INFO")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=desired_level, handlers=[handler], force=True)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring JSON output on first use."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def _redact_string(value: str) -> str:
    value = _QUERY_SECRET_PATTERN.sub(lambda match: f"{match.group(1)}=[redacted]", value)
    return _EMAIL_PATTERN.sub("[redacted-email]", value)


def redact_for_log(payload: Any) -> Any:
    """Scrub user identifiers, locations, API keys and purchase details."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _redact_string(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(value) for value in payload]
    return _redact_string(str(payload))


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Return the active correlation id, assigning one if none is set."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    new_id = uuid.uuid4().hex
    CORRELATION_ID.set(new_id)
    return new_id


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Temporarily bind a correlation id."""

    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit a structured event; ``correlation_id`` and ``exc_info`` are lifted out of ``fields``."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None) -> Iterator[str]:
    """Bind a fresh correlation id and operation name around one engine operation.

    The elapsed time is logged at debug level when the block exits, whether
    or not it raised.
    """

    logger = logging.getLogger(__name__)
    operation_token = OPERATION.set(name)
    start = time.perf_counter()
    with correlation_context(correlation_id) as scoped_id:
        try:
            yield scoped_id
        finally:
            logger.debug(
                "operation finished",
                extra={"event": "operation_finished", "duration_ms": round((time.perf_counter() - start) * 1000, 2)},
            )
            OPERATION.reset(operation_token)


__all__ = [
    "CORRELATION_ID",
    "OPERATION",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "redact_for_log",
    "operation_context",
]
