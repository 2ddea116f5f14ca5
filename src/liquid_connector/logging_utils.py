from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

from liquid_connector.logging_context import get_logging_context
from liquid_connector.security.redaction import redact_data

# (logger, env override, level when root is DEBUG, level otherwise)
_HTTP_LOGGERS = (
    ("httpx", "HTTPX_LOG_LEVEL", logging.DEBUG, logging.INFO),
    ("httpcore", "HTTPCORE_LOG_LEVEL", logging.DEBUG, logging.WARNING),
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with structured extras and the bound context.

    Callers pass fields as ``extra={"extra": {...}}``. Everything is redacted
    before serialization.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            payload.update(fields)
        payload.update(get_logging_context())
        payload.update(self._exception_fields(record))
        return json.dumps(redact_data(payload), default=str)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, str]:
        if not record.exc_info:
            return {"traceback": record.exc_text} if record.exc_text else {}
        exc_type, exc_value, _ = record.exc_info
        return {
            "error_type": exc_type.__name__ if exc_type else "Exception",
            "error_message": "" if exc_value is None else str(exc_value),
            "traceback": self.formatException(record.exc_info),
        }


def parse_level(value: str | int | None, default: int) -> int:
    if isinstance(value, int):
        return value
    if value is None or not str(value).strip():
        return default
    level = logging.getLevelName(str(value).strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(level: str | int | None = None) -> None:
    """Install the JSON handler on the root logger.

    ``level`` falls back to ``LOG_LEVEL`` and then INFO. httpx and httpcore are
    quieter than the root unless it is at DEBUG; ``HTTPX_LOG_LEVEL`` and
    ``HTTPCORE_LOG_LEVEL`` override them.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)

    root_level = parse_level(level if level is not None else os.getenv("LOG_LEVEL"), logging.INFO)
    root.setLevel(root_level)

    for name, env_name, debug_level, default_level in _HTTP_LOGGERS:
        fallback = debug_level if root_level <= logging.DEBUG else default_level
        logging.getLogger(name).setLevel(parse_level(os.getenv(env_name), fallback))
