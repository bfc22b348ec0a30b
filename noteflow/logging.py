"""Client-wide logging configuration.

Provides a JSON formatter with a minimal, consistent set of fields:
- timestamp (UTC ISO8601), level, logger, service, environment, message
- Supports structured extras via `logger.warning(msg, extra={...})`, which are
  merged into the JSON (background refresh failures use this for `operation`).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from noteflow.core.settings import get_settings

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter with stable keys and UTC timestamps."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        settings = get_settings()
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        base: Dict[str, Any] = {
            "timestamp": dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "service": settings.service_name,
            "environment": settings.environment,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k in _RESERVED:
                continue
            # Don't overwrite base keys
            if k not in base:
                base[k] = v
        if record.exc_info:
            etype = getattr(record.exc_info[0], "__name__", str(record.exc_info[0]))
            base["error"] = {
                "class": etype,
                "message": str(record.exc_info[1])[:500],
            }
            operation = getattr(record.exc_info[1], "operation", None)
            if operation:
                base["error"]["operation"] = operation
        try:
            return json.dumps(base, ensure_ascii=False)
        except (TypeError, ValueError):
            for k, v in list(base.items()):
                try:
                    json.dumps({k: v})
                except (TypeError, ValueError):
                    base[k] = repr(v)
            return json.dumps(base, ensure_ascii=False)


def setup_logging(level_name: str | None = None) -> None:
    """Configure root logger to output one-line JSON logs."""

    settings = get_settings()
    level = getattr(logging, (level_name or settings.log_level).upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # status pollers call the backend every few seconds
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


__all__ = ["setup_logging"]
