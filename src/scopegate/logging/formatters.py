"""
Log formatters for scopegate.

JSON lines for log aggregation, colorized text for local development.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

CONTEXT_FIELDS = ("organization_id", "user_id", "role", "resource", "operation")

# Attributes every LogRecord has; anything else on a record came from ``extra``
# or from ContextFilter.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Scope fields (organization_id, user_id, role, resource, operation) sit at
    the top level next to ``level``, ``logger`` and ``message``; every other
    structured field goes under ``extra``.
    """

    def __init__(self, include_extra: bool = True) -> None:
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = {
                key: _jsonable(value)
                for key, value in vars(record).items()
                if key not in _RECORD_ATTRIBUTES
                and key not in CONTEXT_FIELDS
                and not key.startswith("_")
            }
            if extra:
                payload["extra"] = extra

        return json.dumps(payload, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """
    ``<time> <LEVEL> <logger> [org=..., resource.operation]: <message>``
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _scope(self, record: logging.LogRecord) -> str:
        parts = []
        organization_id = getattr(record, "organization_id", None)
        if organization_id is not None:
            parts.append(f"org={organization_id}")
        target = ".".join(
            str(v) for v in (getattr(record, "resource", None), getattr(record, "operation", None))
            if v is not None
        )
        if target:
            parts.append(target)
        return f" [{', '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        line = (
            f"{_timestamp(record):%Y-%m-%d %H:%M:%S} {level} "
            f"{record.name}{self._scope(record)}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
