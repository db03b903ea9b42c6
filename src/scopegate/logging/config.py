"""
Logging configuration for scopegate.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import Enum
from typing import Any, TextIO

from scopegate.logging.context import ContextFilter
from scopegate.logging.formatters import JSONFormatter, TextFormatter

ROOT_LOGGER = "scopegate"

# Keyword arguments the stdlib logging calls understand themselves.
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def number(self) -> int:
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    TEXT = "text"


class ScopeGateLogger(logging.LoggerAdapter):
    """
    Logger that accepts structured fields as keyword arguments.

    Example:
        logger = get_logger(__name__)
        logger.warning("Column missing", resource="branches", column="organization_id")
    """

    def __init__(self, name: str) -> None:
        super().__init__(logging.getLogger(name), {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        if fields:
            kwargs["extra"] = {**kwargs.get("extra", {}), **fields}
        return msg, kwargs

    def is_enabled_for(self, level: int | LogLevel) -> bool:
        if isinstance(level, LogLevel):
            level = level.number
        return self.isEnabledFor(level)


def get_logger(name: str) -> ScopeGateLogger:
    """
    Get a scopegate logger by name.

    Args:
        name: Logger name (typically ``__name__``)
    """
    return ScopeGateLogger(name)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    format: LogFormat | str = LogFormat.JSON,
    output: TextIO | None = None,
    include_context: bool = True,
    use_colors: bool = True,
) -> None:
    """
    Send the ``scopegate`` logger hierarchy to a stream.

    Replaces any handler installed by an earlier call; handlers added by the
    application are left alone. Records stop propagating to the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: ``json`` for production, ``text`` for development
        output: Output stream (defaults to stderr)
        include_context: Attach the active organization/resource fields
        use_colors: Colorize text output (ignored for JSON)

    Example:
        configure_logging(level="DEBUG", format="text")
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    format = LogFormat(format.lower()) if isinstance(format, str) else format

    handler = logging.StreamHandler(output or sys.stderr)
    handler.set_name(ROOT_LOGGER)
    handler.setLevel(level.number)
    handler.setFormatter(
        JSONFormatter() if format == LogFormat.JSON else TextFormatter(use_colors=use_colors)
    )
    if include_context:
        handler.addFilter(ContextFilter())

    logger = logging.getLogger(ROOT_LOGGER)
    for existing in [h for h in logger.handlers if h.get_name() == ROOT_LOGGER]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level.number)
    logger.propagate = False
