"""
Structured logging for scopegate.

Library modules log through ``get_logger(__name__)`` under the ``scopegate``
hierarchy. Nothing is emitted anywhere until the application calls
``configure_logging`` (or attaches its own handlers).
"""

from scopegate.logging.config import (
    LogFormat,
    LogLevel,
    ScopeGateLogger,
    configure_logging,
    get_logger,
)
from scopegate.logging.context import (
    ContextFilter,
    LogContext,
    get_log_context,
    with_log_context,
)
from scopegate.logging.formatters import JSONFormatter, TextFormatter

__all__ = [
    "configure_logging",
    "get_logger",
    "ScopeGateLogger",
    "LogLevel",
    "LogFormat",
    "JSONFormatter",
    "TextFormatter",
    "ContextFilter",
    "LogContext",
    "get_log_context",
    "with_log_context",
]
