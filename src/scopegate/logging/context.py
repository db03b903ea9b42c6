"""
Logging context management for scopegate.

Attaches the organization, operator and resource of the running gateway call
to every log line emitted while it runs.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scopegate.core.context import Actor, SelectedScope

_scope_fields: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "scopegate_scope_fields",
)


@dataclass(frozen=True)
class LogContext:
    """
    Fields describing one gateway call.

    ``None`` fields are left out of log records.
    """

    organization_id: str | None = None
    user_id: str | None = None
    role: str | None = None
    resource: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_scope(
        cls,
        actor: Actor,
        selected: SelectedScope | None = None,
        *,
        resource: str | None = None,
        operation: str | None = None,
    ) -> LogContext:
        """Describe a call made by ``actor`` while viewing ``selected``."""
        if selected is not None and selected.organization_id is not None:
            organization_id = selected.organization_id
        else:
            organization_id = actor.organization_id
        return cls(
            organization_id=organization_id,
            user_id=actor.user_id,
            role=actor.role.value,
            resource=resource,
            operation=operation,
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


def get_log_context() -> dict[str, Any]:
    """A copy of the fields active in the current context."""
    return dict(_scope_fields.get({}))


def set_log_context(context: LogContext | dict[str, Any]) -> None:
    if isinstance(context, LogContext):
        context = context.to_dict()
    _scope_fields.set(dict(context))


def clear_log_context() -> None:
    _scope_fields.set({})


@contextmanager
def with_log_context(
    context: LogContext | dict[str, Any] | None = None,
    **extra_fields: Any,
) -> Iterator[None]:
    """
    Set log fields for the duration of a block.

    An explicit ``context`` replaces the active fields; keyword fields are
    layered on top of whatever is active (or of ``context``).

    Example:
        with with_log_context(organization_id="org-1", resource="branches"):
            logger.info("Listing")
    """
    if context is None:
        base = get_log_context()
    elif isinstance(context, LogContext):
        base = context.to_dict()
    else:
        base = dict(context)
    base.update(extra_fields)

    token = _scope_fields.set(base)
    try:
        yield
    finally:
        _scope_fields.reset(token)


class ContextFilter(logging.Filter):
    """Copies the active log fields onto records that don't already carry them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _scope_fields.get({}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
