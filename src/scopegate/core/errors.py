"""
Error taxonomy for scopegate.

All scopegate errors inherit from ScopeGateError and include:
- A unique error code for programmatic handling
- A human-readable message
- Optional details

StoreError is the structured error CRUD clients raise for backend failures.
The gateway recognizes exactly one of them, the "undefined column" error,
and propagates every other one verbatim.
"""

import re
from collections.abc import Mapping
from typing import Any, NamedTuple

# PostgreSQL SQLSTATE for undefined_column
UNDEFINED_COLUMN_CODE = "42703"

_PG_MISSING_COLUMN = re.compile(
    r'column\s+"?(?:(?P<relation>[\w]+)\.)?(?P<column>\w+)"?\s+does not exist'
)
_SQLITE_MISSING_COLUMN = re.compile(r"no such column:\s*(?:(?P<relation>\w+)\.)?(?P<column>\w+)")


class ScopeGateError(Exception):
    """
    Base class for all scopegate errors.

    Attributes:
        code: Unique error code for programmatic handling
        message: Human-readable error message
        details: Additional error context
    """

    code: str = "SCOPEGATE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class StoreError(ScopeGateError):
    """
    A failure reported by the backing store.

    ``code`` is the store's own error code (e.g. a SQLSTATE) rather than a
    scopegate code, so callers can match on what the store said.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        relation: str | None = None,
        column: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.code = code or "STORE_ERROR"
        self.relation = relation
        self.column = column
        self.status = status

    @classmethod
    def undefined_column(cls, relation: str, column: str) -> "StoreError":
        """The error a PostgreSQL-backed store reports for a missing column."""
        return cls(
            f"column {relation}.{column} does not exist",
            code=UNDEFINED_COLUMN_CODE,
            relation=relation,
            column=column,
            status=400,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.relation is not None:
            result["relation"] = self.relation
        if self.column is not None:
            result["column"] = self.column
        return result


class OperationNotSupportedError(ScopeGateError):
    """The wrapped CRUD client does not implement an operation."""

    code = "OPERATION_NOT_SUPPORTED"

    def __init__(self, operation: str, **kwargs: Any) -> None:
        super().__init__(
            f"{operation} is not implemented",
            details={"operation": operation},
            **kwargs,
        )


def get_error_message(error: object) -> str | None:
    """
    Extract a user-facing message from an error-like value.

    Accepts exceptions, plain strings and objects or mappings carrying a
    string ``message``.
    """
    if isinstance(error, ScopeGateError):
        return error.message
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
        return message if isinstance(message, str) else None
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    if isinstance(error, BaseException):
        return str(error)
    return None


def _error_field(error: object, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


class MissingColumn(NamedTuple):
    """Where an "undefined column" error points; ``relation`` is None when unnamed."""

    relation: str | None
    column: str


def _field_str(error: object, name: str) -> str | None:
    value = _error_field(error, name)
    return value if isinstance(value, str) and value else None


def missing_column_ref(
    error: object,
    codes: tuple[str, ...] = (UNDEFINED_COLUMN_CODE,),
) -> MissingColumn | None:
    """
    Return the relation and column named by an "undefined column" error.

    Recognizes structured StoreErrors, PostgREST-style errors (``code`` and
    ``message`` attributes or keys) and SQLite's "no such column" message.
    Returns None for any other error.
    """
    if error is None:
        return None

    message = get_error_message(error) or ""
    code = _error_field(error, "code")

    if code is not None and str(code) in codes:
        match = _PG_MISSING_COLUMN.search(message)
        column = _field_str(error, "column") or (match.group("column") if match else None)
        if column is None:
            return None
        relation = _field_str(error, "relation") or (match.group("relation") if match else None)
        return MissingColumn(relation, column)

    match = _SQLITE_MISSING_COLUMN.search(message)
    if match:
        return MissingColumn(match.group("relation"), match.group("column"))
    return None


def missing_column_of(
    error: object,
    codes: tuple[str, ...] = (UNDEFINED_COLUMN_CODE,),
) -> str | None:
    """Return the column named by an "undefined column" error, or None."""
    ref = missing_column_ref(error, codes)
    return ref.column if ref is not None else None


def is_missing_column_error(
    error: object,
    column: str,
    codes: tuple[str, ...] = (UNDEFINED_COLUMN_CODE,),
    relation: str | None = None,
) -> bool:
    """
    Check whether ``error`` reports that ``column`` does not exist.

    With ``relation`` given, an error naming a different relation does not
    count. An error that names no relation is taken to be about ``relation``.
    """
    ref = missing_column_ref(error, codes)
    if ref is None or ref.column != column:
        return False
    return relation is None or ref.relation is None or ref.relation == relation
