"""
scopegate Core Module.

Contains the actor/scope context, request schemas and error taxonomy.
"""

from scopegate.core.context import (
    Actor,
    InMemorySelectionStore,
    ProfileColumns,
    Role,
    ScopeState,
    SelectedScope,
    SelectionStore,
)
from scopegate.core.dsl import (
    FilterClause,
    FilterOp,
    ListRequest,
    ListResult,
    Pagination,
    Sorter,
    SortOrder,
)
from scopegate.core.errors import (
    MissingColumn,
    OperationNotSupportedError,
    ScopeGateError,
    StoreError,
    get_error_message,
    is_missing_column_error,
    missing_column_of,
    missing_column_ref,
)

__all__ = [
    # Context
    "Actor",
    "Role",
    "ProfileColumns",
    "SelectedScope",
    "ScopeState",
    "SelectionStore",
    "InMemorySelectionStore",
    # DSL
    "FilterClause",
    "FilterOp",
    "Sorter",
    "SortOrder",
    "Pagination",
    "ListRequest",
    "ListResult",
    # Errors
    "ScopeGateError",
    "StoreError",
    "OperationNotSupportedError",
    "MissingColumn",
    "get_error_message",
    "is_missing_column_error",
    "missing_column_of",
    "missing_column_ref",
]
