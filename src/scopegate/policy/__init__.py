"""
scopegate Policy Module.

Contains the resource scope table, the column availability memo and the
scope resolver.
"""

from scopegate.policy.columns import ColumnAvailability, ColumnState
from scopegate.policy.models import BranchScope, ResourcePolicy, ScopePolicy, console_policy
from scopegate.policy.scoping import (
    ScopeResolver,
    effective_organization_id,
    merge_filters,
    strip_filter,
)

__all__ = [
    # Models
    "ScopePolicy",
    "ResourcePolicy",
    "BranchScope",
    "console_policy",
    # Columns
    "ColumnAvailability",
    "ColumnState",
    # Scoping
    "ScopeResolver",
    "effective_organization_id",
    "merge_filters",
    "strip_filter",
]
