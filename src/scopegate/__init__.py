"""
scopegate - tenant-scoped data gateway for multi-organization admin consoles.

scopegate sits between console code and a CRUD client and injects
organization and branch filters into list queries and organization ids into
created rows. When a deployment's schema lacks an expected scoping column,
the filter is dropped for that resource after a single logged retry instead
of making the resource unusable.
"""

__version__ = "0.1.0"

from scopegate.config import GatewaySettings
from scopegate.core.context import Actor, Role, ScopeState, SelectedScope
from scopegate.core.errors import OperationNotSupportedError, ScopeGateError, StoreError
from scopegate.gateway import ScopedGateway
from scopegate.policy.columns import ColumnAvailability
from scopegate.policy.models import BranchScope, ResourcePolicy, ScopePolicy, console_policy

__all__ = [
    # Version
    "__version__",
    # Context
    "Actor",
    "Role",
    "SelectedScope",
    "ScopeState",
    # Gateway
    "ScopedGateway",
    "GatewaySettings",
    # Policy
    "ScopePolicy",
    "ResourcePolicy",
    "BranchScope",
    "ColumnAvailability",
    "console_policy",
    # Errors
    "ScopeGateError",
    "StoreError",
    "OperationNotSupportedError",
]
