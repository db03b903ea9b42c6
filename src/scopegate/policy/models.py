"""
Resource scope policy definitions.

The policy is a static table saying, per resource, whether rows are scoped
to an organization and how (if at all) they relate to a dealer branch. It is
built at configuration time and never mutated afterwards.
"""

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from scopegate.config import GatewaySettings


class BranchScope(str, Enum):
    """How a resource relates to a dealer branch."""

    NONE = "none"  # Not branch-scoped
    SELF = "self"  # Rows are branches; their primary key is the branch id
    REFERENCE = "reference"  # Rows reference a branch via a foreign key


class ResourcePolicy(BaseModel):
    """
    Scope policy for a single resource.
    """

    # Whether rows carry an organization id that list queries must match
    organization_scoped: bool = Field(default=False)

    # Branch restriction applied to dealer admins
    branch_scope: BranchScope = Field(default=BranchScope.NONE)

    # Primary key column used for single/multi-key lookups
    id_column: str = Field(default="id")

    model_config = {"frozen": True}


class ScopePolicy(BaseModel):
    """
    Complete scope configuration.

    Resources not listed fall back to an unscoped default.
    """

    resources: dict[str, ResourcePolicy] = Field(default_factory=dict)

    organization_field: str = Field(default="organization_id")

    # Foreign key column on branch-referencing resources
    branch_field: str = Field(default="branch_id")

    # Primary key column on resources that are branches
    branch_self_field: str = Field(default="id")

    model_config = {"frozen": True}

    def get_resource_policy(self, resource: str) -> ResourcePolicy:
        """Get the policy for a resource, unscoped if not listed."""
        return self.resources.get(resource) or ResourcePolicy()

    def is_organization_scoped(self, resource: str) -> bool:
        return self.get_resource_policy(resource).organization_scoped

    def branch_scope_for(self, resource: str) -> BranchScope:
        return self.get_resource_policy(resource).branch_scope

    def id_column_for(self, resource: str) -> str:
        return self.get_resource_policy(resource).id_column

    def branch_field_for(self, resource: str) -> str | None:
        """The column a dealer admin's branch id is matched against, if any."""
        match self.branch_scope_for(resource):
            case BranchScope.SELF:
                return self.branch_self_field
            case BranchScope.REFERENCE:
                return self.branch_field
            case _:
                return None

    @property
    def organization_scoped_resources(self) -> list[str]:
        return [name for name, p in self.resources.items() if p.organization_scoped]


def console_policy(settings: "GatewaySettings | None" = None) -> ScopePolicy:
    """
    The dealer console's resource table.

    ``as_requests`` has no organization column in every deployment, so it is
    only branch-scoped.
    """
    org = ResourcePolicy(organization_scoped=True)
    resources = {
        "admin_profiles": ResourcePolicy(organization_scoped=True, id_column="user_id"),
        "branches": ResourcePolicy(organization_scoped=True, branch_scope=BranchScope.SELF),
        "quote_requests": org,
        "dealer_applications": org,
        "partnership_inquiries": org,
        "branch_images": ResourcePolicy(
            organization_scoped=True, branch_scope=BranchScope.REFERENCE
        ),
        "as_requests": ResourcePolicy(branch_scope=BranchScope.REFERENCE),
        "as_request_images": org,
        "warranty_sends": org,
        "sheet_dispatches": org,
    }

    if settings is None:
        return ScopePolicy(resources=resources)
    return ScopePolicy(
        resources=resources,
        organization_field=settings.organization_field,
        branch_field=settings.branch_field,
        branch_self_field=settings.branch_self_field,
    )
