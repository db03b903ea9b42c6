"""
Scope injection for row-level tenant isolation.

The ScopeResolver computes the mandatory equality filters for a resource
from the acting operator and the selected organization. The module-level
helpers merge those filters with caller filters and strip a single field
back out when the store cannot honor it.
"""

from collections.abc import Mapping
from typing import Any

from scopegate.core.context import Actor, SelectedScope
from scopegate.core.dsl import FilterClause, FilterOp
from scopegate.policy.columns import ColumnAvailability
from scopegate.policy.models import ScopePolicy


def effective_organization_id(
    actor: Actor,
    selected: SelectedScope | None = None,
) -> str | None:
    """The selected organization, falling back to the actor's own."""
    if selected is not None and selected.organization_id is not None:
        return selected.organization_id
    return actor.organization_id


def merge_filters(
    mandatory: list[FilterClause],
    caller: list[FilterClause] | None,
) -> list[FilterClause]:
    """
    Merge scope filters with caller filters.

    Scope filters come first and caller filters follow in their original
    order. Nothing is deduplicated: a caller clause on a scoped field is
    AND-ed with the scope clause and can only narrow the result.
    """
    result = list(mandatory)
    if caller:
        result.extend(caller)
    return result


def strip_filter(filters: list[FilterClause], field: str) -> list[FilterClause]:
    """Return ``filters`` without any clause on ``field``."""
    return [f for f in filters if f.field != field]


class ScopeResolver:
    """
    Generates scope filters for a resource based on the scope policy.

    Filters on columns recorded as missing in ``columns`` are skipped.
    """

    def __init__(
        self,
        policy: ScopePolicy,
        columns: ColumnAvailability | None = None,
    ) -> None:
        self.policy = policy
        self.columns = columns if columns is not None else ColumnAvailability()

    def resolve_scope_filters(
        self,
        resource: str,
        actor: Actor,
        selected: SelectedScope | None = None,
    ) -> list[FilterClause]:
        """
        Compute the filters that must be AND-ed into a list query.

        Returns the organization filter (if any) followed by the branch
        filter (if any). A resource supporting only one of the two gets only
        that one; an unresolvable organization yields no organization filter.
        """
        filters: list[FilterClause] = []
        resource_policy = self.policy.get_resource_policy(resource)

        # Organization scope
        org_field = self.policy.organization_field
        org_id = effective_organization_id(actor, selected)
        if (
            resource_policy.organization_scoped
            and org_id is not None
            and not self.columns.is_column_known_missing(resource, org_field)
        ):
            filters.append(FilterClause(field=org_field, op=FilterOp.EQ, value=org_id))

        # Branch scope, dealer admins only
        branch_field = self.policy.branch_field_for(resource)
        if (
            actor.is_dealer_admin
            and actor.branch_id
            and branch_field is not None
            and not self.columns.is_column_known_missing(resource, branch_field)
        ):
            filters.append(
                FilterClause(field=branch_field, op=FilterOp.EQ, value=actor.branch_id)
            )

        return filters

    def inject_organization(
        self,
        resource: str,
        actor: Actor,
        selected: SelectedScope | None,
        variables: Mapping[str, Any],
    ) -> dict[str, Any]:
        """
        Add the effective organization id to create variables.

        Only for organization-scoped resources, only when the organization
        is resolvable, and never over a caller-supplied value. Returns a new
        dict; ``variables`` is left untouched.
        """
        result = dict(variables)
        org_field = self.policy.organization_field
        if not self.policy.is_organization_scoped(resource):
            return result
        if org_field in result:
            return result
        org_id = effective_organization_id(actor, selected)
        if org_id is None:
            return result
        result[org_field] = org_id
        return result
