"""
Property-based tests for scope resolution using Hypothesis.

These tests check the scoping rules across arbitrary actors, selections
and resource tables rather than a handful of fixed examples.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from scopegate.core.context import Actor, Role, ScopeState, SelectedScope
from scopegate.core.dsl import FilterClause, FilterOp
from scopegate.policy.columns import ColumnAvailability
from scopegate.policy.models import BranchScope, ResourcePolicy, ScopePolicy
from scopegate.policy.scoping import ScopeResolver, merge_filters, strip_filter

# === Strategy Definitions ===

identifiers = st.text(
    min_size=1,
    max_size=20,
    alphabet=st.characters(whitelist_categories=["Ll", "Nd"], whitelist_characters=["_", "-"]),
)
field_names = st.text(
    min_size=1,
    max_size=20,
    alphabet=st.characters(whitelist_categories=["Ll"], whitelist_characters=["_"]),
)


@st.composite
def actor_strategy(draw):
    return Actor(
        role=draw(st.sampled_from(list(Role))),
        organization_id=draw(st.none() | identifiers),
        branch_id=draw(st.none() | identifiers),
        user_id=draw(identifiers),
    )


@st.composite
def resource_policy_strategy(draw):
    return ResourcePolicy(
        organization_scoped=draw(st.booleans()),
        branch_scope=draw(st.sampled_from(list(BranchScope))),
    )


@st.composite
def policy_strategy(draw):
    resources = draw(st.dictionaries(identifiers, resource_policy_strategy(), min_size=1, max_size=5))
    return ScopePolicy(resources=resources)


@st.composite
def filter_clause_strategy(draw):
    return FilterClause(
        field=draw(field_names),
        op=draw(st.sampled_from(list(FilterOp))),
        value=draw(st.one_of(st.text(max_size=10), st.integers(), st.booleans())),
    )


selections = st.builds(SelectedScope, organization_id=st.none() | identifiers)


# === Scope Resolution ===


class TestResolverProperties:
    @given(policy=policy_strategy(), actor=actor_strategy(), selected=selections, resource=identifiers)
    @settings(max_examples=200)
    def test_unscoped_resources_get_no_filters(self, policy, actor, selected, resource):
        resolver = ScopeResolver(policy)
        rp = policy.get_resource_policy(resource)
        if not rp.organization_scoped and rp.branch_scope == BranchScope.NONE:
            assert resolver.resolve_scope_filters(resource, actor, selected) == []

    @given(policy=policy_strategy(), actor=actor_strategy(), selected=selections, resource=identifiers)
    @settings(max_examples=200)
    def test_branch_filter_only_for_dealer_admins(self, policy, actor, selected, resource):
        filters = ScopeResolver(policy).resolve_scope_filters(resource, actor, selected)
        branch_field = policy.branch_field_for(resource)
        branch_filters = [
            f for f in filters
            if f.field == branch_field and f.field != policy.organization_field
        ]
        if actor.role != Role.DEALER_ADMIN or actor.branch_id is None:
            assert branch_filters == []
        elif branch_field is not None:
            assert branch_filters == [FilterClause.eq(branch_field, actor.branch_id)]

    @given(policy=policy_strategy(), actor=actor_strategy(), selected=selections)
    @settings(max_examples=200)
    def test_organization_filter_comes_first(self, policy, actor, selected):
        resolver = ScopeResolver(policy)
        for resource in policy.resources:
            filters = resolver.resolve_scope_filters(resource, actor, selected)
            org = selected.organization_id or actor.organization_id
            if policy.is_organization_scoped(resource) and org is not None:
                assert filters[0] == FilterClause.eq(policy.organization_field, org)
            else:
                assert all(f.field != policy.organization_field for f in filters)

    @given(policy=policy_strategy(), actor=actor_strategy(), selected=selections)
    def test_known_missing_columns_never_filtered(self, policy, actor, selected):
        columns = ColumnAvailability()
        resolver = ScopeResolver(policy, columns)
        for resource in policy.resources:
            columns.mark_column_missing(resource, policy.organization_field)
            filters = resolver.resolve_scope_filters(resource, actor, selected)
            assert all(f.field != policy.organization_field for f in filters)

    @given(actor=actor_strategy(), variables=st.dictionaries(field_names, st.integers(), max_size=5))
    def test_injection_never_overwrites(self, actor, variables):
        policy = ScopePolicy(resources={"rows": ResourcePolicy(organization_scoped=True)})
        result = ScopeResolver(policy).inject_organization("rows", actor, SelectedScope(), variables)
        for key, value in variables.items():
            assert result[key] == value
        assert set(result) - set(variables) <= {"organization_id"}


# === Selection ===


class TestSelectionProperties:
    @given(actor=actor_strategy(), requested=st.none() | identifiers)
    def test_dealer_admins_stay_in_their_organization(self, actor, requested):
        state = ScopeState(actor)
        state.select_organization(requested)
        if actor.role == Role.DEALER_ADMIN:
            assert state.selected.organization_id == actor.organization_id


# === Memo And Merge ===


class TestMemoAndMergeProperties:
    @given(
        marks=st.lists(st.tuples(identifiers, field_names), min_size=1, max_size=20),
    )
    def test_marking_is_idempotent(self, marks):
        columns = ColumnAvailability()
        for resource, column in marks:
            columns.mark_column_missing(resource, column)
        snapshot = {(r, c): columns.is_column_known_missing(r, c) for r, c in marks}
        for resource, column in marks:
            assert columns.mark_column_missing(resource, column) is False
        assert snapshot == {(r, c): columns.is_column_known_missing(r, c) for r, c in marks}
        assert len(columns) == len(set(marks))

    @given(
        mandatory=st.lists(filter_clause_strategy(), max_size=3),
        caller=st.lists(filter_clause_strategy(), max_size=5),
    )
    @settings(deadline=None)
    def test_merge_preserves_order(self, mandatory, caller):
        merged = merge_filters(mandatory, caller)
        assert merged[: len(mandatory)] == mandatory
        assert merged[len(mandatory):] == caller

    @given(filters=st.lists(filter_clause_strategy(), max_size=8), field=field_names)
    @settings(deadline=None)
    def test_strip_removes_only_that_field(self, filters, field):
        stripped = strip_filter(filters, field)
        assert all(f.field != field for f in stripped)
        assert stripped == [f for f in filters if f.field != field]
