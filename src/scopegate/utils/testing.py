"""
Testing utilities for scopegate.

Provides fixtures and helpers for testing tenant isolation through a
ScopedGateway.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from scopegate.adapters.base import CrudClient
from scopegate.adapters.memory import InMemoryCrudClient
from scopegate.core.context import Actor, Role, ScopeState
from scopegate.core.dsl import (
    CreateManyResult,
    CreateResult,
    DeleteManyResult,
    DeleteResult,
    GetManyResult,
    GetOneResult,
    ListRequest,
    ListResult,
    UpdateManyResult,
    UpdateResult,
)
from scopegate.logging import get_log_context


@dataclass
class RecordedCall:
    """One call received by a RecordingCrudClient, with the log context it ran under."""

    operation: str
    resource: str
    request: ListRequest | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=get_log_context)


class RecordingCrudClient(CrudClient):
    """
    Wraps a client and records every call passed through it.

    Usage:
        client = RecordingCrudClient(InMemoryCrudClient())
        await ScopedGateway(client, scope, policy).get_list("branches")
        client.list_requests[0].filters  # what the store actually saw
    """

    def __init__(self, inner: CrudClient) -> None:
        self.inner = inner
        self.calls: list[RecordedCall] = []

    @property
    def list_requests(self) -> list[ListRequest]:
        return [c.request for c in self.calls if c.request is not None]

    def calls_for(self, operation: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.operation == operation]

    def clear(self) -> None:
        self.calls.clear()

    async def get_list(self, request: ListRequest) -> ListResult:
        self.calls.append(RecordedCall("get_list", request.resource, request=request))
        return await self.inner.get_list(request)

    async def get_one(self, resource: str, id: Any, meta: dict[str, Any] | None = None) -> GetOneResult:
        self.calls.append(RecordedCall("get_one", resource, arguments={"id": id, "meta": meta}))
        return await self.inner.get_one(resource, id, meta)

    async def get_many(
        self, resource: str, ids: Sequence[Any], meta: dict[str, Any] | None = None
    ) -> GetManyResult:
        self.calls.append(RecordedCall("get_many", resource, arguments={"ids": list(ids), "meta": meta}))
        return await self.inner.get_many(resource, ids, meta)

    async def create(
        self, resource: str, variables: dict[str, Any], meta: dict[str, Any] | None = None
    ) -> CreateResult:
        self.calls.append(
            RecordedCall("create", resource, arguments={"variables": dict(variables), "meta": meta})
        )
        return await self.inner.create(resource, variables, meta)

    async def create_many(
        self,
        resource: str,
        variables: Sequence[dict[str, Any]],
        meta: dict[str, Any] | None = None,
    ) -> CreateManyResult:
        self.calls.append(
            RecordedCall(
                "create_many",
                resource,
                arguments={"variables": [dict(v) for v in variables], "meta": meta},
            )
        )
        return await self.inner.create_many(resource, variables, meta)

    async def update(
        self,
        resource: str,
        id: Any,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateResult:
        self.calls.append(
            RecordedCall("update", resource, arguments={"id": id, "variables": dict(variables), "meta": meta})
        )
        return await self.inner.update(resource, id, variables, meta)

    async def update_many(
        self,
        resource: str,
        ids: Sequence[Any],
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateManyResult:
        self.calls.append(
            RecordedCall(
                "update_many",
                resource,
                arguments={"ids": list(ids), "variables": dict(variables), "meta": meta},
            )
        )
        return await self.inner.update_many(resource, ids, variables, meta)

    async def delete_one(self, resource: str, id: Any, meta: dict[str, Any] | None = None) -> DeleteResult:
        self.calls.append(RecordedCall("delete_one", resource, arguments={"id": id, "meta": meta}))
        return await self.inner.delete_one(resource, id, meta)

    async def delete_many(
        self, resource: str, ids: Sequence[Any], meta: dict[str, Any] | None = None
    ) -> DeleteManyResult:
        self.calls.append(RecordedCall("delete_many", resource, arguments={"ids": list(ids), "meta": meta}))
        return await self.inner.delete_many(resource, ids, meta)

    async def describe_columns(self, resource: str) -> set[str] | None:
        return await self.inner.describe_columns(resource)


class MultiTenantFixture:
    """
    Fixture for testing multi-organization data isolation.

    Seeds an InMemoryCrudClient with rows per organization and builds scope
    states for admins and dealer admins.

    Usage:
        fixture = MultiTenantFixture()
        fixture.add_table("branches", ["id", "organization_id", "name"])
        fixture.add_rows("org-1", "branches", [{"id": "b-1", "name": "Seoul"}])
        fixture.add_rows("org-2", "branches", [{"id": "b-2", "name": "Busan"}])

        scope = fixture.dealer_scope("org-1", branch_id="b-1")
        page = await ScopedGateway(fixture.client, scope, policy).get_list("branches")
        assert fixture.verify_isolation(page.data, "org-1")
    """

    def __init__(self, organization_field: str = "organization_id") -> None:
        self.client = InMemoryCrudClient()
        self.organization_field = organization_field

    def add_table(
        self,
        name: str,
        columns: Iterable[str],
    ) -> None:
        self.client.add_table(name, columns)

    def add_rows(
        self,
        organization_id: str,
        table: str,
        rows: Iterable[dict[str, Any]],
    ) -> None:
        """Seed rows stamped with an organization id."""
        self.client.seed(
            table,
            [{**row, self.organization_field: organization_id} for row in rows],
        )

    def admin_scope(
        self,
        organization_id: str,
        user_id: str = "admin",
    ) -> ScopeState:
        return ScopeState(
            Actor(role=Role.ADMIN, organization_id=organization_id, user_id=user_id)
        )

    def dealer_scope(
        self,
        organization_id: str,
        branch_id: str | None = None,
        user_id: str = "dealer",
    ) -> ScopeState:
        return ScopeState(
            Actor(
                role=Role.DEALER_ADMIN,
                organization_id=organization_id,
                branch_id=branch_id,
                user_id=user_id,
            )
        )

    def find_leaks(
        self,
        results: list[dict[str, Any]],
        expected_organization: str,
    ) -> list[dict[str, Any]]:
        """Find any rows that belong to a different organization."""
        field_name = self.organization_field
        return [
            row for row in results
            if field_name in row and row[field_name] != expected_organization
        ]

    def verify_isolation(
        self,
        results: list[dict[str, Any]],
        expected_organization: str,
    ) -> bool:
        """True if every row belongs to the expected organization."""
        return not self.find_leaks(results, expected_organization)
