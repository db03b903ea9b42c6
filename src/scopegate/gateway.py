"""
Tenant-scoped data gateway.

ScopedGateway wraps a CrudClient and, on every call:
1. Reads the actor and selected organization from the scope provider
2. Injects organization/branch filters into list queries
3. Injects the organization id into created rows
4. Retries a list query once, without the offending filter, when the store
   reports that a scoping column does not exist

Point lookups, updates and deletes are passed through untouched: for those,
the store's own row-level authorization is the enforcement point.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from scopegate.adapters.base import CrudClient
from scopegate.config import GatewaySettings
from scopegate.core.context import Actor, SelectedScope
from scopegate.core.dsl import (
    CreateManyResult,
    CreateResult,
    DeleteManyResult,
    DeleteResult,
    FilterClause,
    FilterOp,
    GetManyResult,
    GetOneResult,
    ListRequest,
    ListResult,
    Pagination,
    Sorter,
    UpdateManyResult,
    UpdateResult,
)
from scopegate.core.errors import OperationNotSupportedError, missing_column_ref
from scopegate.logging import LogContext, get_logger, with_log_context
from scopegate.policy.columns import ColumnAvailability
from scopegate.policy.models import ScopePolicy
from scopegate.policy.scoping import ScopeResolver, merge_filters, strip_filter

logger = get_logger(__name__)


class ScopeProvider(Protocol):
    """Read-only source of the current actor and selected organization."""

    @property
    def actor(self) -> Actor: ...

    @property
    def selected(self) -> SelectedScope: ...


class ScopedGateway:
    """
    Scoping layer between console code and a CRUD client.

    The scope provider is consulted on every call, so an organization switch
    takes effect on the next request without rebuilding the gateway.

    Example:
        gateway = ScopedGateway(client, scope_state, console_policy())
        page = await gateway.get_list("branches", filters=[FilterClause.eq("active", True)])
    """

    def __init__(
        self,
        client: CrudClient,
        scope: ScopeProvider,
        policy: ScopePolicy,
        *,
        columns: ColumnAvailability | None = None,
        settings: GatewaySettings | None = None,
    ) -> None:
        """
        Args:
            client: The underlying CRUD client
            scope: Provider of the actor and selected organization
            policy: Static resource scope table
            columns: Column availability memo (a fresh one if omitted)
            settings: Gateway settings (defaults if omitted)
        """
        self.client = client
        self.scope = scope
        self.policy = policy
        self.settings = settings or GatewaySettings()
        self.columns = columns if columns is not None else ColumnAvailability()
        self.resolver = ScopeResolver(policy, self.columns)

    # =========================================================================
    # LIST
    # =========================================================================

    async def get_list(
        self,
        resource: str,
        pagination: Pagination | None = None,
        filters: list[FilterClause] | None = None,
        sorters: list[Sorter] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> ListResult:
        """
        List records with scope filters AND-ed in front of the caller's.

        If the store rejects an injected scope filter because its column does
        not exist, the column is recorded as missing and the query is retried
        once without it. Any other error, or a second failure, propagates.
        """
        actor, selected = self.scope.actor, self.scope.selected
        with with_log_context(self._log_context(actor, selected, resource, "get_list")):
            scope_filters = self.resolver.resolve_scope_filters(resource, actor, selected)
            merged = merge_filters(scope_filters, filters)
            if scope_filters:
                logger.debug(
                    "Injected scope filters",
                    filters=[f.model_dump(mode="json") for f in scope_filters],
                )

            request = ListRequest(
                resource=resource,
                pagination=pagination or Pagination(),
                filters=merged,
                sorters=sorters or [],
                meta=self._with_id_column(resource, meta),
            )

            try:
                return await self.client.get_list(request)
            except Exception as exc:
                column = self._injected_missing_column(exc, resource, scope_filters)
                if column is None:
                    raise
                self.columns.mark_column_missing(resource, column)
                logger.warning(
                    "Retrying list without scope filter",
                    column=column,
                )
                retry = request.model_copy(
                    update={"filters": strip_filter(merged, column)}
                )
                return await self.client.get_list(retry)

    # =========================================================================
    # POINT LOOKUPS
    # =========================================================================

    async def get_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> GetOneResult:
        """
        Fetch one record by primary key. No scope filters are applied.

        Clients without a native lookup are served through ``get_list``.
        """
        with with_log_context(self._current_log_context(resource, "get_one")):
            meta = self._with_id_column(resource, meta)
            try:
                return await self.client.get_one(resource, id, meta)
            except NotImplementedError:
                pass

            logger.debug("Emulating get_one with get_list")
            result = await self.client.get_list(
                ListRequest(
                    resource=resource,
                    pagination=Pagination(current=1, page_size=1),
                    filters=[FilterClause(field=self._id_column(resource, meta), op=FilterOp.EQ, value=id)],
                    meta=meta,
                )
            )
            return GetOneResult(data=result.data[0] if result.data else None)

    async def get_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> GetManyResult:
        """
        Fetch several records by primary key. No scope filters are applied.

        Clients without a native lookup are served through ``get_list``.
        """
        with with_log_context(self._current_log_context(resource, "get_many")):
            meta = self._with_id_column(resource, meta)
            try:
                return await self.client.get_many(resource, ids, meta)
            except NotImplementedError:
                pass

            logger.debug("Emulating get_many with get_list")
            ids = list(ids)
            result = await self.client.get_list(
                ListRequest(
                    resource=resource,
                    pagination=Pagination(current=1, page_size=max(len(ids), 1)),
                    filters=[FilterClause(field=self._id_column(resource, meta), op=FilterOp.IN, value=ids)],
                    meta=meta,
                )
            )
            return GetManyResult(data=result.data)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(
        self,
        resource: str,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> CreateResult:
        """
        Create a record, filling in the organization id if the caller left it out.
        """
        actor, selected = self.scope.actor, self.scope.selected
        with with_log_context(self._log_context(actor, selected, resource, "create")):
            payload = self.resolver.inject_organization(resource, actor, selected, variables)
            return await self.client.create(
                resource, payload, self._with_id_column(resource, meta)
            )

    async def create_many(
        self,
        resource: str,
        variables: Sequence[dict[str, Any]],
        meta: dict[str, Any] | None = None,
    ) -> CreateManyResult:
        with with_log_context(self._current_log_context(resource, "create_many")):
            try:
                return await self.client.create_many(
                    resource, variables, self._with_id_column(resource, meta)
                )
            except NotImplementedError:
                raise OperationNotSupportedError("create_many") from None

    async def update(
        self,
        resource: str,
        id: Any,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateResult:
        with with_log_context(self._current_log_context(resource, "update")):
            return await self.client.update(
                resource, id, variables, self._with_id_column(resource, meta)
            )

    async def update_many(
        self,
        resource: str,
        ids: Sequence[Any],
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateManyResult:
        with with_log_context(self._current_log_context(resource, "update_many")):
            try:
                return await self.client.update_many(
                    resource, ids, variables, self._with_id_column(resource, meta)
                )
            except NotImplementedError:
                raise OperationNotSupportedError("update_many") from None

    async def delete_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> DeleteResult:
        with with_log_context(self._current_log_context(resource, "delete_one")):
            try:
                return await self.client.delete_one(
                    resource, id, self._with_id_column(resource, meta)
                )
            except NotImplementedError:
                raise OperationNotSupportedError("delete_one") from None

    async def delete_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> DeleteManyResult:
        with with_log_context(self._current_log_context(resource, "delete_many")):
            try:
                return await self.client.delete_many(
                    resource, ids, self._with_id_column(resource, meta)
                )
            except NotImplementedError:
                raise OperationNotSupportedError("delete_many") from None

    # =========================================================================
    # SCHEMA PROBE
    # =========================================================================

    async def start(self) -> dict[str, list[str]]:
        """Probe the schema if ``probe_on_startup`` is set."""
        if not self.settings.probe_on_startup:
            return {}
        missing = await self.probe_schema()
        logger.info("Schema probe finished", missing=missing)
        return missing

    async def probe_schema(self, resources: Sequence[str] | None = None) -> dict[str, list[str]]:
        """
        Pre-seed column availability from the client's column listing.

        Returns the missing scoping columns per resource. Resources the
        client cannot describe are left to the reactive path.
        """
        if resources is None:
            resources = list(self.policy.resources)

        missing: dict[str, list[str]] = {}
        for resource in resources:
            expected = self._scoping_columns(resource)
            if not expected:
                continue
            available = await self.client.describe_columns(resource)
            if available is None:
                continue
            absent = self.columns.preseed(resource, available, expected)
            if absent:
                missing[resource] = absent
        return missing

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _injected_missing_column(
        self,
        error: Exception,
        resource: str,
        scope_filters: list[FilterClause],
    ) -> str | None:
        """
        The scope-filter column an error says is missing from ``resource``.

        Errors naming another relation (a joined or embedded table) are not
        about the listed resource and are left to propagate.
        """
        if not scope_filters:
            return None
        ref = missing_column_ref(error, self.settings.missing_column_codes)
        if ref is None:
            return None
        if ref.relation is not None and ref.relation != resource:
            return None
        if ref.column not in {f.field for f in scope_filters}:
            return None
        return ref.column

    def _scoping_columns(self, resource: str) -> list[str]:
        columns = []
        if self.policy.is_organization_scoped(resource):
            columns.append(self.policy.organization_field)
        branch_field = self.policy.branch_field_for(resource)
        if branch_field is not None and branch_field not in columns:
            columns.append(branch_field)
        return columns

    def _with_id_column(
        self,
        resource: str,
        meta: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Add the resource's id column to call meta unless the caller set one."""
        result = dict(meta) if meta else {}
        id_column = self.policy.id_column_for(resource)
        if id_column == "id":
            return result
        current = result.get("id_column_name")
        if isinstance(current, str) and current.strip():
            return result
        result["id_column_name"] = id_column
        return result

    def _id_column(self, resource: str, meta: dict[str, Any]) -> str:
        current = meta.get("id_column_name")
        if isinstance(current, str) and current.strip():
            return current.strip()
        return self.policy.id_column_for(resource)

    @staticmethod
    def _log_context(
        actor: Actor,
        selected: SelectedScope,
        resource: str,
        operation: str,
    ) -> LogContext:
        return LogContext.from_scope(
            actor, selected, resource=resource, operation=operation
        )

    def _current_log_context(self, resource: str, operation: str) -> LogContext:
        return self._log_context(
            self.scope.actor, self.scope.selected, resource, operation
        )
