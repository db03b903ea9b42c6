"""
In-memory CRUD client.

Keeps tables as lists of dicts with a declared column set, and reports
references to undeclared columns exactly like a PostgreSQL-backed store
would (SQLSTATE 42703). Useful for tests and for running a console against
a local fixture without a database.
"""

import copy
from collections.abc import Iterable, Sequence
from typing import Any
from uuid import uuid4

from scopegate.adapters.base import CrudClient, id_column_from_meta
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
    SortOrder,
    Sorter,
    UpdateManyResult,
    UpdateResult,
)
from scopegate.core.errors import StoreError


class _Table:
    def __init__(self, name: str, columns: Iterable[str]) -> None:
        self.name = name
        self.columns = list(dict.fromkeys(columns))
        self.rows: list[dict[str, Any]] = []

    def require(self, column: str) -> None:
        if column not in self.columns:
            raise StoreError.undefined_column(self.name, column)


class InMemoryCrudClient(CrudClient):
    """
    CRUD client over in-process tables.

    Example:
        client = InMemoryCrudClient()
        client.add_table("branches", ["id", "organization_id", "name"])
        client.seed("branches", [{"id": "b-1", "organization_id": "org-1", "name": "Seoul"}])
    """

    def __init__(self) -> None:
        self._tables: dict[str, _Table] = {}

    # =========================================================================
    # FIXTURE SETUP
    # =========================================================================

    def add_table(
        self,
        name: str,
        columns: Iterable[str],
        rows: Iterable[dict[str, Any]] | None = None,
    ) -> None:
        self._tables[name] = _Table(name, columns)
        if rows:
            self.seed(name, rows)

    def seed(self, name: str, rows: Iterable[dict[str, Any]]) -> None:
        table = self._table(name)
        for row in rows:
            for column in row:
                table.require(column)
            table.rows.append({c: row.get(c) for c in table.columns})

    def rows(self, name: str) -> list[dict[str, Any]]:
        """A copy of every row currently stored in a table."""
        return copy.deepcopy(self._table(name).rows)

    # =========================================================================
    # READS
    # =========================================================================

    async def get_list(self, request: ListRequest) -> ListResult:
        table = self._table(request.resource)
        for clause in request.filters:
            table.require(clause.field)
        for sorter in request.sorters:
            table.require(sorter.field)

        matched = [
            row for row in table.rows
            if all(_matches(row.get(f.field), f) for f in request.filters)
        ]
        matched = _sort_rows(matched, request.sorters)
        total = len(matched)

        pagination = request.pagination
        if pagination.mode == "server":
            matched = matched[pagination.offset:pagination.offset + pagination.page_size]

        return ListResult(data=copy.deepcopy(matched), total=total)

    async def get_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> GetOneResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        row = self._find(table, id_column, id)
        return GetOneResult(data=copy.deepcopy(row) if row is not None else None)

    async def get_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> GetManyResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        wanted = set(ids)
        rows = [row for row in table.rows if row.get(id_column) in wanted]
        return GetManyResult(data=copy.deepcopy(rows))

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(
        self,
        resource: str,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> CreateResult:
        table = self._table(resource)
        row = self._insert(table, variables, id_column_from_meta(meta))
        return CreateResult(data=copy.deepcopy(row))

    async def create_many(
        self,
        resource: str,
        variables: Sequence[dict[str, Any]],
        meta: dict[str, Any] | None = None,
    ) -> CreateManyResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        for item in variables:
            for column in item:
                table.require(column)
        rows = [self._insert(table, item, id_column) for item in variables]
        return CreateManyResult(data=copy.deepcopy(rows))

    async def update(
        self,
        resource: str,
        id: Any,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        for column in variables:
            table.require(column)
        row = self._find(table, id_column, id)
        if row is None:
            return UpdateResult(data=None)
        row.update(variables)
        return UpdateResult(data=copy.deepcopy(row))

    async def update_many(
        self,
        resource: str,
        ids: Sequence[Any],
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateManyResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        for column in variables:
            table.require(column)
        wanted = set(ids)
        updated = []
        for row in table.rows:
            if row.get(id_column) in wanted:
                row.update(variables)
                updated.append(copy.deepcopy(row))
        return UpdateManyResult(data=updated)

    async def delete_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> DeleteResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        row = self._find(table, id_column, id)
        if row is not None:
            table.rows.remove(row)
        return DeleteResult(data=row)

    async def delete_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> DeleteManyResult:
        table = self._table(resource)
        id_column = id_column_from_meta(meta)
        table.require(id_column)
        wanted = set(ids)
        removed = [row for row in table.rows if row.get(id_column) in wanted]
        table.rows = [row for row in table.rows if row.get(id_column) not in wanted]
        return DeleteManyResult(data=removed)

    async def describe_columns(self, resource: str) -> set[str] | None:
        table = self._tables.get(resource)
        return set(table.columns) if table is not None else None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _table(self, name: str) -> _Table:
        table = self._tables.get(name)
        if table is None:
            raise StoreError(
                f'relation "{name}" does not exist',
                code="42P01",
                relation=name,
                status=404,
            )
        return table

    def _find(self, table: _Table, id_column: str, id: Any) -> dict[str, Any] | None:
        for row in table.rows:
            if row.get(id_column) == id:
                return row
        return None

    def _insert(self, table: _Table, variables: dict[str, Any], id_column: str) -> dict[str, Any]:
        for column in variables:
            table.require(column)
        row = {c: variables.get(c) for c in table.columns}
        if id_column in table.columns and row.get(id_column) is None:
            row[id_column] = str(uuid4())
        table.rows.append(row)
        return row


def _matches(value: Any, clause: FilterClause) -> bool:
    """Evaluate a single filter clause against a column value."""
    target = clause.value
    match clause.op:
        case FilterOp.EQ:
            return value == target
        case FilterOp.NE:
            return value != target
        case FilterOp.LT:
            return value is not None and value < target
        case FilterOp.LTE:
            return value is not None and value <= target
        case FilterOp.GT:
            return value is not None and value > target
        case FilterOp.GTE:
            return value is not None and value >= target
        case FilterOp.IN:
            return value in target
        case FilterOp.NOT_IN:
            return value not in target
        case FilterOp.IS_NULL:
            return (value is None) if target else (value is not None)
        case FilterOp.CONTAINS:
            return isinstance(value, str) and str(target) in value
        case FilterOp.STARTSWITH:
            return isinstance(value, str) and value.startswith(str(target))
        case FilterOp.ENDSWITH:
            return isinstance(value, str) and value.endswith(str(target))
        case FilterOp.BETWEEN:
            if not isinstance(target, (list, tuple)) or len(target) != 2:
                raise StoreError(
                    f"Invalid 'between' operator: expected a list/tuple of 2 values, got {target!r}",
                    code="22023",
                    column=clause.field,
                )
            return value is not None and target[0] <= value <= target[1]
    return False


def _sort_rows(rows: list[dict[str, Any]], sorters: list[Sorter]) -> list[dict[str, Any]]:
    """Sort by each sorter in turn, NULLs last."""
    result = list(rows)
    for sorter in reversed(sorters):
        descending = sorter.order == SortOrder.DESC
        present = [r for r in result if r.get(sorter.field) is not None]
        missing = [r for r in result if r.get(sorter.field) is None]
        present.sort(key=lambda r, f=sorter.field: r[f], reverse=descending)
        result = present + missing
    return result
