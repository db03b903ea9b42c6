"""
SQLAlchemy CRUD client.

Reflects tables from a live database and executes gateway requests with
SQLAlchemy Core. Supports both sync and async engines. Database errors are
translated into StoreError so the gateway can recognize undefined columns
regardless of the driver.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from sqlalchemy import (
    Engine,
    MetaData,
    Select,
    Table,
    and_,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError, NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncEngine

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

T = TypeVar("T")


class SQLAlchemyCrudClient(CrudClient):
    """
    CRUD client backed by a SQLAlchemy engine.

    Tables are reflected lazily on first use and cached for the life of the
    client.
    """

    def __init__(
        self,
        engine: Engine | AsyncEngine,
        schema: str | None = None,
    ) -> None:
        """
        Args:
            engine: SQLAlchemy engine (sync or async)
            schema: Optional database schema the tables live in
        """
        self.engine = engine
        self.schema = schema
        self.is_async = isinstance(engine, AsyncEngine)
        self._metadata = MetaData(schema=schema)
        self._tables: dict[str, Table] = {}

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def _run(self, fn: Callable[[Connection], T]) -> T:
        """Run ``fn`` in a transaction, translating driver errors."""
        try:
            if self.is_async:
                async with self.engine.begin() as conn:  # type: ignore[union-attr]
                    return await conn.run_sync(fn)
            with self.engine.begin() as conn:  # type: ignore[union-attr]
                return fn(conn)
        except DBAPIError as exc:
            raise _translate_error(exc) from exc

    def _table(self, conn: Connection, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            try:
                table = Table(name, self._metadata, autoload_with=conn)
            except NoSuchTableError:
                raise StoreError(
                    f'relation "{name}" does not exist',
                    code="42P01",
                    relation=name,
                    status=404,
                ) from None
            self._tables[name] = table
        return table

    def _column(self, table: Table, name: str) -> Any:
        if name not in table.c:
            raise StoreError.undefined_column(table.name, name)
        return table.c[name]

    def _check_values(self, table: Table, variables: dict[str, Any]) -> None:
        for name in variables:
            self._column(table, name)

    # =========================================================================
    # READS
    # =========================================================================

    async def get_list(self, request: ListRequest) -> ListResult:
        def run(conn: Connection) -> ListResult:
            table = self._table(conn, request.resource)
            condition = self._where(table, request.filters)

            count_stmt = select(func.count()).select_from(table)
            stmt: Select = select(table)
            if condition is not None:
                count_stmt = count_stmt.where(condition)
                stmt = stmt.where(condition)

            stmt = self._apply_sorters(stmt, table, request.sorters)

            pagination = request.pagination
            if pagination.mode == "server":
                stmt = stmt.limit(pagination.page_size).offset(pagination.offset)

            total = conn.execute(count_stmt).scalar_one()
            rows = conn.execute(stmt).all()
            return ListResult(data=[dict(r._mapping) for r in rows], total=total)

        return await self._run(run)

    async def get_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> GetOneResult:
        def run(conn: Connection) -> GetOneResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            row = conn.execute(select(table).where(pk == id)).first()
            return GetOneResult(data=dict(row._mapping) if row is not None else None)

        return await self._run(run)

    async def get_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> GetManyResult:
        def run(conn: Connection) -> GetManyResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            rows = conn.execute(select(table).where(pk.in_(list(ids)))).all()
            return GetManyResult(data=[dict(r._mapping) for r in rows])

        return await self._run(run)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(
        self,
        resource: str,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> CreateResult:
        def run(conn: Connection) -> CreateResult:
            table = self._table(conn, resource)
            self._check_values(table, variables)
            row = conn.execute(insert(table).values(**variables).returning(*table.c)).one()
            return CreateResult(data=dict(row._mapping))

        return await self._run(run)

    async def create_many(
        self,
        resource: str,
        variables: Sequence[dict[str, Any]],
        meta: dict[str, Any] | None = None,
    ) -> CreateManyResult:
        def run(conn: Connection) -> CreateManyResult:
            table = self._table(conn, resource)
            created = []
            for item in variables:
                self._check_values(table, item)
                row = conn.execute(insert(table).values(**item).returning(*table.c)).one()
                created.append(dict(row._mapping))
            return CreateManyResult(data=created)

        return await self._run(run)

    async def update(
        self,
        resource: str,
        id: Any,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateResult:
        def run(conn: Connection) -> UpdateResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            self._check_values(table, variables)
            stmt = update(table).where(pk == id).values(**variables).returning(*table.c)
            row = conn.execute(stmt).first()
            return UpdateResult(data=dict(row._mapping) if row is not None else None)

        return await self._run(run)

    async def update_many(
        self,
        resource: str,
        ids: Sequence[Any],
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateManyResult:
        def run(conn: Connection) -> UpdateManyResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            self._check_values(table, variables)
            stmt = (
                update(table)
                .where(pk.in_(list(ids)))
                .values(**variables)
                .returning(*table.c)
            )
            rows = conn.execute(stmt).all()
            return UpdateManyResult(data=[dict(r._mapping) for r in rows])

        return await self._run(run)

    async def delete_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> DeleteResult:
        def run(conn: Connection) -> DeleteResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            row = conn.execute(delete(table).where(pk == id).returning(*table.c)).first()
            return DeleteResult(data=dict(row._mapping) if row is not None else None)

        return await self._run(run)

    async def delete_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> DeleteManyResult:
        def run(conn: Connection) -> DeleteManyResult:
            table = self._table(conn, resource)
            pk = self._column(table, id_column_from_meta(meta))
            stmt = delete(table).where(pk.in_(list(ids))).returning(*table.c)
            rows = conn.execute(stmt).all()
            return DeleteManyResult(data=[dict(r._mapping) for r in rows])

        return await self._run(run)

    async def describe_columns(self, resource: str) -> set[str] | None:
        def run(conn: Connection) -> set[str] | None:
            try:
                table = self._table(conn, resource)
            except StoreError:
                return None
            return {c.name for c in table.c}

        return await self._run(run)

    # =========================================================================
    # COMPILATION
    # =========================================================================

    def _where(self, table: Table, filters: list[FilterClause]) -> Any:
        conditions = [
            self._build_condition(self._column(table, f.field), f) for f in filters
        ]
        if not conditions:
            return None
        return and_(*conditions)

    def _build_condition(self, column: Any, clause: FilterClause) -> Any:
        """Build a SQLAlchemy condition from a filter clause."""
        value = clause.value

        match clause.op:
            case FilterOp.EQ:
                return column == value
            case FilterOp.NE:
                return column != value
            case FilterOp.LT:
                return column < value
            case FilterOp.LTE:
                return column <= value
            case FilterOp.GT:
                return column > value
            case FilterOp.GTE:
                return column >= value
            case FilterOp.IN:
                return column.in_(value)
            case FilterOp.NOT_IN:
                return column.not_in(value)
            case FilterOp.IS_NULL:
                return column.is_(None) if value else column.is_not(None)
            case FilterOp.CONTAINS:
                return column.contains(value)
            case FilterOp.STARTSWITH:
                return column.startswith(value)
            case FilterOp.ENDSWITH:
                return column.endswith(value)
            case FilterOp.BETWEEN:
                if isinstance(value, (list, tuple)) and len(value) == 2:
                    return column.between(value[0], value[1])
                raise StoreError(
                    f"Invalid 'between' operator: expected a list/tuple of 2 values, got {value!r}",
                    code="22023",
                    column=clause.field,
                )

    def _apply_sorters(self, stmt: Select, table: Table, sorters: list[Sorter]) -> Select:
        """Apply ORDER BY clauses to a statement."""
        for sorter in sorters:
            column = self._column(table, sorter.field)
            if sorter.order == SortOrder.DESC:
                stmt = stmt.order_by(column.desc())
            else:
                stmt = stmt.order_by(column.asc())
        return stmt


def _translate_error(exc: DBAPIError) -> StoreError:
    """Convert a driver error into a StoreError, keeping the SQLSTATE if any."""
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    message = str(orig) if orig is not None else str(exc)
    return StoreError(
        message.strip(),
        code=str(code) if code else None,
        details={"statement": exc.statement} if exc.statement else None,
    )
