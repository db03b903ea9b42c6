"""
Abstract CRUD client interface.

The gateway's only dependency for talking to the backing store. Clients
report backend failures as StoreError (or any exception carrying ``code``
and ``message``), which is how the gateway tells an undefined column apart
from every other failure.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

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


class CrudClient(ABC):
    """
    Abstract base class for CRUD clients.

    Only ``get_list`` is mandatory. The other operations raise
    NotImplementedError unless a client overrides them; the gateway falls
    back or reports the operation as unsupported accordingly.

    ``meta`` carries per-call hints such as ``id_column_name``.
    """

    @abstractmethod
    async def get_list(self, request: ListRequest) -> ListResult:
        """
        Return one page of ``request.resource`` rows matching all filters,
        plus the total number of matches.
        """
        ...

    async def get_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> GetOneResult:
        raise NotImplementedError("get_one not implemented for this client")

    async def get_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> GetManyResult:
        raise NotImplementedError("get_many not implemented for this client")

    async def create(
        self,
        resource: str,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> CreateResult:
        raise NotImplementedError("create not implemented for this client")

    async def create_many(
        self,
        resource: str,
        variables: Sequence[dict[str, Any]],
        meta: dict[str, Any] | None = None,
    ) -> CreateManyResult:
        raise NotImplementedError("create_many not implemented for this client")

    async def update(
        self,
        resource: str,
        id: Any,
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateResult:
        raise NotImplementedError("update not implemented for this client")

    async def update_many(
        self,
        resource: str,
        ids: Sequence[Any],
        variables: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> UpdateManyResult:
        raise NotImplementedError("update_many not implemented for this client")

    async def delete_one(
        self,
        resource: str,
        id: Any,
        meta: dict[str, Any] | None = None,
    ) -> DeleteResult:
        raise NotImplementedError("delete_one not implemented for this client")

    async def delete_many(
        self,
        resource: str,
        ids: Sequence[Any],
        meta: dict[str, Any] | None = None,
    ) -> DeleteManyResult:
        raise NotImplementedError("delete_many not implemented for this client")

    async def describe_columns(self, resource: str) -> set[str] | None:
        """
        Return the column names of a resource, or None if unknown.

        Used to pre-seed column availability at startup.
        """
        return None


def id_column_from_meta(meta: dict[str, Any] | None, default: str = "id") -> str:
    """Resolve the primary key column a call should use."""
    if meta:
        name = meta.get("id_column_name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return default
