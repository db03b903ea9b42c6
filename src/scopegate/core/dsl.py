"""
Request and result schemas for scopegate.

These Pydantic models are the shared vocabulary between the gateway and the
CRUD clients it wraps: filters, sorters, pagination and operation results.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class FilterOp(str, Enum):
    """Supported filter operators."""

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    BETWEEN = "between"


class SortOrder(str, Enum):
    """Sort order direction."""

    ASC = "asc"
    DESC = "desc"


class FilterClause(BaseModel):
    """
    A single filter condition. Clauses in a list are AND-ed together.

    Examples:
        {"field": "organization_id", "op": "eq", "value": "org-1"}
        {"field": "status", "op": "in", "value": ["waiting", "scheduled"]}
    """

    field: str = Field(..., description="The column to filter on")
    op: FilterOp = Field(default=FilterOp.EQ, description="The filter operator")
    value: Any = Field(..., description="The value to compare against")

    model_config = {"frozen": True}

    @field_validator("field")
    @classmethod
    def validate_field_name(cls, v: str) -> str:
        """Ensure field name is not empty and doesn't contain SQL injection attempts."""
        if not v or not v.strip():
            raise ValueError("Field name cannot be empty")
        if any(char in v for char in [";", "--", "/*", "*/", "'", '"']):
            raise ValueError("Invalid characters in field name")
        return v.strip()

    @classmethod
    def eq(cls, field: str, value: Any) -> "FilterClause":
        """Shorthand for an equality clause."""
        return cls(field=field, op=FilterOp.EQ, value=value)


class Sorter(BaseModel):
    """
    A single sort clause.

    Example:
        {"field": "created_at", "order": "desc"}
    """

    field: str = Field(..., description="The column to sort by")
    order: SortOrder = Field(default=SortOrder.ASC, description="Sort direction")

    model_config = {"frozen": True}


class Pagination(BaseModel):
    """
    Page-number pagination.

    ``mode="off"`` asks the client for every matching row.
    """

    current: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=1000)
    mode: Literal["server", "off"] = Field(default="server")

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        return (self.current - 1) * self.page_size


class ListRequest(BaseModel):
    """A list/search request as handed to a CRUD client."""

    resource: str
    pagination: Pagination = Field(default_factory=Pagination)
    filters: list[FilterClause] = Field(default_factory=list)
    sorters: list[Sorter] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class ListResult(BaseModel):
    """A page of records plus the total number of matching records."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class GetOneResult(BaseModel):
    data: dict[str, Any] | None = Field(default=None)

    model_config = {"frozen": True}


class GetManyResult(BaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}


class CreateResult(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class CreateManyResult(BaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}


class UpdateResult(BaseModel):
    data: dict[str, Any] | None = Field(default=None)

    model_config = {"frozen": True}


class UpdateManyResult(BaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}


class DeleteResult(BaseModel):
    data: dict[str, Any] | None = Field(default=None)

    model_config = {"frozen": True}


class DeleteManyResult(BaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}
