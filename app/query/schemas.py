"""
Query descriptor schemas and result types for the query engine.

Request-facing types are pydantic models serialized with camelCase aliases
(``pageSize``, ``totalCount`` ...) to match the client payloads. Compilation
outputs are plain dataclasses, they never cross the API boundary directly.
"""

import math
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class FilterOperator(str, Enum):
    """Supported filter operators."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"

    @classmethod
    def resolve(cls, raw: Any) -> Optional["FilterOperator"]:
        """Map an operator as stored by any client version, or None when unknown."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip()
        return _OPERATOR_LOOKUP.get(key) or _OPERATOR_LOOKUP.get(key.lower())

    @property
    def is_unary(self) -> bool:
        return self in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


_OPERATOR_LOOKUP: Dict[str, FilterOperator] = {
    **{op.value: op for op in FilterOperator},
    **{op.value.lower(): op for op in FilterOperator},
    # Symbolic forms saved by the first version of the query builder UI
    "=": FilterOperator.EQ,
    "!=": FilterOperator.NEQ,
    "<>": FilterOperator.NEQ,
    ">": FilterOperator.GT,
    "<": FilterOperator.LT,
    ">=": FilterOperator.GTE,
    "<=": FilterOperator.LTE,
    "contient": FilterOperator.CONTAINS,
    "like": FilterOperator.CONTAINS,
}


class SortDirection(str, Enum):
    """Sort directions."""

    ASC = "ASC"
    DESC = "DESC"


class AggregateType(str, Enum):
    """Per-row aggregate functions."""

    SUM = "SUM"
    AVG = "AVG"
    COUNT = "COUNT"


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ===== DESCRIPTOR SCHEMAS =====


class FilterSpec(CamelModel):
    """
    One filter condition.

    ``operator`` stays a free string so partial or legacy entries reach the
    predicate compiler, which drops what it cannot compile.
    """

    field: Optional[str] = None
    operator: Optional[str] = None
    value: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class SortSpec(CamelModel):
    """One ORDER BY term."""

    field: Optional[str] = None
    direction: Optional[str] = SortDirection.ASC.value

    model_config = ConfigDict(extra="ignore")


class AggregateSpec(CamelModel):
    """A per-row aggregate over some of the row's columns."""

    type: AggregateType
    columns: List[str] = []
    alias: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("alias")
    @classmethod
    def blank_alias_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_columns(self) -> "AggregateSpec":
        if self.type in (AggregateType.SUM, AggregateType.AVG) and not self.columns:
            raise ValueError(f"{self.type.value} requires at least one column")
        return self


class QueryDescriptor(CamelModel):
    """Everything needed to compile and run one query request."""

    table: Optional[str] = None
    columns: List[str] = []
    filters: List[FilterSpec] = []
    sorting: List[SortSpec] = []
    aggregates: List[AggregateSpec] = []
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=0, le=MAX_PAGE_SIZE)

    model_config = ConfigDict(frozen=True, extra="ignore")


# ===== RESULT SCHEMAS =====


class PaginationState(CamelModel):
    """Pagination metadata, always derived from the count and the page request."""

    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def compute(cls, page: int, page_size: int, total_count: int) -> "PaginationState":
        if page_size > 0:
            total_pages = math.ceil(total_count / page_size)
        else:
            # Unpaginated: everything sits on a single page
            total_pages = 1 if total_count > 0 else 0
            page = 1
        return cls(
            current_page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class QueryResponse(CamelModel):
    """Success envelope returned by the execute endpoints."""

    success: bool = True
    data: List[Dict[str, Any]]
    pagination: PaginationState


class ErrorResponse(CamelModel):
    """Failure envelope."""

    success: bool = False
    error: str


class QueryPreview(CamelModel):
    """Compiled SQL for a descriptor, without executing it."""

    sql: str
    count_sql: str
    page_sql: str
    parameters: Dict[str, Any]
    columns: List[str]
    aggregate_columns: List[str]


class ColumnInfo(CamelModel):
    """A column as reported by schema introspection."""

    name: str
    type: str
    nullable: bool = True
    label: str


class ColumnTypeInfo(CamelModel):
    """Declared type details for a single column."""

    data_type: str
    is_numeric: bool
    mapped_type: str


class TableInfo(CamelModel):
    """A table and its fields."""

    name: str
    description: str
    fields: List[ColumnInfo]


class ConnectionStatus(CamelModel):
    success: bool
    message: str


class ExecutionLogRead(CamelModel):
    """Schema for query execution log entries."""

    id: int
    table_name: Optional[str] = None
    page: int
    page_size: int
    row_count: Optional[int] = None
    total_count: Optional[int] = None
    execution_time_ms: Optional[float] = None
    success: bool
    error_message: Optional[str] = None
    executed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExportRequest(CamelModel):
    """Rows to export as a spreadsheet or CSV file."""

    data: List[Dict[str, Any]] = []
    file_name: str = "query_results"
    sheet_name: str = "Results"


# ===== COMPILATION OUTPUTS =====


@dataclass(frozen=True)
class CompiledQuery:
    """The three statements compiled from one descriptor."""

    base_sql: str
    count_sql: str
    page_sql: str
    parameters: Dict[str, Any]
    page_parameters: Dict[str, Any]
    columns: List[str]
    row_number_column: Optional[str] = None


@dataclass
class QueryResult:
    """Rows returned by the engine together with their pagination state."""

    rows: List[Dict[str, Any]]
    pagination: PaginationState
    execution_time_ms: float = 0.0
    metadata: Dict[str, Any] = dataclass_field(default_factory=dict)
