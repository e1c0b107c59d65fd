"""Pydantic schemas for saved queries and their interchange document."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from app.core.config import SAVED_QUERY_VERSION
from app.query.aggregates import spec_label
from app.query.schemas import AggregateSpec, CamelModel, QueryDescriptor
from app.saved_queries.exceptions import InvalidSavedQuery


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


class SavedQueryConfig(CamelModel):
    """
    Snapshot of the query builder state when the query was saved.

    Filters, sorting and aggregates are kept as the client sent them; they are
    only interpreted when the query is turned back into a descriptor.
    """

    selected_table: str
    selected_columns: List[str] = []
    filters: List[Dict[str, Any]] = []
    sorting: List[Dict[str, Any]] = []
    aggregates: List[Dict[str, Any]] = []
    pagination: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    def to_descriptor(self, page: Optional[int] = None, page_size: Optional[int] = None) -> QueryDescriptor:
        """Extract the query descriptor; explicit ``page``/``page_size`` override the saved pagination."""
        pagination = self.pagination or {}
        payload: Dict[str, Any] = {
            "table": self.selected_table,
            "columns": self.selected_columns,
            "filters": self.filters,
            "sorting": self.sorting,
            "aggregates": self.aggregates,
        }
        saved_page = pagination.get("currentPage", pagination.get("page"))
        saved_size = pagination.get("pageSize")
        if page is not None or saved_page is not None:
            payload["page"] = page if page is not None else saved_page
        if page_size is not None or saved_size is not None:
            payload["pageSize"] = page_size if page_size is not None else saved_size
        try:
            return QueryDescriptor.model_validate(payload)
        except ValidationError as e:
            raise InvalidSavedQuery(f"Saved configuration is not a valid query: {e.errors()[0]['msg']}") from e

    def aggregate_columns(self) -> List[str]:
        """Output names of the saved aggregates, as the engine will produce them."""
        labels = []
        for raw in self.aggregates:
            try:
                spec = AggregateSpec.model_validate(raw)
            except ValidationError:
                continue
            labels.append(spec_label(spec))
        return labels


class SavedQuery(CamelModel):
    """A named, versioned query owned by the saved-query repository."""

    id: str
    name: str
    description: Optional[str] = None
    timestamp: datetime
    version: str = SAVED_QUERY_VERSION
    config: SavedQueryConfig

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def accept_created_at(cls, data: Any) -> Any:
        # Entries exported by the first UI carry createdAt instead of timestamp
        if isinstance(data, dict) and not data.get("timestamp") and data.get("createdAt"):
            data = {**data, "timestamp": data["createdAt"]}
        return data

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("version", mode="before")
    @classmethod
    def version_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v


class SavedQuerySummary(CamelModel):
    """List view of a saved query."""

    id: str
    name: str
    description: Optional[str] = None
    timestamp: datetime
    version: str
    table: str
    column_count: int
    filter_count: int
    aggregate_columns: List[str]

    @classmethod
    def from_saved(cls, query: SavedQuery) -> "SavedQuerySummary":
        return cls(
            id=query.id,
            name=query.name,
            description=query.description,
            timestamp=query.timestamp,
            version=query.version,
            table=query.config.selected_table,
            column_count=len(query.config.selected_columns),
            filter_count=len(query.config.filters),
            aggregate_columns=query.config.aggregate_columns(),
        )


class SaveQueryRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    config: Dict[str, Any]


class RunSavedQueryRequest(CamelModel):
    page: Optional[int] = Field(None, ge=1)
    page_size: Optional[int] = Field(None, ge=0)


class ImportResult(CamelModel):
    success: bool = True
    imported: int
    skipped: int
    total: int
    message: str


class ValidationResult(CamelModel):
    valid: bool


class SavedQueryExport(CamelModel):
    """Interchange document written by export and accepted by import."""

    version: str = SAVED_QUERY_VERSION
    exported_at: datetime = Field(default_factory=utc_now)
    queries: List[SavedQuery]
