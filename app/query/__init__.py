"""
Query module: compiles visual query descriptors into parameterized SQL and runs them.

Main Components:
- QueryBuilder: compiles a descriptor into base, count and windowed statements
- QueryEngine: count-then-window execution with per-row aggregates
- SchemaIntrospector: table/column catalog of the target database
- Schemas: descriptor, pagination and result types
"""

from .builder import QueryBuilder
from .engine import QueryEngine
from .introspection import SchemaIntrospector
from .aggregates import aggregate_label, apply_aggregates
from .exceptions import (
    QueryError,
    CompilationError,
    InvalidIdentifier,
    MissingTable,
    QueryExecutionError,
)
from .schemas import (
    # Descriptor types
    QueryDescriptor,
    FilterSpec,
    SortSpec,
    AggregateSpec,
    # Results
    CompiledQuery,
    QueryResult,
    PaginationState,
    # Enums
    FilterOperator,
    SortDirection,
    AggregateType,
)

__all__ = [
    # Main classes
    "QueryBuilder",
    "QueryEngine",
    "SchemaIntrospector",
    "aggregate_label",
    "apply_aggregates",
    # Errors
    "QueryError",
    "CompilationError",
    "InvalidIdentifier",
    "MissingTable",
    "QueryExecutionError",
    # Descriptor types
    "QueryDescriptor",
    "FilterSpec",
    "SortSpec",
    "AggregateSpec",
    # Results
    "CompiledQuery",
    "QueryResult",
    "PaginationState",
    # Enums
    "FilterOperator",
    "SortDirection",
    "AggregateType",
]
