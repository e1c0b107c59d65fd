"""
Schema introspection for the target database.

Provides the table/column catalog the query builder UI offers and the
column list used when a descriptor selects no explicit columns.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session
from sqlalchemy.types import Date, DateTime, Integer, LargeBinary, Numeric, Time, TypeEngine

from app.query.builder import QueryBuilder
from app.query.schemas import ColumnInfo, ColumnTypeInfo, QueryDescriptor, TableInfo


def map_column_type(column_type: TypeEngine) -> str:
    """Collapse a database type into the UI's number/text/date/binary families."""
    if isinstance(column_type, (Integer, Numeric)):
        return "number"
    if isinstance(column_type, (Date, DateTime, Time)):
        return "date"
    if isinstance(column_type, LargeBinary):
        return "binary"
    return "text"


def declared_type_name(column_type: TypeEngine) -> str:
    return getattr(column_type, "__visit_name__", type(column_type).__name__).upper()


def format_column_label(column_name: str) -> str:
    """NUMERO_ECRITURE -> Numero Ecriture"""
    return " ".join(word.capitalize() for word in column_name.split("_") if word)


class SchemaIntrospector:
    """Reads table and column metadata through SQLAlchemy's inspector."""

    def __init__(self, db: Session):
        self.db = db

    def _inspector(self):
        return inspect(self.db.connection())

    def list_tables(self) -> List[str]:
        return sorted(self._inspector().get_table_names())

    def _raw_columns(self, table: str) -> List[Dict[str, Any]]:
        try:
            return self._inspector().get_columns(table)
        except NoSuchTableError:
            return []

    def list_columns(self, table: str) -> List[ColumnInfo]:
        """Columns of ``table`` in declaration order; empty when the table is unknown."""
        return [
            ColumnInfo(
                name=column["name"],
                type=map_column_type(column["type"]),
                nullable=column.get("nullable", True),
                label=format_column_label(column["name"]),
            )
            for column in self._raw_columns(table)
        ]

    def column_info(self, table: str, column: str) -> Optional[ColumnTypeInfo]:
        for raw in self._raw_columns(table):
            if raw["name"] == column:
                mapped = map_column_type(raw["type"])
                return ColumnTypeInfo(
                    data_type=declared_type_name(raw["type"]),
                    is_numeric=mapped == "number",
                    mapped_type=mapped,
                )
        return None

    def describe_tables(self) -> List[TableInfo]:
        return [
            TableInfo(name=table, description=f"Table {table}", fields=self.list_columns(table))
            for table in self.list_tables()
        ]

    def sample_rows(self, table: str, limit: int) -> List[Dict[str, Any]]:
        """First ``limit`` rows of ``table``, windowed the same way user queries are."""
        builder = QueryBuilder(self.db.get_bind().dialect.name)
        compiled = builder.build(QueryDescriptor(table=table, page=1, page_size=limit), columns=[])
        result = self.db.execute(text(compiled.page_sql), compiled.page_parameters)
        rows = [dict(row._mapping) for row in result]
        if compiled.row_number_column:
            rows = [strip_row_number(row, compiled.row_number_column) for row in rows]
        return rows


def strip_row_number(row: Dict[str, Any], row_number_column: str) -> Dict[str, Any]:
    """Drop the synthetic paging column (drivers may report it upper-cased)."""
    return {key: value for key, value in row.items() if key.lower() != row_number_column}
