# app/query/service.py
"""Service layer for running, previewing and exporting user-built queries."""

import io
import logging
import time
from typing import Any, Dict, List, Optional

import pandas as pd
import sqlparse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import SAMPLE_ROW_LIMIT
from app.query.aggregates import spec_label
from app.query.engine import QueryEngine
from app.query.exceptions import QueryError, translate_database_error
from app.query.execution_log_dao import QueryExecutionLogDAO
from app.query.introspection import SchemaIntrospector
from app.query.schemas import (
    ColumnInfo,
    ColumnTypeInfo,
    ConnectionStatus,
    ExecutionLogRead,
    ExportRequest,
    QueryDescriptor,
    QueryPreview,
    QueryResponse,
    TableInfo,
)

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class QueryService:
    """Query operations against the target database, with execution logging in the config database."""

    def __init__(self, target_db: Session, execution_log_dao: Optional[QueryExecutionLogDAO] = None):
        self.target_db = target_db
        self.execution_log_dao = execution_log_dao
        self.introspector = SchemaIntrospector(target_db)

    # ===== EXECUTION =====

    def run_query(self, descriptor: QueryDescriptor) -> QueryResponse:
        """Execute a descriptor and wrap the result in the success envelope."""
        engine = QueryEngine(self.target_db, introspector=self.introspector)
        start_time = time.time()
        try:
            result = engine.execute(descriptor)
        except QueryError as e:
            execution_time_ms = (time.time() - start_time) * 1000
            self._log_execution(descriptor, execution_time_ms, success=False, error_message=e.message)
            raise

        self._log_execution(
            descriptor,
            result.execution_time_ms,
            success=True,
            row_count=len(result.rows),
            total_count=result.pagination.total_count,
        )
        return QueryResponse(success=True, data=result.rows, pagination=result.pagination)

    def preview(self, descriptor: QueryDescriptor) -> QueryPreview:
        """Compile without executing; the statements are the ones ``run_query`` would send."""
        compiled = QueryEngine(self.target_db, introspector=self.introspector).compile(descriptor)
        return QueryPreview(
            sql=_format_sql(compiled.base_sql),
            count_sql=_format_sql(compiled.count_sql),
            page_sql=_format_sql(compiled.page_sql),
            parameters=compiled.page_parameters,
            columns=compiled.columns,
            aggregate_columns=[spec_label(spec) for spec in descriptor.aggregates],
        )

    def _log_execution(
        self,
        descriptor: QueryDescriptor,
        execution_time_ms: float,
        success: bool,
        row_count: Optional[int] = None,
        total_count: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> None:
        if self.execution_log_dao is None:
            return
        try:
            self.execution_log_dao.record(
                table_name=descriptor.table,
                page=descriptor.page,
                page_size=descriptor.page_size,
                execution_time_ms=execution_time_ms,
                success=success,
                row_count=row_count,
                total_count=total_count,
                error_message=error_message,
            )
        except SQLAlchemyError:
            self.execution_log_dao.db.rollback()
            logger.exception("Failed to record query execution for %s", descriptor.table)

    def get_recent_executions(self, limit: int = 50, table_name: Optional[str] = None) -> List[ExecutionLogRead]:
        if self.execution_log_dao is None:
            return []
        logs = self.execution_log_dao.get_recent(limit=limit, table_name=table_name)
        return [ExecutionLogRead.model_validate(log) for log in logs]

    # ===== SCHEMA CATALOG =====

    def list_tables(self) -> List[str]:
        return self.introspector.list_tables()

    def describe_tables(self) -> List[TableInfo]:
        return self.introspector.describe_tables()

    def list_columns(self, table: str) -> List[ColumnInfo]:
        return self.introspector.list_columns(table)

    def column_info(self, table: str, column: str) -> Optional[ColumnTypeInfo]:
        return self.introspector.column_info(table, column)

    def sample_rows(self, table: str, limit: int = SAMPLE_ROW_LIMIT) -> List[Dict[str, Any]]:
        return self.introspector.sample_rows(table, limit)

    def test_connection(self) -> ConnectionStatus:
        """Acquire a target connection, run a trivial statement, release it."""
        try:
            self.target_db.execute(text("SELECT 1 FROM DUAL" if _is_oracle(self.target_db) else "SELECT 1"))
            return ConnectionStatus(success=True, message="Connection successful")
        except SQLAlchemyError as e:
            return ConnectionStatus(success=False, message=translate_database_error(e))
        finally:
            self.target_db.close()


def _is_oracle(db: Session) -> bool:
    return db.get_bind().dialect.name == "oracle"


def _format_sql(sql: str) -> str:
    return sqlparse.format(sql, reindent=True, keyword_case="upper")


# ===== EXPORT =====


def _rows_to_frame(data: List[Dict[str, Any]]) -> pd.DataFrame:
    if not data:
        raise ValueError("No data provided for export")
    return pd.DataFrame(data)


def _with_extension(file_name: str, extension: str) -> str:
    return file_name if file_name.lower().endswith(extension) else f"{file_name}{extension}"


def build_xlsx(request: ExportRequest) -> tuple:
    """Render rows as an XLSX workbook; returns ``(content, file_name)``."""
    from openpyxl.styles import Font

    df = _rows_to_frame(request.data)
    sheet_name = (request.sheet_name or "Results")[:31]  # Excel sheet name limit

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        worksheet = writer.sheets[sheet_name]
        for cell in worksheet[1]:
            cell.font = Font(bold=True)
        _auto_adjust_columns(worksheet)

    return buffer.getvalue(), _with_extension(request.file_name, ".xlsx")


def build_csv(request: ExportRequest) -> tuple:
    """Render rows as UTF-8 CSV; returns ``(content, file_name)``."""
    df = _rows_to_frame(request.data)
    return df.to_csv(index=False).encode("utf-8"), _with_extension(request.file_name, ".csv")


def _auto_adjust_columns(worksheet):
    """Auto-adjust column widths for better readability."""
    for column in worksheet.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        # Padding, capped at 50 characters
        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)
