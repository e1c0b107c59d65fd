# app/query/execution_log_dao.py
"""Data Access Object for query execution logs."""

from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.base_dao import BaseDAO
from app.query.models import QueryExecutionLog


class QueryExecutionLogDAO(BaseDAO[QueryExecutionLog]):
    """DAO for query execution log operations."""

    timestamp_field = "executed_at"

    def __init__(self, db_session: Session):
        super().__init__(QueryExecutionLog, db_session)

    def record(
        self,
        table_name: Optional[str],
        page: int,
        page_size: int,
        execution_time_ms: float,
        success: bool,
        row_count: Optional[int] = None,
        total_count: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> QueryExecutionLog:
        return self.create(
            table_name=table_name,
            page=page,
            page_size=page_size,
            execution_time_ms=execution_time_ms,
            success=success,
            row_count=row_count,
            total_count=total_count,
            error_message=error_message,
        )

    def get_recent(self, limit: int = 100, table_name: Optional[str] = None) -> List[QueryExecutionLog]:
        """Most recent executions first, optionally for one table."""
        return self.get_all(limit=limit, table_name=table_name)
