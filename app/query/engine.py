# app/query/engine.py
"""Query execution orchestrator: compile, count, window, post-process."""

import logging
import time
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.query.aggregates import apply_aggregates
from app.query.builder import QueryBuilder
from app.query.exceptions import MissingTable, QueryExecutionError, translate_database_error
from app.query.introspection import SchemaIntrospector, strip_row_number
from app.query.schemas import CompiledQuery, PaginationState, QueryDescriptor, QueryResult

logger = logging.getLogger(__name__)


class QueryEngine:
    """
    Runs one descriptor against the target database.

    The count and the windowed select run sequentially on the same session.
    The session is closed on every exit path, including compilation failures,
    so the engine owns it for the duration of ``execute``.
    """

    def __init__(
        self,
        db: Session,
        builder: Optional[QueryBuilder] = None,
        introspector: Optional[SchemaIntrospector] = None,
    ):
        self.db = db
        self.builder = builder or QueryBuilder(db.get_bind().dialect.name)
        self.introspector = introspector or SchemaIntrospector(db)

    def resolve_columns(self, descriptor: QueryDescriptor) -> List[str]:
        """Explicit columns, or every column of the table per the catalog."""
        if descriptor.columns:
            return list(descriptor.columns)
        return [column.name for column in self.introspector.list_columns(descriptor.table)]

    def compile(self, descriptor: QueryDescriptor) -> CompiledQuery:
        if not descriptor.table:
            raise MissingTable()
        return self.builder.build(descriptor, columns=self.resolve_columns(descriptor))

    def execute(self, descriptor: QueryDescriptor) -> QueryResult:
        start_time = time.time()
        try:
            compiled = self.compile(descriptor)

            total_count = self.db.execute(text(compiled.count_sql), compiled.parameters).scalar_one()
            pagination = PaginationState.compute(descriptor.page, descriptor.page_size, int(total_count or 0))

            result = self.db.execute(text(compiled.page_sql), compiled.page_parameters)
            rows = [dict(row._mapping) for row in result]
            if compiled.row_number_column:
                rows = [strip_row_number(row, compiled.row_number_column) for row in rows]

            rows = apply_aggregates(rows, descriptor.aggregates)
        except SQLAlchemyError as e:
            self.db.rollback()
            message = translate_database_error(e)
            logger.warning("Query on %s failed: %s", descriptor.table, message)
            raise QueryExecutionError(message) from e
        finally:
            self.db.close()

        execution_time_ms = (time.time() - start_time) * 1000
        logger.info(
            "Query on %s returned %d of %d rows in %.1f ms",
            descriptor.table,
            len(rows),
            pagination.total_count,
            execution_time_ms,
        )
        return QueryResult(
            rows=rows,
            pagination=pagination,
            execution_time_ms=execution_time_ms,
            metadata={"table": descriptor.table, "columns": compiled.columns, "sql": compiled.page_sql},
        )
