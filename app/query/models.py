"""Database models for the query module (config database)."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float
from app.core.database import Base


class QueryExecutionLog(Base):
    """Log of query executions with performance metrics."""

    __tablename__ = "query_execution_logs"

    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String, nullable=True, index=True)
    page = Column(Integer, nullable=False, default=1)
    page_size = Column(Integer, nullable=False, default=0)
    row_count = Column(Integer, nullable=True)
    total_count = Column(Integer, nullable=True)
    execution_time_ms = Column(Float, nullable=True)
    success = Column(Boolean, nullable=False)
    error_message = Column(Text, nullable=True)
    executed_at = Column(DateTime, default=datetime.now, index=True)
