# app/logging/service.py
"""Service layer for reading and pruning request logs."""

from typing import List, Optional

from app.core.base_service import BaseService
from app.logging.models import Log
from app.logging.schemas import LogRead, LogCleanupResult
from app.logging.dao import LogDAO

MAX_DAYS_TO_KEEP = 3650


class LogService(BaseService[Log, LogRead]):
    """Retrieves request logs for the log viewer."""

    response_model = LogRead

    def __init__(self, log_dao: LogDAO):
        super().__init__(log_dao)

    def get_logs_with_filters(
        self,
        limit: int = 50,
        offset: int = 0,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[LogRead]:
        logs = self.dao.get_logs_with_filters(
            limit=limit,
            offset=offset,
            hours=hours,
            status_min=status_min,
            status_max=status_max,
            search=search,
        )
        return [self._to_response(log) for log in logs]

    def get_logs_count_with_filters(
        self,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> int:
        return self.dao.count_logs_with_filters(
            hours=hours, status_min=status_min, status_max=status_max, search=search
        )

    def cleanup_old_logs(self, days_to_keep: int = 90) -> LogCleanupResult:
        """Delete logs older than ``days_to_keep`` days."""
        if not 1 <= days_to_keep <= MAX_DAYS_TO_KEEP:
            raise ValueError(f"Days to keep must be between 1 and {MAX_DAYS_TO_KEEP}")

        deleted_count = self.dao.delete_older_than(days_to_keep)
        return LogCleanupResult(
            deleted_count=deleted_count,
            days_kept=days_to_keep,
            message=f"Deleted {deleted_count} log entries older than {days_to_keep} days",
        )
