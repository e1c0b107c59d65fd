# app/logging/router.py
"""API router for the request log viewer."""

from fastapi import APIRouter, Depends, Query, Response, HTTPException
from typing import List, Optional

from app.core.dependencies import SessionDep
from app.logging.schemas import LogRead, LogCleanupResult
from app.logging.service import LogService
from app.logging.dao import LogDAO


router = APIRouter(
    prefix="/logs",
    tags=["logs"],
)


def get_log_service(session: SessionDep) -> LogService:
    return LogService(LogDAO(session))


@router.get("/", response_model=List[LogRead])
def get_logs(
    response: Response,
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    hours: int = Query(24, ge=1, le=168, description="Time window in hours"),
    status_min: Optional[int] = Query(None, ge=100, le=599, description="Minimum status code"),
    status_max: Optional[int] = Query(None, ge=100, le=599, description="Maximum status code"),
    search: Optional[str] = Query(None, description="Search term for filtering logs"),
    log_service: LogService = Depends(get_log_service),
) -> List[LogRead]:
    """Recent logs, newest first; the total match count is sent in ``X-Total-Count``."""
    total = log_service.get_logs_count_with_filters(
        hours=hours, status_min=status_min, status_max=status_max, search=search
    )
    response.headers["X-Total-Count"] = str(total)
    return log_service.get_logs_with_filters(
        limit=limit,
        offset=offset,
        hours=hours,
        status_min=status_min,
        status_max=status_max,
        search=search,
    )


@router.get("/count")
def get_logs_count(
    hours: int = Query(24, ge=1, le=168),
    status_min: Optional[int] = Query(None, ge=100, le=599),
    status_max: Optional[int] = Query(None, ge=100, le=599),
    search: Optional[str] = None,
    log_service: LogService = Depends(get_log_service),
) -> dict:
    return {
        "count": log_service.get_logs_count_with_filters(
            hours=hours, status_min=status_min, status_max=status_max, search=search
        )
    }


@router.post("/cleanup", response_model=LogCleanupResult)
def cleanup_old_logs(
    days_to_keep: int = Query(90, description="Number of days of logs to keep"),
    log_service: LogService = Depends(get_log_service),
) -> LogCleanupResult:
    try:
        return log_service.cleanup_old_logs(days_to_keep)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{log_id}", response_model=LogRead)
def get_log_by_id(log_id: int, log_service: LogService = Depends(get_log_service)) -> LogRead:
    log = log_service.get_by_id(log_id)
    if log is None:
        raise HTTPException(status_code=404, detail="Log not found")
    return log
