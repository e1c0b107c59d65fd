"""API router for the query builder: execution, preview, schema catalog and export."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.core.dependencies import SessionDep, TargetSessionDep
from app.query.execution_log_dao import QueryExecutionLogDAO
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
from app.query.service import XLSX_MEDIA_TYPE, QueryService, build_csv, build_xlsx

router = APIRouter(prefix="/query", tags=["query"])


def get_query_service(target_db: TargetSessionDep, db: SessionDep) -> QueryService:
    return QueryService(target_db, QueryExecutionLogDAO(db))


@router.post("/execute", response_model=QueryResponse, response_model_by_alias=True)
def execute_query(descriptor: QueryDescriptor, service: QueryService = Depends(get_query_service)) -> QueryResponse:
    """Run a query descriptor and return the requested page with pagination metadata."""
    return service.run_query(descriptor)


@router.post("/preview", response_model=QueryPreview, response_model_by_alias=True)
def preview_query(descriptor: QueryDescriptor, service: QueryService = Depends(get_query_service)) -> QueryPreview:
    """Show the SQL a descriptor compiles to, without running it."""
    return service.preview(descriptor)


@router.get("/tables", response_model=List[str])
def list_tables(service: QueryService = Depends(get_query_service)) -> List[str]:
    return service.list_tables()


@router.get("/catalog", response_model=List[TableInfo], response_model_by_alias=True)
def describe_tables(service: QueryService = Depends(get_query_service)) -> List[TableInfo]:
    return service.describe_tables()


@router.get("/tables/{table}/columns", response_model=List[ColumnInfo], response_model_by_alias=True)
def list_columns(table: str, service: QueryService = Depends(get_query_service)) -> List[ColumnInfo]:
    return service.list_columns(table)


@router.get("/tables/{table}/columns/{column}", response_model=ColumnTypeInfo, response_model_by_alias=True)
def get_column_info(table: str, column: str, service: QueryService = Depends(get_query_service)) -> ColumnTypeInfo:
    info = service.column_info(table, column)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Column {column} not found in table {table}")
    return info


@router.get("/tables/{table}/sample", response_model=List[Dict[str, Any]])
def get_sample_rows(
    table: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: QueryService = Depends(get_query_service),
) -> List[Dict[str, Any]]:
    if not service.list_columns(table):
        raise HTTPException(status_code=404, detail=f"Table {table} not found")
    return service.sample_rows(table) if limit is None else service.sample_rows(table, limit)


@router.post("/test-connection", response_model=ConnectionStatus)
def test_connection(service: QueryService = Depends(get_query_service)) -> ConnectionStatus:
    return service.test_connection()


@router.get("/executions", response_model=List[ExecutionLogRead], response_model_by_alias=True)
def get_recent_executions(
    limit: int = Query(50, ge=1, le=500),
    table: Optional[str] = None,
    service: QueryService = Depends(get_query_service),
) -> List[ExecutionLogRead]:
    return service.get_recent_executions(limit=limit, table_name=table)


# ===== EXPORT ENDPOINTS =====


@router.post("/export-xlsx")
def export_to_xlsx(request: ExportRequest) -> Response:
    """Export result rows to an Excel (XLSX) attachment."""
    try:
        content, file_name = build_xlsx(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )


@router.post("/export-csv")
def export_to_csv(request: ExportRequest) -> Response:
    """Export result rows to a CSV attachment."""
    try:
        content, file_name = build_csv(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )
