"""API router for saved queries."""

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from fastapi.responses import Response

from app.core.dependencies import SavedQueryRepositoryDep
from app.query.router import get_query_service
from app.query.schemas import QueryResponse
from app.query.service import QueryService
from app.saved_queries.schemas import (
    ImportResult,
    RunSavedQueryRequest,
    SavedQuery,
    SavedQuerySummary,
    SaveQueryRequest,
    ValidationResult,
)
from app.saved_queries.service import SavedQueryService

router = APIRouter(prefix="/saved-queries", tags=["saved-queries"])


def get_saved_query_service(repository: SavedQueryRepositoryDep) -> SavedQueryService:
    return SavedQueryService(repository)


@router.get("", response_model=List[SavedQuery], response_model_by_alias=True)
def list_saved_queries(service: SavedQueryService = Depends(get_saved_query_service)) -> List[SavedQuery]:
    return service.list_queries()


@router.get("/summaries", response_model=List[SavedQuerySummary], response_model_by_alias=True)
def list_saved_query_summaries(
    service: SavedQueryService = Depends(get_saved_query_service),
) -> List[SavedQuerySummary]:
    return service.list_summaries()


@router.post("", response_model=SavedQuery, response_model_by_alias=True, status_code=201)
def save_query(request: SaveQueryRequest, service: SavedQueryService = Depends(get_saved_query_service)) -> SavedQuery:
    return service.save(request)


@router.post("/validate", response_model=ValidationResult)
def validate_saved_query(
    candidate: Any = Body(...), service: SavedQueryService = Depends(get_saved_query_service)
) -> ValidationResult:
    return service.validate(candidate)


@router.post("/sort", response_model=List[SavedQuery], response_model_by_alias=True)
def sort_saved_queries(
    by: str = Query("date", pattern="^(name|date)$"),
    service: SavedQueryService = Depends(get_saved_query_service),
) -> List[SavedQuery]:
    return service.sort(by)


@router.post("/import", response_model=ImportResult)
def import_saved_queries(
    payload: Any = Body(...), service: SavedQueryService = Depends(get_saved_query_service)
) -> ImportResult:
    """Import a list of saved queries, a single one, or an export envelope."""
    return service.import_payload(payload)


@router.post("/import-file", response_model=ImportResult)
async def import_saved_queries_file(
    file: UploadFile = File(...), service: SavedQueryService = Depends(get_saved_query_service)
) -> ImportResult:
    content = await file.read()
    return service.import_file(content)


@router.get("/export")
def export_saved_queries(service: SavedQueryService = Depends(get_saved_query_service)) -> Response:
    content, file_name = service.export_document()
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )


@router.get("/{query_id}", response_model=SavedQuery, response_model_by_alias=True)
def get_saved_query(query_id: str, service: SavedQueryService = Depends(get_saved_query_service)) -> SavedQuery:
    return service.get(query_id)


@router.delete("/{query_id}")
def delete_saved_query(query_id: str, service: SavedQueryService = Depends(get_saved_query_service)) -> dict:
    service.delete(query_id)
    return {"success": True, "message": "Saved query deleted successfully"}


@router.post("/{query_id}/duplicate", response_model=SavedQuery, response_model_by_alias=True, status_code=201)
def duplicate_saved_query(
    query_id: str, service: SavedQueryService = Depends(get_saved_query_service)
) -> SavedQuery:
    return service.duplicate(query_id)


@router.post("/{query_id}/run", response_model=QueryResponse, response_model_by_alias=True)
def run_saved_query(
    query_id: str,
    request: Optional[RunSavedQueryRequest] = None,
    service: SavedQueryService = Depends(get_saved_query_service),
    query_service: QueryService = Depends(get_query_service),
) -> QueryResponse:
    """Run a saved query, optionally on a different page."""
    request = request or RunSavedQueryRequest()
    return service.run(query_id, query_service, page=request.page, page_size=request.page_size)
