"""Service layer for saved queries."""

import json
import logging
from typing import Any, List, Tuple

from app.query.schemas import QueryResponse
from app.query.service import QueryService
from app.saved_queries.exceptions import InvalidSavedQuery
from app.saved_queries.repository import SavedQueryRepository
from app.saved_queries.schemas import (
    ImportResult,
    SavedQuery,
    SavedQuerySummary,
    SaveQueryRequest,
    ValidationResult,
)

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "date")


class SavedQueryService:
    """Thin layer over the repository adding views, file handling and execution."""

    def __init__(self, repository: SavedQueryRepository):
        self.repository = repository

    def list_queries(self) -> List[SavedQuery]:
        return self.repository.list()

    def list_summaries(self) -> List[SavedQuerySummary]:
        return [SavedQuerySummary.from_saved(query) for query in self.repository.list()]

    def get(self, query_id: str) -> SavedQuery:
        return self.repository.get(query_id)

    def save(self, request: SaveQueryRequest) -> SavedQuery:
        return self.repository.save(request.config, request.name, request.description)

    def delete(self, query_id: str) -> None:
        self.repository.delete(query_id)

    def duplicate(self, query_id: str) -> SavedQuery:
        return self.repository.duplicate(query_id)

    def sort(self, by: str) -> List[SavedQuery]:
        if by == "name":
            return self.repository.sort_by_name()
        if by == "date":
            return self.repository.sort_by_date()
        raise InvalidSavedQuery(f"Unknown sort key '{by}', expected one of {', '.join(SORT_KEYS)}")

    def validate(self, candidate: Any) -> ValidationResult:
        return ValidationResult(valid=self.repository.validate(candidate))

    # ===== INTERCHANGE =====

    def import_payload(self, payload: Any) -> ImportResult:
        return self.repository.import_batch(payload)

    def import_file(self, content: bytes) -> ImportResult:
        """Import a JSON document uploaded as a file."""
        try:
            payload = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidSavedQuery(f"Imported file is not valid JSON: {e}") from e
        return self.repository.import_batch(payload)

    def export_document(self) -> Tuple[bytes, str]:
        """Serialized export document and its download file name."""
        document = self.repository.export()
        file_name = f"saved_queries_{document.exported_at.strftime('%Y%m%d_%H%M%S')}.json"
        content = document.model_dump_json(by_alias=True, indent=2).encode("utf-8")
        return content, file_name

    # ===== EXECUTION =====

    def run(self, query_id: str, query_service: QueryService, page=None, page_size=None) -> QueryResponse:
        """Run a saved query; only its descriptor reaches the engine."""
        descriptor = self.repository.get(query_id).config.to_descriptor(page=page, page_size=page_size)
        logger.info("Running saved query %s on %s", query_id, descriptor.table)
        return query_service.run_query(descriptor)
