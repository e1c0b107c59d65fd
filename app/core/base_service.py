# app/core/base_service.py
"""Generic base service for read-mostly resources backed by a BaseDAO."""

from typing import Generic, TypeVar, List, Optional, Type
from pydantic import BaseModel
from abc import ABC
from app.core.base_dao import BaseDAO

ModelType = TypeVar("ModelType")
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseService(Generic[ModelType, ResponseSchemaType], ABC):
    """Generic service converting DAO records into response schemas."""

    response_model: Type[ResponseSchemaType]

    def __init__(self, dao: BaseDAO[ModelType]):
        self.dao = dao

    def get_all(self, skip: int = 0, limit: int = 100, **filters) -> List[ResponseSchemaType]:
        """Get records with business logic applied."""
        records = self.dao.get_all(skip=skip, limit=limit, **filters)
        return [self._to_response(record) for record in records]

    def get_by_id(self, id: int) -> Optional[ResponseSchemaType]:
        """Get record by ID with business logic applied."""
        record = self.dao.get_by_id(id)
        if record:
            return self._to_response(record)
        return None

    def count(self, **filters) -> int:
        """Count records with filters."""
        return self.dao.count(**filters)

    def _to_response(self, record: ModelType) -> ResponseSchemaType:
        """Convert database model to response schema."""
        return self.response_model.model_validate(record)
