# app/core/base_dao.py
"""Generic base DAO for the config database's append-mostly tables."""

from datetime import datetime, timedelta
from typing import Generic, TypeVar, List, Optional, Any, Type
from sqlalchemy.orm import Session
from sqlalchemy import select, and_, delete, func, desc
from abc import ABC
from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType], ABC):
    """Generic DAO for common database operations."""

    # Column used for recency ordering and age-based cleanup
    timestamp_field: str = "timestamp"

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _timestamp_column(self):
        return getattr(self.model, self.timestamp_field)

    def _filter_conditions(self, **filters: Any) -> list:
        return [
            getattr(self.model, key) == value
            for key, value in filters.items()
            if hasattr(self.model, key) and value is not None
        ]

    def get_all(self, skip: int = 0, limit: int = 100, **filters: Any) -> List[ModelType]:
        """Get records, newest first, with optional equality filters."""
        query = select(self.model)
        conditions = self._filter_conditions(**filters)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(desc(self._timestamp_column())).offset(skip).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get record by ID."""
        return self.db.get(self.model, id)

    def create(self, **data: Any) -> ModelType:
        """Create new record."""
        db_obj = self.model(**data)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def count(self, **filters: Any) -> int:
        """Count records with optional filtering."""
        query = select(func.count()).select_from(self.model)
        conditions = self._filter_conditions(**filters)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.execute(query).scalar() or 0

    def delete_older_than(self, days: int) -> int:
        """Delete records older than ``days`` days; returns the number removed."""
        threshold = datetime.now() - timedelta(days=days)
        result = self.db.execute(delete(self.model).where(self._timestamp_column() < threshold))
        self.db.commit()
        return result.rowcount or 0
