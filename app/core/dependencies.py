# app/core/dependencies.py
"""Shared FastAPI dependencies."""

import threading
from typing import Annotated, Optional
from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.database import SessionLocal, get_db, get_target_db
from app.saved_queries.dao import SavedQueryDAO
from app.saved_queries.repository import SavedQueryRepository

SessionDep = Annotated[Session, Depends(get_db)]
TargetSessionDep = Annotated[Session, Depends(get_target_db)]

_repository: Optional[SavedQueryRepository] = None
_repository_lock = threading.Lock()


def get_saved_query_repository() -> SavedQueryRepository:
    """The process-wide saved-query repository, loaded from the config database on first use."""
    global _repository
    with _repository_lock:
        if _repository is None:
            repository = SavedQueryRepository(SavedQueryDAO(SessionLocal))
            repository.load()
            _repository = repository
    return _repository


SavedQueryRepositoryDep = Annotated[SavedQueryRepository, Depends(get_saved_query_repository)]
