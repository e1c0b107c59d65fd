# app/saved_queries/dao.py
"""Data Access Object for the saved-query collection."""

from typing import Callable, List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.saved_queries.models import SavedQueryRecord
from app.saved_queries.schemas import SavedQuery


class SavedQueryDAO:
    """
    Persists the whole collection at once.

    The repository never edits entries in place, so every write replaces the
    table contents inside one transaction.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load_all(self) -> List[SavedQuery]:
        with self.session_factory() as session:
            records = session.execute(select(SavedQueryRecord).order_by(SavedQueryRecord.position)).scalars().all()
            return [self._to_schema(record) for record in records]

    def replace_all(self, queries: Sequence[SavedQuery]) -> None:
        with self.session_factory() as session:
            with session.begin():
                session.execute(delete(SavedQueryRecord))
                session.add_all(self._to_record(position, query) for position, query in enumerate(queries))

    @staticmethod
    def _to_record(position: int, query: SavedQuery) -> SavedQueryRecord:
        return SavedQueryRecord(
            id=query.id,
            position=position,
            name=query.name,
            description=query.description,
            timestamp=query.timestamp,
            version=query.version,
            config=query.config.model_dump(mode="json", by_alias=True),
        )

    @staticmethod
    def _to_schema(record: SavedQueryRecord) -> SavedQuery:
        return SavedQuery(
            id=record.id,
            name=record.name,
            description=record.description,
            timestamp=record.timestamp,
            version=record.version,
            config=record.config,
        )
