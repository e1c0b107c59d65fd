"""Database model for saved queries (config database)."""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from app.core.database import Base


class SavedQueryRecord(Base):
    """One saved query; ``position`` keeps the repository's ordering."""

    __tablename__ = "saved_queries"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    version = Column(String, nullable=False)
    config = Column(JSON, nullable=False)
