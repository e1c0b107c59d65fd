# app/core/database.py
"""Database configuration for the config database and the query target database."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import DATABASE_URL, TARGET_DATABASE_URL, SEED_SAMPLE_DATA

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# ===== CONFIG DATABASE =====
# Stores saved queries, request logs and query execution logs.
engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ===== TARGET DATABASE =====
# The database user-built queries are compiled for and executed against.
target_engine = create_engine(TARGET_DATABASE_URL, connect_args=_connect_args(TARGET_DATABASE_URL))
TargetSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=target_engine)
TargetBase = declarative_base()


# ===== SESSION GENERATORS =====


def get_db():
    """Get config database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_target_db():
    """Get target database session."""
    db = TargetSessionLocal()
    try:
        yield db
    finally:
        db.close()


# ===== TABLE CREATION =====


def create_all_tables():
    """Create the config database tables."""
    # Import models to ensure they're registered with Base
    from app.saved_queries.models import SavedQueryRecord  # noqa: F401
    from app.query.models import QueryExecutionLog  # noqa: F401
    from app.logging.models import Log  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Config database tables created")


def drop_all_tables():
    """Drop the config database tables (use with caution!)."""
    from app.saved_queries.models import SavedQueryRecord  # noqa: F401
    from app.query.models import QueryExecutionLog  # noqa: F401
    from app.logging.models import Log  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    logger.info("Config database tables dropped")


def init_db(force_recreate: bool = False):
    """Create tables and, for a SQLite target, the demo data set."""
    if force_recreate:
        drop_all_tables()
    create_all_tables()

    if SEED_SAMPLE_DATA and target_engine.dialect.name == "sqlite":
        from app.core.sample_data import create_sample_data

        with TargetSessionLocal() as session:
            create_sample_data(session)


if __name__ == "__main__":
    init_db()
