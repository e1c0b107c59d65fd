"""
Test configuration and shared fixtures for the query builder test suite.
Provides in-memory config and target databases, a seeded EMP table and a test client.
"""

import os

# Settings are read at import time; keep tests off the on-disk databases
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TARGET_DATABASE_URL"] = "sqlite://"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["REQUEST_LOGGING"] = "false"

import pytest
from datetime import datetime, timedelta
from typing import Any, Dict, List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.app import create_app
from app.core.database import Base, TargetBase, get_db, get_target_db
from app.core.dependencies import get_saved_query_repository
from app.core.sample_data import Emp, create_sample_data
from app.saved_queries.dao import SavedQueryDAO
from app.saved_queries.repository import SavedQueryRepository


def _memory_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


# ===== DATABASE SETUP =====

@pytest.fixture(scope="session")
def config_engine():
    """In-memory SQLite engine for the config database"""
    engine = _memory_engine()
    # Import all config models to register them
    from app.saved_queries.models import SavedQueryRecord  # noqa: F401
    from app.query.models import QueryExecutionLog  # noqa: F401
    from app.logging.models import Log  # noqa: F401
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def config_session_factory(config_engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=config_engine)
    yield factory
    # Clean up all data after each test
    Base.metadata.drop_all(bind=config_engine)
    Base.metadata.create_all(bind=config_engine)


@pytest.fixture
def config_db_session(config_session_factory):
    session = config_session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def target_engine():
    """Fresh in-memory target database with the DEPT/EMP tables created (empty)"""
    engine = _memory_engine()
    TargetBase.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def target_session_factory(target_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=target_engine)


@pytest.fixture
def target_db_session(target_session_factory):
    session = target_session_factory()
    try:
        yield session
    finally:
        session.close()


# ===== SAMPLE DATA FIXTURES =====

@pytest.fixture
def emp_rows(target_db_session) -> List[Emp]:
    """30 employees: 25 earn more than 1000, 5 earn less, none are tied on salary"""
    hired = datetime(2020, 1, 1)
    employees = [
        Emp(EMPNO=1000 + i, ENAME=f"EMP{i:02d}", JOB="CLERK", HIREDATE=hired + timedelta(days=i), SAL=1100 + i * 100)
        for i in range(25)
    ]
    employees += [
        Emp(EMPNO=2000 + i, ENAME=f"LOW{i:02d}", JOB="INTERN", HIREDATE=hired, SAL=500 + i * 100)
        for i in range(5)
    ]
    target_db_session.add_all(employees)
    target_db_session.commit()
    return employees


@pytest.fixture
def scott_data(target_db_session):
    """The classic 4 departments / 14 employees demo data set"""
    create_sample_data(target_db_session)
    return target_db_session


@pytest.fixture
def saved_query_repository(config_session_factory) -> SavedQueryRepository:
    repository = SavedQueryRepository(SavedQueryDAO(config_session_factory))
    repository.load()
    return repository


@pytest.fixture
def saved_query_payload() -> Dict[str, Any]:
    """A saved query as the client exports it"""
    return {
        "id": "query_existing",
        "name": "High earners",
        "description": "Employees above 1000",
        "timestamp": "2024-03-01T10:00:00+00:00",
        "version": "1.0",
        "config": {
            "selectedTable": "EMP",
            "selectedColumns": ["ENAME", "SAL"],
            "filters": [{"field": "SAL", "operator": "gt", "value": "1000"}],
            "sorting": [{"field": "SAL", "direction": "DESC"}],
            "aggregates": [{"type": "COUNT", "columns": [], "alias": None}],
            "pagination": {"currentPage": 1, "pageSize": 10},
        },
    }


# ===== CLIENT =====

@pytest.fixture
def client(config_db_session, target_session_factory, saved_query_repository):
    """FastAPI test client with database and repository overrides"""
    app = create_app(init_database=False, request_logging=False)

    def override_get_db():
        try:
            yield config_db_session
        finally:
            pass

    def override_get_target_db():
        session = target_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_target_db] = override_get_target_db
    app.dependency_overrides[get_saved_query_repository] = lambda: saved_query_repository

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    """Standard API headers for testing"""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }
