# app/core/router.py
"""
Module for registering routes in the FastAPI application.
"""

from datetime import datetime, timezone

from fastapi import FastAPI

from app.query.router import router as query_router
from app.saved_queries.router import router as saved_query_router
from app.logging.router import router as log_router


def register_routes(app: FastAPI) -> None:
    """
    Registers all the routes for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.include_router(query_router, prefix="/api")
    app.include_router(saved_query_router, prefix="/api")
    app.include_router(log_router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    def health() -> dict:
        return {
            "status": "OK",
            "message": "Query builder service is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
