"""FastAPI application entry point for the query builder service."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import LOG_LEVEL, REQUEST_LOGGING
from app.core.database import init_db
from app.core.router import register_routes
from app.logging.exception_handlers import register_exception_handlers
from app.logging.middleware import LoggingMiddleware


def create_app(init_database: bool = True, request_logging: bool = REQUEST_LOGGING) -> FastAPI:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(
        title="Query Builder API",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    if init_database:
        init_db()

    # Add request logger middleware
    if request_logging:
        app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app
