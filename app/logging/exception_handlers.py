# app/logging/exception_handlers.py

import json
import logging
import traceback
from datetime import datetime

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.logging.middleware import write_log
from app.query.exceptions import QueryError
from app.saved_queries.exceptions import SavedQueryError

logger = logging.getLogger(__name__)


def safe_json_dumps(obj):
    def default(o):
        return o.isoformat() if isinstance(o, datetime) else str(o)

    return json.dumps(obj, indent=2, default=default)


def _error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def query_exception_handler(request: Request, exc: QueryError):
    """Compilation and execution failures: reported to the caller, never retried."""
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_envelope(exc.status_code, exc.message)


async def saved_query_exception_handler(request: Request, exc: SavedQueryError):
    return _error_envelope(exc.status_code, exc.message)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to database"""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    write_log(
        method=request.method,
        path=str(request.url.path),
        status_code=500,
        client_ip=request.client.host if request.client else None,
        request_headers=json.dumps(dict(request.headers)),
        response_body=safe_json_dumps(
            {
                "error": str(exc),
                "type": type(exc).__name__,
                "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            }
        ),
        user_agent=request.headers.get("user-agent"),
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""

    # Convert errors to a safe format for JSON response
    def convert_error(error):
        if isinstance(error, dict):
            return {k: convert_error(v) for k, v in error.items()}
        elif isinstance(error, list):
            return [convert_error(item) for item in error]
        elif isinstance(error, (int, float, bool)) or error is None:
            return error
        return str(error)

    return JSONResponse(status_code=422, content={"detail": convert_error(exc.errors())})


async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s returned %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QueryError, query_exception_handler)
    app.add_exception_handler(SavedQueryError, saved_query_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
