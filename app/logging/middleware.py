import time
import json
import os
import getpass
import logging
import platform
import socket
from datetime import datetime
from typing import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.config import APPLICATION_ID
from app.core.database import SessionLocal
from app.logging.models import Log

logger = logging.getLogger(__name__)

# Paths whose requests are never written to the log table
EXCLUDED_PATHS = ("/api/logs", "/static", "/docs", "/openapi.json")


def current_username() -> str:
    try:
        return os.environ.get("USER") or os.environ.get("USERNAME") or getpass.getuser() or "unknown_user"
    except (KeyError, OSError):
        return "unknown_user"


def current_hostname() -> str:
    return socket.gethostname() or platform.node() or "unknown_host"


def write_log(**fields) -> None:
    """Insert one row into the log table; failures are reported, never raised."""
    try:
        with SessionLocal() as session:
            session.add(
                Log(
                    timestamp=datetime.now(),
                    username=current_username(),
                    hostname=current_hostname(),
                    application_id=APPLICATION_ID,
                    **fields,
                )
            )
            session.commit()
    except SQLAlchemyError:
        logger.exception("Failed to write request log for %s", fields.get("path"))


class LoggingMiddleware(BaseHTTPMiddleware):
    """Records every API request and its response in the log table, after the response is sent."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        logger.info(
            "Request logging enabled for %s on %s (application %s)",
            current_username(),
            current_hostname(),
            APPLICATION_ID,
        )

    async def dispatch(self, request: Request, call_next: Callable):
        if any(request.url.path.startswith(path) for path in EXCLUDED_PATHS):
            return await call_next(request)

        start_time = time.time()

        body_bytes = await request.body()
        request_body = body_bytes.decode("utf-8", errors="ignore")

        # Reconstruct stream
        async def receive() -> dict:
            return {"type": "http.request", "body": body_bytes}

        request = Request(request.scope, receive=receive)

        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        response_body = b""
        if isinstance(response, Response) and hasattr(response, "body"):
            response_body = response.body
        elif hasattr(response, "body_iterator"):
            original_iterator = response.body_iterator
            chunks = []

            async def buffer_iterator():
                nonlocal response_body
                async for chunk in original_iterator:
                    chunks.append(chunk)
                    yield chunk
                response_body = b"".join(chunks)

            response.body_iterator = buffer_iterator()

        content_type = response.headers.get("content-type", "")
        # Binary exports are not logged verbatim
        is_binary = "spreadsheetml" in content_type or "octet-stream" in content_type

        def log_to_db():
            if is_binary:
                body_to_log = f"[{content_type} attachment, {len(response_body)} bytes]"
            else:
                body_to_log = response_body.decode("utf-8", errors="ignore") if response_body else ""
            write_log(
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                client_ip=request.client.host if request.client else None,
                request_headers=json.dumps(dict(request.headers)),
                request_body=request_body,
                response_body=body_to_log,
                processing_time=duration_ms,
                user_agent=request.headers.get("user-agent"),
            )

        response.background = getattr(response, "background", None) or BackgroundTask(log_to_db)
        return response
