"""
Global middleware and exception handlers.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from utils.exceptions import NoSession, RefreshInvalid, RemoteApiError

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response


def register_exception_handlers(app: FastAPI) -> None:
    """Map errors to ``{"error": ...}`` JSON bodies the dashboard understands."""

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(NoSession)
    @app.exception_handler(RefreshInvalid)
    async def reauth_required(request: Request, exc: Exception):
        logger.info("%s %s needs re-authentication: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Re-authentication required"},
        )

    @app.exception_handler(RemoteApiError)
    async def upstream_error(request: Request, exc: RemoteApiError):
        logger.warning("Google API error on %s: %d %s", request.url.path, exc.status_code, exc.message)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": exc.message, "upstreamStatus": exc.status_code},
        )
