# src/role_gate/main.py
"""Main entry point for the Role Gate application."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from role_gate.api.v1 import system_router, verification_router
from role_gate.context import VerificationContext, build_discord_context
from role_gate.core.logging import configure_logging
from role_gate.core.settings import settings
from role_gate.services.errors import InternalError, RateLimitedError, VerificationError

logger = logging.getLogger(__name__)


async def _handle_verification_error(request: Request, exc: VerificationError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError) and exc.retry_after > 0:
        headers["Retry-After"] = str(max(1, round(exc.retry_after)))
    return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=headers)


async def _handle_malformed_request(request: Request, exc: Exception) -> JSONResponse:
    logger.debug("Malformed request to %s: %s", request.url.path, exc)
    return JSONResponse(
        {"error": "Malformed request.", "code": "invalid_input"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    error = InternalError()
    return JSONResponse(error.to_payload(), status_code=error.status_code)


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


def create_app(context: VerificationContext | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        context: Pre-built verification context. When omitted, a context backed
            by the Discord API is built from settings at startup.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.context is None:
            app.state.context = build_discord_context(settings)
        await app.state.context.start()
        try:
            yield
        finally:
            await app.state.context.stop()

    app = FastAPI(
        title=settings.app_name,
        description="Discord role verification via one-time codes",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.middleware("http")(_log_requests)

    app.add_exception_handler(VerificationError, _handle_verification_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_malformed_request)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.include_router(verification_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")

    # Static front end is optional; the API works without it.
    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            app.mount("/", StaticFiles(directory=static_path, html=True), name="static")

    return app


configure_logging(settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("role_gate.main:app", host=settings.host, port=settings.port, reload=settings.debug)
