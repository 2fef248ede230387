"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mailpeek.config import Settings
from mailpeek.errors import MailpeekError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create the shared HTTP client. Shutdown: close it."""
    settings: Settings = app.state.settings
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
    )
    logger.info("http_client_created")
    yield
    await app.state.http_client.aclose()
    logger.info("shutdown_complete")


async def _mailpeek_error_handler(request: Request, exc: MailpeekError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "mail_request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse({"error": str(exc)}, status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="mailpeek",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(MailpeekError, _mailpeek_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    from mailpeek.routers.mail import router as mail_router

    app.include_router(mail_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "mailpeek"}

    return app
