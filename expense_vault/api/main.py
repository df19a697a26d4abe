"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers, JSON error handlers and the
vault lifespan, and configures the uvicorn server.

Dependencies: fastapi, expense_vault.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from expense_vault import __version__
from expense_vault.api.deps.dependencies import get_service_cache
from expense_vault.configs import get_settings
from expense_vault.observability.logger import configure_logging
from expense_vault.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, permissions_router, vault_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup
    cache = get_service_cache()
    await cache.startup()
    for route in app.routes:
        if isinstance(route, APIRoute):
            logger.info(f"   {','.join(sorted(route.methods)):<7} {route.path}")
    logger.info(
        "Expense Tracker API Server ready",
        extra={"environment": settings.environment, "host": settings.host, "port": settings.port},
    )

    yield

    # Shutdown
    await cache.shutdown()
    logger.info("Service cache cleared")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or schema mismatch in a request body."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, wrong method)."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {"error": "Endpoint not found"}
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: never leak stack traces to clients."""
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    app = FastAPI(
        title="Expense Tracker Vault API",
        description="Expense CRUD proxied to an encrypted secret-vault network",
        version=__version__,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(vault_router)
    app.include_router(permissions_router)

    return app


app = create_app()


def run() -> None:
    """Launch uvicorn with the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "expense_vault.api.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
