"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from lawcrm.config import settings
from lawcrm.api.v1.router import api_router
from lawcrm.exceptions import (
    AssignmentValidationError,
    MailboxApiError,
    NotFoundError,
    StaleResponseError,
)
from lawcrm.models.database import init_db, close_db

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting Law Office CRM API", version=settings.app_version, environment=settings.environment)
    await init_db()
    yield
    logger.info("Shutting down Law Office CRM API")
    await close_db()


def _error_response(status_code: int, exc: Exception) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Law office CRM - unified search and handling of new and legacy leads",
        openapi_url=f"{settings.api_v1_prefix}/openapi.json" if settings.debug else None,
        docs_url=f"{settings.api_v1_prefix}/docs" if settings.debug else None,
        redoc_url=f"{settings.api_v1_prefix}/redoc" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    # Health check endpoint (outside of versioned API)
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    # Root endpoint
    @app.get("/", tags=["Root"])
    async def root() -> dict:
        """Root endpoint with API info."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": f"{settings.api_v1_prefix}/docs" if settings.debug else None,
            "health": "/health",
        }

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> ORJSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(AssignmentValidationError)
    async def assignment_validation_handler(request: Request, exc: AssignmentValidationError) -> ORJSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(StaleResponseError)
    async def stale_response_handler(request: Request, exc: StaleResponseError) -> ORJSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, exc)

    @app.exception_handler(MailboxApiError)
    async def mailbox_error_handler(request: Request, exc: MailboxApiError) -> ORJSONResponse:
        logger.warning("Mail backend request failed", path=request.url.path, status=exc.status_code)
        return ORJSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message, "upstream_status": exc.status_code},
        )

    @app.exception_handler(httpx.HTTPError)
    async def mailbox_unreachable_handler(request: Request, exc: httpx.HTTPError) -> ORJSONResponse:
        logger.warning("Mail backend unreachable", path=request.url.path, error=str(exc))
        return ORJSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Mail backend unreachable"},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Run the application with uvicorn (for development)."""
    import uvicorn

    uvicorn.run(
        "lawcrm.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
