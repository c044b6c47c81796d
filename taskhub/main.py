"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .errors import TaskHubError
from .models.task import utc_now
from .routes import auth, projects, tasks
from .schemas import HealthResponse
from .security.tokens import TokenVerifier
from .store.group import create_store_group
from .utils.logging import (
    configure_request_logging,
    log_shutdown_info,
    log_startup_info,
    setup_logging,
)
from .validation import format_errors

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Opens the database before the first request and closes it on shutdown.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings

    try:
        setup_logging(settings)
        log_startup_info(settings)

        app.state.store = await create_store_group(settings.database_path)
        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        raise

    yield

    log_shutdown_info()
    try:
        await app.state.store.close()
    except Exception as e:
        logger.error(f"Error during application shutdown: {str(e)}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings()

    app = FastAPI(
        title="TaskHub",
        description="Task management API with token authentication and filtered task queries",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_verifier = TokenVerifier(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(configure_request_logging())

    # Custom exception handlers
    @app.exception_handler(TaskHubError)
    async def taskhub_exception_handler(request: Request, exc: TaskHubError):
        """Render domain errors as ``{"error": ..., "details": ...}``."""
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code}: {exc.message} for {request.method} {request.url.path}")
        else:
            logger.warning(f"HTTP {exc.status_code}: {exc.message} for {request.method} {request.url.path}")

        content = exc.to_dict()
        if exc.status_code >= 500 and settings.is_development and exc.__cause__ is not None:
            content["message"] = str(exc.__cause__)

        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url.path}"
        )

        error = "Route not found" if exc.status_code == status.HTTP_404_NOT_FOUND else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": error},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors with detailed information."""
        details = format_errors(exc.errors())
        logger.warning(
            f"Validation error for {request.method} {request.url.path}: {details}"
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation error", "details": details},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url.path}: {str(exc)}",
            exc_info=True,
        )

        content = {"error": "Internal server error"}
        if settings.is_development:
            content["message"] = str(exc)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Liveness probe for monitoring and load balancers."""
        return HealthResponse(status="ok", timestamp=utc_now())

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "TaskHub API",
            "version": VERSION,
            "docs_url": "/docs",
            "health_check": "/health",
            "endpoints": {
                "auth": "/api/auth",
                "projects": "/api/projects",
                "tasks": "/api/tasks",
            },
        }

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

    app.include_router(projects.router, prefix="/api/projects", tags=["projects"])

    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])

    logger.info("FastAPI application created and configured")

    return app


def run() -> None:
    """Serve the API with uvicorn using settings from the environment."""
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
