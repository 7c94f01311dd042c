"""Main FastAPI application for the School Auto-Apply engine."""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from school_auto_apply import __version__
from school_auto_apply.config import settings
from school_auto_apply.utils.logging import configure_logging, get_logger
from school_auto_apply.api import routes
from school_auto_apply.api.models import ErrorResponse
from school_auto_apply.registry import build_default_registry
from school_auto_apply.repository import InMemoryRepository, JsonFileRepository
from school_auto_apply.service import AutoApplyService

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the registry, repository and service into the routes."""
    logger.info("Starting School Auto-Apply API")

    registry = build_default_registry(settings.enabled_scripts)
    if settings.data_file:
        repository = JsonFileRepository(settings.data_file)
    else:
        logger.warning("No data file configured, using an empty repository")
        repository = InMemoryRepository()

    routes.configure_routes(AutoApplyService(registry=registry), repository, registry)
    logger.info("Application startup completed", scripts=registry.ids())

    yield

    logger.info("Shutting down School Auto-Apply API")
    routes.configure_routes(None, None, None)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="School Auto-Apply API",
        description="Browser automation that submits school application forms from stored templates",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_exception_handlers(app)

    for router in routes.all_routers:
        app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "name": "School Auto-Apply API",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled"
        }

    return app


def setup_middleware(app: FastAPI) -> None:
    """CORS, optional trusted hosts and one log line per request."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    if settings.allowed_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_seconds=round(time.perf_counter() - started, 3)
        )
        return response


def error_response(status_code: int, error: str, message: str, details: Optional[Dict[str, Any]] = None,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Every error body the API returns has the ErrorResponse shape."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            details=details,
            timestamp=datetime.now(timezone.utc)
        ).model_dump(mode="json"),
        headers=headers
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map raised errors to ErrorResponse bodies."""

    # Starlette's class also covers fastapi.HTTPException and routing 404/405s.
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning("HTTP exception", status_code=exc.status_code, detail=exc.detail, path=request.url.path)
        return error_response(exc.status_code, "HTTPException", str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {key: value for key, value in error.items() if key not in ("input", "ctx", "url")}
            for error in exc.errors()
        ]
        logger.warning("Validation error", errors=errors, path=request.url.path)
        return error_response(400, "ValidationError", "Invalid request", {"validation_errors": errors})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", error=str(exc), error_type=type(exc).__name__, path=request.url.path)
        return error_response(
            500,
            "InternalServerError",
            "An unexpected error occurred",
            {"error_type": type(exc).__name__} if settings.debug else None
        )


app = create_app()
