"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_concepts import __version__
from payroll_concepts.api.routes import (
    compute_router,
    concepts_router,
    health_router,
    payrolls_router,
)
from payroll_concepts.catalog import CatalogValidationError
from payroll_concepts.config import get_settings
from payroll_concepts.database import create_all, init_db
from payroll_concepts.logging_config import configure_logging
from payroll_concepts.services import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    RecordLockedError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    engine, _ = init_db()
    settings = get_settings()
    if settings.debug or settings.database_url.startswith("sqlite"):
        await create_all(engine)
    yield
    await engine.dispose()


def _error(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "code": code})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Payroll Concept Engine API",
        description="Concept catalogs, payroll computation and payroll records",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc), "NOT_FOUND")

    @app.exception_handler(InvalidTransitionError)
    async def transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "INVALID_TRANSITION")

    @app.exception_handler(RecordLockedError)
    async def locked_handler(request: Request, exc: RecordLockedError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "RECORD_LOCKED")

    @app.exception_handler(DuplicateError)
    async def duplicate_handler(request: Request, exc: DuplicateError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "DUPLICATE")

    @app.exception_handler(CatalogValidationError)
    async def validation_handler(request: Request, exc: CatalogValidationError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            "INTERNAL_ERROR",
        )

    app.include_router(health_router)
    app.include_router(compute_router, prefix="/api/v1")
    app.include_router(concepts_router, prefix="/api/v1")
    app.include_router(payrolls_router, prefix="/api/v1")

    return app
