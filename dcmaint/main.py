"""
dcmaint API - FastAPI Application

Main entry point for the FastAPI application.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError

from dcmaint import __version__
from dcmaint.config import get_settings
from dcmaint.core.cache import close_redis
from dcmaint.core.database import close_db, get_db_context, init_db
from dcmaint.core.pubsub import get_change_feed
from dcmaint.models.contracts.common import ErrorResponse
from dcmaint.routers import (
    attachments_router,
    auth_router,
    corrective_router,
    documents_router,
    health_router,
    users_router,
    websocket_router,
)
from dcmaint.services.accounts import ensure_default_user
from dcmaint.services.attachment_store import (
    AttachmentNotFoundError,
    AttachmentUnavailableError,
)
from dcmaint.services.upload_validation import UploadValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting dcmaint API...")
    settings = get_settings()

    logger.info("Initializing database connection...")
    await init_db()
    logger.info("Database connection established")

    logger.info("Initializing change feed...")
    feed = get_change_feed()
    await feed.start_pubsub()

    if settings.default_user_email and settings.default_user_password:
        async with get_db_context() as db:
            await ensure_default_user(db, settings)

    logger.info(f"dcmaint API started in {settings.environment} mode")

    yield

    # Shutdown
    logger.info("Shutting down dcmaint API...")
    await feed.stop_pubsub()
    await close_redis()
    await close_db()
    logger.info("dcmaint API shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="dcmaint API",
        description="Data center maintenance document service",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ==========================================================================
    # CORS Middleware
    # ==========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==========================================================================
    # Global Exception Handlers
    # ==========================================================================

    @app.exception_handler(AttachmentNotFoundError)
    async def attachment_not_found_handler(
        request: Request, exc: AttachmentNotFoundError
    ) -> JSONResponse:
        """Missing attachment -> 404."""
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error="not_found", message=str(exc)).model_dump(),
        )

    @app.exception_handler(AttachmentUnavailableError)
    async def attachment_unavailable_handler(
        request: Request, exc: AttachmentUnavailableError
    ) -> JSONResponse:
        """Attachment exists but its data cannot be served -> 409."""
        return JSONResponse(
            status_code=409,
            content=ErrorResponse(
                error="attachment_unavailable",
                message=str(exc),
                details={"attachment_id": str(exc.attachment_id)} if exc.attachment_id else None,
            ).model_dump(),
        )

    @app.exception_handler(UploadValidationError)
    async def upload_validation_handler(
        request: Request, exc: UploadValidationError
    ) -> JSONResponse:
        """Rejected upload -> 413, 415 or 422."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error="invalid_upload",
                message=str(exc),
                details={"field": exc.field} if exc.field else None,
            ).model_dump(),
        )

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_handler(
        request: Request, exc: PydanticValidationError
    ) -> JSONResponse:
        """Pydantic model validation errors -> 422."""
        errors = exc.errors()
        field_errors = {".".join(str(loc) for loc in e["loc"]): e["msg"] for e in errors}
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="validation_error",
                message="Validation failed",
                details={"fields": field_errors},
            ).model_dump(),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """Database constraint violations -> 409."""
        detail = str(exc.orig) if exc.orig else str(exc)

        if "unique" in detail.lower() or "duplicate" in detail.lower():
            message = "Resource already exists"
        elif "foreign key" in detail.lower():
            message = "Referenced resource not found"
        else:
            message = "Database constraint violation"

        logger.warning(f"IntegrityError: {detail}")
        return JSONResponse(
            status_code=409,
            content=ErrorResponse(error="conflict", message=message).model_dump(),
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        """Database connection issues -> 503."""
        logger.error(f"Database operational error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="service_unavailable",
                message="Service temporarily unavailable",
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions -> 500."""
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_error",
                message="An unexpected error occurred",
            ).model_dump(),
        )

    # ==========================================================================
    # Register Routers
    # ==========================================================================
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(attachments_router)
    app.include_router(documents_router)
    app.include_router(corrective_router)
    app.include_router(websocket_router)

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "name": "dcmaint API",
            "version": __version__,
            "docs": "/docs",
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "dcmaint.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
